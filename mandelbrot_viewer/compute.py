"""
Mandelbrot computation functions using Numba JIT compilation.

This module contains the performance-critical per-pixel code:
- Escape-time iteration of z <- z^2 + c
- The band kernel that fills a contiguous range of rows of the
  iteration and RGB buffers

The band kernel is compiled with nogil=True: the renderer runs one
kernel per thread, and releasing the GIL is what lets those threads use
every core.
"""

import numpy as np
from numba import jit

from .colormaps import color_for


ESCAPE_RADIUS_SQ = 4.0  # |z|^2 > 4  <=>  |z| > 2


@jit(nopython=True, cache=True)
def escape_time(cr, ci, max_iter):
    """
    Count iterations of z <- z^2 + c before |z| exceeds 2.

    Starts from z = 0. Uses |z|^2 > 4 as the escape test to avoid a
    square root per iteration.

    Args:
        cr, ci: Real and imaginary parts of c
        max_iter: Iteration cap

    Returns:
        Iteration count at escape, or max_iter if the orbit stayed bounded
    """
    zr = 0.0
    zi = 0.0
    iteration = 0
    while zr * zr + zi * zi <= ESCAPE_RADIUS_SQ and iteration < max_iter:
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
        iteration += 1
    return iteration


def evaluate(c, max_iter):
    """
    Escape time of a single complex point.

    Args:
        c: Point in the complex plane (anything complex() accepts)
        max_iter: Iteration cap, clamped to at least 1

    Returns:
        int in 0..max_iter; equal to max_iter when c is treated as inside
    """
    c = complex(c)
    return int(escape_time(c.real, c.imag, max(1, int(max_iter))))


@jit(nopython=True, nogil=True, cache=True)
def compute_band(x_min, x_max, y_min, y_max, width, height, max_iter,
                 continuous, counts, rgb, row_start, row_end):
    """
    Compute and color rows [row_start, row_end) of the image.

    Writes only inside those rows, so several bands of the same buffers
    can be filled concurrently.

    Args:
        x_min, x_max: Real axis bounds in the complex plane
        y_min, y_max: Imaginary axis bounds in the complex plane
        width, height: Full image dimensions in pixels
        max_iter: Maximum iteration count before assuming point is in set
        continuous: Color mode flag (see colormaps.py)
        counts: (height, width) int64 array of escape counts, modified in place
        rgb: (height, width, 3) uint8 array, modified in place
        row_start, row_end: Row range of this band
    """
    span_x = x_max - x_min
    span_y = y_max - y_min

    for py in range(row_start, row_end):
        y0 = y_min + span_y * py / height
        for px in range(width):
            x0 = x_min + span_x * px / width

            iteration = escape_time(x0, y0, max_iter)
            r, g, b = color_for(iteration, max_iter, continuous)

            counts[py, px] = iteration
            rgb[py, px, 0] = np.uint8(r)
            rgb[py, px, 1] = np.uint8(g)
            rgb[py, px, 2] = np.uint8(b)


def warmup_jit():
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on the first interactive render.
    """
    counts = np.zeros((4, 4), dtype=np.int64)
    rgb = np.zeros((4, 4, 3), dtype=np.uint8)
    for continuous in (True, False):
        compute_band(-2.0, 1.0, -1.5, 1.5, 4, 4, 10, continuous, counts, rgb, 0, 4)
    evaluate(0j, 10)
