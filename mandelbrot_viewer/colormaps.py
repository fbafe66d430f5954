"""
Color modes for Mandelbrot visualization.

Every pixel is colored from its normalized escape fraction
t = iterations / max_iter. Points that never escaped (iterations ==
max_iter) are black in every mode.

Two modes are available:
- continuous: smooth polynomial palette (dark blue -> orange -> yellow)
- grayscale:  gray = floor(255 * t)

color_for is JIT-compiled so the band kernel in compute.py can call it
per pixel without leaving nopython mode.
"""

from numba import jit


# Mode flags, passed straight into the JIT kernels
CONTINUOUS = True
GRAYSCALE = False


@jit(nopython=True, cache=True)
def _clamp_channel(v):
    """Clamp a float channel value to 0..255 and truncate to int."""
    return int(min(255.0, max(0.0, v)))


@jit(nopython=True, cache=True)
def color_for(iterations, max_iter, continuous):
    """
    Map an escape count to an RGB color.

    Args:
        iterations: Escape count, 0..max_iter inclusive
        max_iter: Iteration cap used for the evaluation (>= 1)
        continuous: True for the polynomial palette, False for grayscale

    Returns:
        (r, g, b) tuple of ints in 0..255
    """
    if iterations >= max_iter:
        # In the set
        return 0, 0, 0

    t = iterations / max_iter
    if continuous:
        s = 1.0 - t
        r = _clamp_channel(9.0 * s * t * t * t * 255.0)
        g = _clamp_channel(15.0 * s * s * t * t * 255.0)
        b = _clamp_channel(8.5 * s * s * s * t * 255.0)
        return r, g, b

    gray = int(255.0 * t)
    return gray, gray, gray


# Registry of available color modes.
# Keys are the names accepted by the console and the settings file.
COLOR_MODES = {
    'continuous': CONTINUOUS,
    'grayscale': GRAYSCALE,
}


def get_color_mode(name):
    """
    Get a color mode flag by name (case-insensitive).

    Raises:
        KeyError if name not found
    """
    return COLOR_MODES[name.strip().lower()]


def color_mode_name(continuous):
    """Inverse of get_color_mode."""
    return 'continuous' if continuous else 'grayscale'


def list_color_mode_names():
    """Get list of available color mode names."""
    return list(COLOR_MODES.keys())
