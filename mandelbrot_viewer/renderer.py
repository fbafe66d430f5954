"""
Parallel Mandelbrot rasterizer.

The MandelbrotRenderer class handles:
- Splitting the image into contiguous row bands, one per hardware thread
- Running the JIT band kernel for every band on its own thread
- Joining all workers before returning, so callers always get a
  complete frame computed from a single parameter snapshot

Each band writes only its own rows of a fresh pair of frame buffers, so
the buffers need no locking; the only synchronization is the join
barrier. The frame is committed to the RenderSurface only once every
band has succeeded. Renders themselves are serialized: a second render
request waits for the one in flight to finish.
"""

import logging
import os
import threading
import time

import numpy as np

from .colormaps import color_mode_name
from .compute import compute_band
from .context import RenderContext, RenderSnapshot

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """A worker thread failed while computing its band."""


def available_workers():
    """Hardware parallelism of this machine (at least 1)."""
    return max(1, os.cpu_count() or 1)


def partition_rows(height, workers):
    """
    Split rows [0, height) into contiguous, non-overlapping bands.

    Every band gets height // workers rows except the last, which
    absorbs the remainder. When height < workers the leading bands are
    empty.

    Args:
        height: Number of pixel rows
        workers: Number of bands (values below 1 are treated as 1)

    Returns:
        List of (row_start, row_end) tuples, one per band
    """
    workers = max(1, int(workers))
    rows_per_band = height // workers
    bands = []
    for i in range(workers - 1):
        bands.append((i * rows_per_band, (i + 1) * rows_per_band))
    bands.append(((workers - 1) * rows_per_band, height))
    return bands


class RenderSurface:
    """
    Holds the last completed frame.

    Attributes:
        width, height: Buffer dimensions in pixels
        rgb: (height, width, 3) uint8 array, row-major
        iterations: (height, width) int64 escape counts
        snapshot: RenderSnapshot of the last completed render, or None
    """

    def __init__(self, width, height):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.rgb = np.zeros((height, width, 3), dtype=np.uint8)
        self.iterations = np.zeros((height, width), dtype=np.int64)
        self.snapshot = None

    def pixel(self, px, py):
        """(r, g, b) at column px, row py."""
        return tuple(int(v) for v in self.rgb[py, px])

    def iterations_at(self, px, py):
        return int(self.iterations[py, px])

    def to_bytes(self):
        """Flat row-major RGB bytes (width * height * 3)."""
        return self.rgb.tobytes()


class MandelbrotRenderer:
    """
    Fork/join renderer over a fixed-size RenderSurface.

    Usage:
        context = RenderContext()
        renderer = MandelbrotRenderer(800, 800)
        rgb = renderer.render(context)   # blocks until every band is done

    Attributes:
        width, height: Output dimensions
        workers: Number of bands/threads per render
        surface: RenderSurface holding the last completed frame
    """

    def __init__(self, width, height, workers=None):
        """
        Initialize the renderer.

        Args:
            width, height: Output dimensions in pixels
            workers: Threads per render (None = hardware parallelism)
        """
        self.width = width
        self.height = height
        # Queried once, reused for every render
        self.workers = max(1, int(workers)) if workers else available_workers()
        self.surface = RenderSurface(width, height)
        self.lock = threading.Lock()
        self.render_count = 0
        self.last_render_seconds = None

    def render(self, source):
        """
        Render one frame and commit it to the surface.

        Args:
            source: A RenderContext (snapshotted here) or a RenderSnapshot

        Returns:
            The new (height, width, 3) uint8 RGB frame, also stored as
            surface.rgb. Later renders never write into it.

        Raises:
            RenderError if any band worker raised
        """
        if isinstance(source, RenderContext):
            snapshot = source.snapshot()
        elif isinstance(source, RenderSnapshot):
            snapshot = source
        else:
            raise TypeError(f"Cannot render from {type(source).__name__}")

        with self.lock:
            start = time.perf_counter()
            # Fresh buffers: frames already handed out are never written
            # again, and a failed render leaves the surface untouched
            iterations = np.empty((self.height, self.width), dtype=np.int64)
            rgb = np.empty((self.height, self.width, 3), dtype=np.uint8)
            self._render_bands(snapshot, iterations, rgb)
            elapsed = time.perf_counter() - start

            self.surface.iterations = iterations
            self.surface.rgb = rgb
            self.surface.snapshot = snapshot
            self.render_count += 1
            self.last_render_seconds = elapsed

        logger.info(
            "Rendered %dx%d, max_iter=%d, mode=%s in %.0f ms (%d workers)",
            self.width, self.height, snapshot.max_iter,
            color_mode_name(snapshot.continuous), elapsed * 1000, self.workers
        )
        return rgb

    def _render_bands(self, snapshot, iterations, rgb):
        """Spawn one thread per non-empty band and wait for all of them."""
        bands = partition_rows(self.height, self.workers)
        logger.debug("Row bands: %s", bands)

        errors = []
        threads = []
        for row_start, row_end in bands:
            if row_end <= row_start:
                continue
            thread = threading.Thread(
                target=self._band_thread,
                args=(snapshot, iterations, rgb, row_start, row_end, errors),
                name=f"band-{row_start}-{row_end}"
            )
            thread.daemon = True
            threads.append(thread)
            thread.start()

        for thread in threads:
            thread.join()

        if errors:
            row_start, row_end, err = errors[0]
            raise RenderError(
                f"Band rows {row_start}-{row_end} failed: {err}"
            ) from err

    def _band_thread(self, snapshot, iterations, rgb, row_start, row_end, errors):
        """Worker: fill rows [row_start, row_end) of the frame buffers."""
        start = time.perf_counter()
        try:
            compute_band(
                snapshot.x_min, snapshot.x_max, snapshot.y_min, snapshot.y_max,
                self.width, self.height, max(1, snapshot.max_iter),
                snapshot.continuous,
                iterations, rgb,
                row_start, row_end
            )
        except Exception as err:
            logger.error("Exception in band worker %d-%d", row_start, row_end,
                         exc_info=True)
            # list.append is atomic; the caller reads this only after join
            errors.append((row_start, row_end, err))
            return
        logger.debug("Band %d-%d done in %.1f ms", row_start, row_end,
                     (time.perf_counter() - start) * 1000)


def render(viewport, max_iter, continuous, width, height, workers=None):
    """
    Render a viewport into a fresh buffer.

    Args:
        viewport: A Viewport or a (x_min, x_max, y_min, y_max) tuple
        max_iter: Iteration cap (clamped to at least 1)
        continuous: Color mode flag
        width, height: Output dimensions in pixels
        workers: Threads to use (None = hardware parallelism)

    Returns:
        (height, width, 3) uint8 array
    """
    if hasattr(viewport, 'bounds'):
        bounds = viewport.bounds()
    else:
        bounds = tuple(float(b) for b in viewport)
    snapshot = RenderSnapshot(*bounds, max(1, int(max_iter)), bool(continuous))
    # A private renderer, so its buffer is ours to hand back
    renderer = MandelbrotRenderer(width, height, workers=workers)
    return renderer.render(snapshot)
