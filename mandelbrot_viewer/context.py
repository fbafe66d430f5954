"""
Render context: the single owner of everything a render pass reads.

The display loop and the console thread both mutate the same view. Rather
than module-level globals, they share one RenderContext and go through its
setters. snapshot() freezes the viewport bounds, iteration cap and color
mode under one lock, and the renderer works only from that frozen copy.
"""

import logging
import threading
from collections import namedtuple

from .colormaps import CONTINUOUS, color_mode_name
from .viewport import Viewport

logger = logging.getLogger(__name__)


DEFAULT_MAX_ITER = 1000
MAX_ITER_LIMIT = 100000  # Hard ceiling so a typo can't hang the renderer


RenderSnapshot = namedtuple(
    'RenderSnapshot',
    ['x_min', 'x_max', 'y_min', 'y_max', 'max_iter', 'continuous']
)


class RenderContext:
    """
    Viewport plus render state (iteration cap and color mode).

    Attributes:
        viewport: The Viewport being displayed
        max_iter_limit: Upper bound applied by set_max_iter
    """

    def __init__(self, viewport=None, max_iter=DEFAULT_MAX_ITER,
                 continuous=CONTINUOUS, max_iter_limit=MAX_ITER_LIMIT):
        self.viewport = viewport if viewport is not None else Viewport()
        self.max_iter_limit = max(1, int(max_iter_limit))
        self._lock = threading.Lock()
        self._max_iter = self._clamp_iter(max_iter)
        self._continuous = bool(continuous)

    def __repr__(self):
        return "RenderContext(%r, max_iter=%d, mode=%s)" % (
            self.viewport, self._max_iter, color_mode_name(self._continuous)
        )

    def _clamp_iter(self, n):
        return min(self.max_iter_limit, max(1, int(n)))

    @property
    def max_iter(self):
        return self._max_iter

    @property
    def continuous(self):
        return self._continuous

    def set_max_iter(self, n):
        """
        Set the iteration cap, clamped to [1, max_iter_limit].

        Returns:
            The value actually applied
        """
        value = self._clamp_iter(n)
        with self._lock:
            self._max_iter = value
        if value != n:
            logger.info("Iteration cap %s clamped to %d", n, value)
        return value

    def adjust_max_iter(self, delta):
        """Add delta to the iteration cap (clamped); returns the new cap."""
        with self._lock:
            self._max_iter = self._clamp_iter(self._max_iter + delta)
            return self._max_iter

    def set_continuous(self, continuous):
        with self._lock:
            self._continuous = bool(continuous)

    def toggle_color_mode(self):
        """Flip between continuous and grayscale; returns the new flag."""
        with self._lock:
            self._continuous = not self._continuous
            return self._continuous

    def zoom_to(self, center_x, center_y, factor):
        """Zoom the viewport; see Viewport.zoom_to. Returns success."""
        with self._lock:
            return self.viewport.zoom_to(center_x, center_y, factor)

    def zoom_at_pixel(self, px, py, width, height, factor):
        """
        Zoom centred on a pixel of a width x height render.

        Returns:
            (accepted, center) where center is the plane point of the pixel
        """
        with self._lock:
            center = self.viewport.pixel_to_plane(px, py, width, height)
            accepted = self.viewport.zoom_to(center.real, center.imag, factor)
        return accepted, center

    def reset(self):
        """Restore the initial viewport. Cap and color mode are kept."""
        with self._lock:
            self.viewport.reset()

    def snapshot(self):
        """Freeze the current parameters for one render pass."""
        with self._lock:
            x_min, x_max, y_min, y_max = self.viewport.bounds()
            return RenderSnapshot(
                x_min, x_max, y_min, y_max, self._max_iter, self._continuous
            )
