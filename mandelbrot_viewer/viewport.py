"""
Viewport over the complex plane.

The Viewport holds the rectangle of the complex plane that is currently
mapped onto the pixel grid. All four bounds are always updated together
under a lock, so a renderer reading them through bounds() never sees a
half-applied zoom.
"""

import logging
import threading

logger = logging.getLogger(__name__)


# Classic overview of the set (x_min, x_max, y_min, y_max)
DEFAULT_BOUNDS = (-2.0, 1.0, -1.5, 1.5)

# Below this width double precision starts to collapse neighbouring pixels
DEFAULT_MIN_WIDTH = 1e-13


def pixel_to_plane(bounds, px, py, width, height):
    """
    Map a pixel coordinate onto the complex plane.

    Exact linear interpolation: plane_min + (plane_max - plane_min) * p / size.
    Row 0 maps to y_min.

    Args:
        bounds: (x_min, x_max, y_min, y_max)
        px, py: Pixel coordinate (may be fractional)
        width, height: Pixel grid dimensions

    Returns:
        complex point in the plane
    """
    x_min, x_max, y_min, y_max = bounds
    x = x_min + (x_max - x_min) * px / width
    y = y_min + (y_max - y_min) * py / height
    return complex(x, y)


class Viewport:
    """
    Mutable rectangular region of the complex plane.

    Attributes:
        min_width: Zoom requests that would make the view narrower than
            this are rejected
    """

    def __init__(self, bounds=DEFAULT_BOUNDS, min_width=DEFAULT_MIN_WIDTH):
        x_min, x_max, y_min, y_max = (float(b) for b in bounds)
        if not (x_min < x_max and y_min < y_max):
            raise ValueError(f"Degenerate viewport bounds: {bounds!r}")
        self.min_width = min_width
        self._initial = (x_min, x_max, y_min, y_max)
        self._bounds = self._initial
        self._lock = threading.Lock()

    def __repr__(self):
        return "Viewport(x=[%r, %r], y=[%r, %r])" % self.bounds()

    def bounds(self):
        """Return (x_min, x_max, y_min, y_max) as one consistent tuple."""
        with self._lock:
            return self._bounds

    @property
    def width(self):
        x_min, x_max, _, _ = self.bounds()
        return x_max - x_min

    @property
    def height(self):
        _, _, y_min, y_max = self.bounds()
        return y_max - y_min

    @property
    def center(self):
        x_min, x_max, y_min, y_max = self.bounds()
        return complex((x_min + x_max) / 2, (y_min + y_max) / 2)

    def scale(self, pixel_width, pixel_height):
        """Plane units per pixel along each axis."""
        x_min, x_max, y_min, y_max = self.bounds()
        return (x_max - x_min) / pixel_width, (y_max - y_min) / pixel_height

    def pixel_to_plane(self, px, py, pixel_width, pixel_height):
        """Map a pixel of a pixel_width x pixel_height grid onto the plane."""
        return pixel_to_plane(self.bounds(), px, py, pixel_width, pixel_height)

    def zoom_to(self, center_x, center_y, factor):
        """
        Re-center the view and scale its half-widths by factor.

        A factor in (0, 1) zooms in; a factor >= 1 zooms out. If the new
        width would fall below min_width the view is left untouched.

        Args:
            center_x, center_y: New center in plane coordinates
            factor: Multiplier applied to the current half-width/half-height

        Returns:
            True if the view changed, False if the request was rejected
        """
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor!r}")

        with self._lock:
            x_min, x_max, y_min, y_max = self._bounds
            half_w = (x_max - x_min) / 2 * factor
            half_h = (y_max - y_min) / 2 * factor

            if 2 * half_w < self.min_width:
                logger.warning(
                    "Zoom rejected: width %.3g would fall below minimum %.3g",
                    2 * half_w, self.min_width
                )
                return False

            new_bounds = (
                center_x - half_w, center_x + half_w,
                center_y - half_h, center_y + half_h
            )
            # Float rounding can collapse a tiny span to nothing
            if not (new_bounds[0] < new_bounds[1] and new_bounds[2] < new_bounds[3]):
                logger.warning("Zoom rejected: bounds collapsed at %r", new_bounds)
                return False

            self._bounds = new_bounds
        return True

    def reset(self):
        """Restore the initial view."""
        with self._lock:
            self._bounds = self._initial
