"""
Mandelbrot Set Viewer Package

An interactive Mandelbrot set explorer using Pygame for display and
Numba for JIT-compiled, multi-threaded computation.

Quick Start:
    from mandelbrot_viewer import run
    run()

Or from command line:
    python -m mandelbrot_viewer

Package Structure:
    - viewport.py: Region of the complex plane and pixel mapping
    - compute.py: JIT-compiled escape-time and band kernels
    - colormaps.py: Continuous and grayscale color modes
    - renderer.py: Fork/join parallel rasterizer and render surface
    - context.py: Shared render state (viewport, cap, color mode)
    - commands.py: Console commands
    - config.py: Settings file and logging setup
    - app.py: Main application and event loop

Controls:
    - Left click: Zoom in at mouse position
    - Right click: Zoom out
    - R: Reset to default view
    - C: Toggle continuous / grayscale
    - + / -: More / fewer iterations
    - ESC: Quit
"""

from .viewport import Viewport, pixel_to_plane
from .compute import evaluate, escape_time
from .colormaps import COLOR_MODES, color_for, get_color_mode, list_color_mode_names
from .context import RenderContext, RenderSnapshot
from .renderer import MandelbrotRenderer, RenderSurface, RenderError, partition_rows, render


def run(settings=None, console=True):
    """Open the viewer window (imports pygame on first use)."""
    from .app import run as _run
    _run(settings, console=console)


__version__ = "1.0.0"
__all__ = [
    "run",
    "Viewport",
    "pixel_to_plane",
    "evaluate",
    "escape_time",
    "COLOR_MODES",
    "color_for",
    "get_color_mode",
    "list_color_mode_names",
    "RenderContext",
    "RenderSnapshot",
    "MandelbrotRenderer",
    "RenderSurface",
    "RenderError",
    "partition_rows",
    "render",
]
