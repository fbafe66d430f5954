"""
Main application module for the Mandelbrot visualizer.

Contains the MandelbrotApp class which handles:
- Window setup and main loop
- User input (click-to-zoom, keyboard)
- Console commands read on a background thread
- Rendering and display

Rendering is synchronous: whenever input marks the frame dirty, the main
loop calls the renderer, which blocks until every band is done, then
blits the finished buffer.
"""

import logging
import queue
import sys
import threading

import pygame

from .colormaps import color_mode_name, get_color_mode
from .commands import (
    CommandError,
    apply_command,
    apply_zoom_policy,
    describe_view,
    parse_command,
)
from .compute import warmup_jit
from .config import DEFAULT_SETTINGS
from .context import RenderContext
from .renderer import MandelbrotRenderer
from .viewport import Viewport

logger = logging.getLogger(__name__)


class ConsoleReader:
    """
    Reads commands from a text stream on a daemon thread.

    Parsed commands are put on a queue for the display loop; the reader
    never touches the render context itself.
    """

    def __init__(self, commands, stream=None):
        self.commands = commands
        self.stream = stream if stream is not None else sys.stdin
        self.thread = None

    def start(self):
        self.thread = threading.Thread(target=self._read_thread, name="console")
        self.thread.daemon = True
        self.thread.start()

    def _read_thread(self):
        print("Type 'help' for commands.")
        for line in self.stream:
            try:
                command = parse_command(line)
            except CommandError as e:
                logger.warning("%s", e)
                continue
            if command is not None:
                self.commands.put(command)
                if command.name == 'quit':
                    return
        # EOF on stdin: nothing more will arrive
        logger.debug("Console input closed")


class MandelbrotApp:
    """
    Main application class for the Mandelbrot visualizer.

    Handles the pygame window, event loop, and coordinates
    between the console, the render context and the renderer.
    """

    TITLE = "Mandelbrot Set - Click to zoom, right-click to zoom out, R to reset, C for color"

    def __init__(self, settings=None, console=True):
        """
        Initialize the application.

        Args:
            settings: Settings dict (see config.load_settings); missing
                keys take their defaults
            console: Whether to read commands from stdin
        """
        self.settings = dict(DEFAULT_SETTINGS)
        self.settings.update(settings or {})
        self.width = self.settings['width']
        self.height = self.settings['height']
        self.zoom_factor = self.settings['zoom_factor']

        self.context = RenderContext(
            Viewport(min_width=self.settings['min_width']),
            max_iter=self.settings['max_iter'],
            continuous=get_color_mode(self.settings['color_mode']),
            max_iter_limit=self.settings['max_iter_limit'],
        )
        self.renderer = MandelbrotRenderer(
            self.width, self.height, workers=self.settings['workers']
        )

        # Commands from the console thread
        self.commands = queue.Queue()
        self.console = ConsoleReader(self.commands) if console else None

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None
        self.current_surface = None

        self.needs_render = True
        self.status = ""
        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        warmup_jit()
        if self.console is not None:
            self.console.start()

        logger.info("Starting: %s", describe_view(self.context))

        self.running = True
        while self.running:
            self._handle_events()
            self._handle_commands()

            if self.needs_render:
                self._render()
            self._draw()

            self.clock.tick(60)

        pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode((self.width, self.height))
        pygame.display.set_caption("Compiling (first run only)...")
        self.clock = pygame.time.Clock()

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.MOUSEBUTTONDOWN:
                self._handle_click(event)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event)

    def _handle_click(self, event):
        """Left click zooms in at the cursor, right click zooms out."""
        if event.button == 1:
            factor = self.zoom_factor
        elif event.button == 3:
            factor = 1.0 / self.zoom_factor
        else:
            return
        px, py = event.pos
        self.zoom_at_pixel(px, py, factor)

    def zoom_at_pixel(self, px, py, factor):
        """
        Zoom centred on a window pixel.

        Returns:
            True if the zoom was applied
        """
        accepted, center = self.context.zoom_at_pixel(
            px, py, self.width, self.height, factor
        )
        if accepted:
            apply_zoom_policy(
                self.context, accepted, factor,
                self.settings['iter_increment_on_zoom']
            )
            logger.info("Zoomed to (%r, %r) x%g", center.real, center.imag, factor)
            self.status = ""
            self.needs_render = True
        else:
            self.status = "Zoom limit reached"
            logger.warning("Zoom at (%r, %r) rejected: precision limit",
                           center.real, center.imag)
        return accepted

    def _handle_key(self, event):
        """Handle keyboard input."""
        if event.key == pygame.K_r:
            self.context.reset()
            self.needs_render = True
        elif event.key == pygame.K_c:
            self.context.toggle_color_mode()
            self.needs_render = True
        elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self.context.adjust_max_iter(self.settings['iter_step'])
            self.needs_render = True
        elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self.context.adjust_max_iter(-self.settings['iter_step'])
            self.needs_render = True
        elif event.key == pygame.K_ESCAPE:
            self.running = False

    def _handle_commands(self):
        """Apply every command queued by the console thread."""
        while True:
            try:
                command = self.commands.get_nowait()
            except queue.Empty:
                return
            self.execute(command)

    def execute(self, command):
        """Apply one parsed console command and report its result."""
        result = apply_command(
            self.context, command,
            zoom_factor=self.zoom_factor,
            iter_step=self.settings['iter_step'],
            iter_increment_on_zoom=self.settings['iter_increment_on_zoom'],
        )
        print(result.message)
        if result.rerender:
            self.needs_render = True
        if result.quit:
            self.running = False
        return result

    def _render(self):
        """Render the current view and turn it into a pygame surface."""
        pygame.display.set_caption("Computing...")
        rgb = self.renderer.render(self.context)
        # surfarray is indexed [x, y]
        self.current_surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
        self.needs_render = False

        snap = self.renderer.surface.snapshot
        pygame.display.set_caption("%s | iter %d, %s" % (
            self.TITLE, snap.max_iter, color_mode_name(snap.continuous)
        ))

    def _draw(self):
        """Draw the current frame."""
        if self.current_surface is not None:
            self.screen.blit(self.current_surface, (0, 0))
        if self.status:
            pygame.display.set_caption("%s | %s" % (self.TITLE, self.status))
            self.status = ""
        pygame.display.flip()


def run(settings=None, console=True):
    """
    Run the Mandelbrot visualizer.

    Args:
        settings: Settings dict (default: config defaults)
        console: Read commands from stdin
    """
    app = MandelbrotApp(settings, console=console)
    try:
        app.run()
    except KeyboardInterrupt:
        pygame.quit()
