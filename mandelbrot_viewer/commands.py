"""
Text commands for driving the viewer from a console.

One command per line:

    zoom X Y [FACTOR]   zoom centred on plane point X + Yi
    reset               back to the initial view
    iter N              set the iteration cap
    more [K] / less [K] raise / lower the iteration cap
    color MODE          continuous | grayscale
    toggle              switch color mode
    where               print the current view
    help                list commands
    quit                close the viewer

parse_command() turns a line into a Command; apply_command() runs it
against a RenderContext. Neither touches the display: the caller decides
when to re-render.
"""

import logging
import re
from collections import namedtuple

from .colormaps import COLOR_MODES, color_mode_name, get_color_mode

logger = logging.getLogger(__name__)


Command = namedtuple('Command', ['name', 'args'])
CommandResult = namedtuple('CommandResult', ['message', 'rerender', 'quit'])


class CommandError(ValueError):
    """Unparseable or invalid console input."""


HELP_TEXT = """Commands:
  zoom X Y [FACTOR]   zoom centred on X + Yi (FACTOR < 1 zooms in)
  reset               restore the initial view
  iter N              set the iteration cap
  more [K], less [K]  raise / lower the iteration cap
  color MODE          one of: {modes}
  toggle              switch color mode
  where               show the current view
  quit                close the viewer""".format(modes=', '.join(COLOR_MODES))

# Alternative spellings accepted for each command
_ALIASES = {
    'z': 'zoom',
    'r': 'reset',
    'home': 'reset',
    'iterations': 'iter',
    'maxiter': 'iter',
    'max_iter': 'iter',
    '+': 'more',
    '-': 'less',
    'colour': 'color',
    'mode': 'color',
    't': 'toggle',
    'status': 'where',
    'pos': 'where',
    '?': 'help',
    'h': 'help',
    'q': 'quit',
    'exit': 'quit',
}

_NUMBER = re.compile(r'^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$')


def _to_float(token, what):
    if not _NUMBER.match(token):
        raise CommandError(f"{what} must be a number, got {token!r}")
    return float(token)


def _to_int(token, what):
    if not re.match(r'^[-+]?\d+$', token):
        raise CommandError(f"{what} must be an integer, got {token!r}")
    return int(token)


def _expect_args(name, args, low, high):
    if not low <= len(args) <= high:
        if low == high:
            expected = str(low)
        else:
            expected = f"{low} to {high}"
        raise CommandError(f"'{name}' takes {expected} argument(s), got {len(args)}")


def parse_command(line):
    """
    Parse one console line.

    Commas are treated as separators, so "zoom -0.5, 0" works.

    Returns:
        Command(name, args) with args already converted, or None for a
        blank line

    Raises:
        CommandError if the line is not a valid command
    """
    tokens = line.replace(',', ' ').split()
    if not tokens:
        return None

    name = tokens[0].lower()
    name = _ALIASES.get(name, name)
    args = tokens[1:]

    if name == 'zoom':
        _expect_args(name, args, 2, 3)
        x = _to_float(args[0], 'X')
        y = _to_float(args[1], 'Y')
        if len(args) == 3:
            factor = _to_float(args[2], 'FACTOR')
            if factor <= 0:
                raise CommandError(f"FACTOR must be positive, got {factor}")
            return Command(name, (x, y, factor))
        return Command(name, (x, y))

    if name == 'iter':
        _expect_args(name, args, 1, 1)
        n = _to_int(args[0], 'N')
        if n < 1:
            raise CommandError(f"Iteration cap must be at least 1, got {n}")
        return Command(name, (n,))

    if name in ('more', 'less'):
        _expect_args(name, args, 0, 1)
        if args:
            k = _to_int(args[0], 'K')
            if k < 0:
                raise CommandError(f"K must not be negative, got {k}")
            return Command(name, (k,))
        return Command(name, ())

    if name == 'color':
        _expect_args(name, args, 1, 1)
        try:
            get_color_mode(args[0])
        except KeyError:
            raise CommandError(
                f"Unknown color mode {args[0]!r} (choose from {', '.join(COLOR_MODES)})"
            ) from None
        return Command(name, (args[0].lower(),))

    if name in ('reset', 'toggle', 'where', 'help', 'quit'):
        _expect_args(name, args, 0, 0)
        return Command(name, ())

    raise CommandError(f"Unknown command {tokens[0]!r} (try 'help')")


def apply_zoom_policy(context, accepted, factor, increment):
    """
    Raise the iteration cap by increment after an accepted zoom-in.

    Deeper views need more iterations to resolve; this keeps that rule
    with the input handlers and out of the render engine.
    """
    if accepted and factor < 1 and increment > 0:
        return context.adjust_max_iter(increment)
    return context.max_iter


def describe_view(context):
    """One-line summary of a RenderContext."""
    snap = context.snapshot()
    center_x = (snap.x_min + snap.x_max) / 2
    center_y = (snap.y_min + snap.y_max) / 2
    return (
        f"x=[{snap.x_min:.15g}, {snap.x_max:.15g}] "
        f"y=[{snap.y_min:.15g}, {snap.y_max:.15g}] "
        f"center=({center_x:.15g}, {center_y:.15g}) "
        f"width={snap.x_max - snap.x_min:.3g} "
        f"max_iter={snap.max_iter} mode={color_mode_name(snap.continuous)}"
    )


def apply_command(context, command, zoom_factor=0.2, iter_step=100,
                  iter_increment_on_zoom=0):
    """
    Run a parsed command against a RenderContext.

    Args:
        context: RenderContext to mutate
        command: Command from parse_command
        zoom_factor: Factor used when 'zoom' is given no FACTOR
        iter_step: Default step for 'more' / 'less'
        iter_increment_on_zoom: Cap increase after an accepted zoom-in

    Returns:
        CommandResult(message, rerender, quit)
    """
    name, args = command

    if name == 'zoom':
        x, y = args[0], args[1]
        factor = args[2] if len(args) == 3 else zoom_factor
        accepted = context.zoom_to(x, y, factor)
        if not accepted:
            return CommandResult(
                f"Zoom rejected: view would be narrower than {context.viewport.min_width:g}",
                False, False
            )
        apply_zoom_policy(context, accepted, factor, iter_increment_on_zoom)
        logger.info("Zoomed to (%r, %r) x%g", x, y, factor)
        return CommandResult(describe_view(context), True, False)

    if name == 'reset':
        context.reset()
        return CommandResult(describe_view(context), True, False)

    if name == 'iter':
        applied = context.set_max_iter(args[0])
        return CommandResult(f"max_iter={applied}", True, False)

    if name in ('more', 'less'):
        step = args[0] if args else iter_step
        applied = context.adjust_max_iter(step if name == 'more' else -step)
        return CommandResult(f"max_iter={applied}", True, False)

    if name == 'color':
        context.set_continuous(get_color_mode(args[0]))
        return CommandResult(f"mode={color_mode_name(context.continuous)}", True, False)

    if name == 'toggle':
        continuous = context.toggle_color_mode()
        return CommandResult(f"mode={color_mode_name(continuous)}", True, False)

    if name == 'where':
        return CommandResult(describe_view(context), False, False)

    if name == 'help':
        return CommandResult(HELP_TEXT, False, False)

    if name == 'quit':
        return CommandResult("Bye", False, True)

    raise CommandError(f"Unknown command {name!r}")
