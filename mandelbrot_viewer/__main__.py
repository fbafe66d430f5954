"""
Allow running the package directly: python -m mandelbrot_viewer
"""
import argparse
import logging
import sys

from .colormaps import list_color_mode_names
from .config import ConfigError, configure_logging, load_settings

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="mandelbrot_viewer",
        description="Interactive Mandelbrot set viewer"
    )
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--max-iter", dest="max_iter", type=int, default=None)
    parser.add_argument("--color-mode", dest="color_mode", default=None,
                        choices=list_color_mode_names())
    parser.add_argument("--workers", type=int, default=None,
                        help="threads per render (default: all cores)")
    parser.add_argument("--settings", default=None,
                        help="JSON settings file (default: packaged settings.json)")
    parser.add_argument("--log-level", dest="log_level", default=None)
    parser.add_argument("--log-file", dest="log_file", default=None,
                        help="also log (including zoom coordinates) to this file")
    parser.add_argument("--no-console", dest="console", action="store_false",
                        help="don't read commands from stdin")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    overrides = {
        'width': args.width,
        'height': args.height,
        'max_iter': args.max_iter,
        'color_mode': args.color_mode,
        'workers': args.workers,
        'log_level': args.log_level,
        'log_file': args.log_file,
    }
    try:
        settings = load_settings(args.settings, overrides)
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        return 2

    configure_logging(settings['log_level'], settings['log_file'])

    # pygame is only needed once we actually open a window
    from .app import run
    run(settings, console=args.console)
    return 0


if __name__ == "__main__":
    sys.exit(main())
