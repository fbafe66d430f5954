"""
Settings and logging setup.

Settings live in a JSON file (settings.json next to this module by
default). Whatever the file provides is merged over DEFAULT_SETTINGS and
validated; the result is a plain dict.
"""

import json
import logging
import os

from .colormaps import COLOR_MODES

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')

DEFAULT_SETTINGS = {
    'width': 800,
    'height': 800,
    'max_iter': 1000,
    'max_iter_limit': 100000,
    'min_width': 1e-13,
    'zoom_factor': 0.2,
    'iter_increment_on_zoom': 50,
    'iter_step': 100,
    'color_mode': 'continuous',
    'workers': None,
    'log_level': 'INFO',
    'log_file': None,
}


class ConfigError(ValueError):
    """Settings file missing or holding invalid values."""


def _read_json(path):
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object, got {type(data).__name__}")
    return data


def load_settings(path=None, overrides=None):
    """
    Load settings from a JSON file.

    Args:
        path: Settings file. None means the packaged settings.json, which
            may be absent or broken (falls back to defaults with a warning).
            An explicit path must exist and parse.
        overrides: Optional dict applied last (None values are skipped),
            e.g. command line arguments

    Returns:
        Validated settings dict

    Raises:
        ConfigError on a bad explicit file or invalid values
    """
    settings = dict(DEFAULT_SETTINGS)

    if path is None:
        try:
            loaded = _read_json(DEFAULT_SETTINGS_PATH)
        except (OSError, ValueError) as e:
            logger.warning("Could not load %s: %s", DEFAULT_SETTINGS_PATH, e)
            loaded = {}
    else:
        try:
            loaded = _read_json(path)
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    for key, value in loaded.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        settings[key] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            settings[key] = value

    validate_settings(settings)
    return settings


def validate_settings(settings):
    """Raise ConfigError if any setting is out of range."""
    for key in ('width', 'height', 'max_iter', 'max_iter_limit'):
        value = settings[key]
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigError(f"{key} must be a positive integer, got {value!r}")

    if settings['max_iter'] > settings['max_iter_limit']:
        raise ConfigError(
            f"max_iter {settings['max_iter']} exceeds max_iter_limit "
            f"{settings['max_iter_limit']}"
        )

    factor = settings['zoom_factor']
    if not isinstance(factor, (int, float)) or not 0 < factor < 1:
        raise ConfigError(f"zoom_factor must be in (0, 1), got {factor!r}")

    min_width = settings['min_width']
    if not isinstance(min_width, (int, float)) or min_width <= 0:
        raise ConfigError(f"min_width must be positive, got {min_width!r}")

    for key in ('iter_increment_on_zoom', 'iter_step'):
        value = settings[key]
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")

    if str(settings['color_mode']).lower() not in COLOR_MODES:
        raise ConfigError(
            f"Unknown color_mode {settings['color_mode']!r} "
            f"(choose from {', '.join(COLOR_MODES)})"
        )

    workers = settings['workers']
    if workers is not None and (
            not isinstance(workers, int) or isinstance(workers, bool) or workers < 1):
        raise ConfigError(f"workers must be a positive integer or null, got {workers!r}")

    if not isinstance(logging.getLevelName(str(settings['log_level']).upper()), int):
        raise ConfigError(f"Unknown log_level {settings['log_level']!r}")


def configure_logging(level='INFO', log_file=None):
    """
    Send log records to the console and, optionally, to a file.

    The file handler records everything at DEBUG with timestamps and
    thread ids, which is where accepted zoom coordinates end up.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(str(level).upper())
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s.%(msecs)03d - %(name)s - TH%(thread)d - %(levelname)s - %(message)s',
            '%H:%M:%S'
        ))
        root.addHandler(file_handler)
