import json
import logging

import pytest

from mandelbrot_viewer.__main__ import parse_args
from mandelbrot_viewer.config import (
    DEFAULT_SETTINGS,
    ConfigError,
    configure_logging,
    load_settings,
)


def write_settings(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data))
    return str(path)


def test_packaged_settings_match_defaults():
    assert load_settings() == DEFAULT_SETTINGS


def test_file_values_override_defaults(tmp_path):
    path = write_settings(tmp_path, {"width": 320, "color_mode": "grayscale"})
    settings = load_settings(path)
    assert settings["width"] == 320
    assert settings["color_mode"] == "grayscale"
    assert settings["height"] == DEFAULT_SETTINGS["height"]


def test_overrides_win_and_none_is_skipped(tmp_path):
    path = write_settings(tmp_path, {"max_iter": 200})
    settings = load_settings(path, {"max_iter": 300, "width": None})
    assert settings["max_iter"] == 300
    assert settings["width"] == DEFAULT_SETTINGS["width"]


def test_unknown_keys_ignored(tmp_path, caplog):
    path = write_settings(tmp_path, {"palette": "hot"})
    with caplog.at_level(logging.WARNING):
        settings = load_settings(path)
    assert "palette" not in settings
    assert "palette" in caplog.text


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "nope.json"))


def test_bad_json(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{width: 10")
    with pytest.raises(ConfigError):
        load_settings(str(path))


def test_non_object_json(tmp_path):
    path = write_settings(tmp_path, [1, 2, 3])
    with pytest.raises(ConfigError):
        load_settings(path)


@pytest.mark.parametrize("override", [
    {"width": 0},
    {"height": -4},
    {"max_iter": 2.5},
    {"max_iter": 10, "max_iter_limit": 5},
    {"zoom_factor": 1.0},
    {"zoom_factor": 0},
    {"min_width": 0},
    {"iter_step": -1},
    {"color_mode": "hot"},
    {"workers": 0},
    {"workers": True},
    {"iter_step": True},
    {"iter_increment_on_zoom": False},
    {"log_level": "LOUD"},
])
def test_invalid_values(override):
    with pytest.raises(ConfigError):
        load_settings(overrides=override)


def test_configure_logging_with_file(tmp_path):
    log_file = tmp_path / "viewer.log"
    root = logging.getLogger()
    saved = list(root.handlers)
    try:
        configure_logging("WARNING", str(log_file))
        logging.getLogger("mandelbrot_viewer.test").info("Zoomed to (0.25, 0.0)")
        for handler in root.handlers:
            handler.flush()
        assert "Zoomed to (0.25, 0.0)" in log_file.read_text()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved:
            root.addHandler(handler)


def test_cli_arguments():
    args = parse_args(["--width", "320", "--max-iter", "64",
                       "--color-mode", "grayscale", "--no-console"])
    assert args.width == 320
    assert args.max_iter == 64
    assert args.color_mode == "grayscale"
    assert args.console is False
    assert args.settings is None

    defaults = parse_args([])
    assert defaults.console is True
    assert defaults.workers is None
