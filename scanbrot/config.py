"""
Settings for the command-line renderer.

Defaults live in DEFAULT_SETTINGS. A settings.json file next to this module
(or one given with --settings) overrides them key by key, and command-line
flags override the file.
"""

import json
import logging
import os

from .palettes import palette_from_settings


logger = logging.getLogger(__name__)

SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')

DEFAULT_SETTINGS = {
    'palette': 'Hippi',
    'color_step': 6000.0,
    'width': 1024,
    'height': 768,
    'x': -0.00275,
    'y': 0.78912,
    'radius': 0.125689,
    'max_iter': 800,
    'smoothness': 8,
    'blend': 'reference',
    'file': 'mandelbrot.png',
    'custom_palettes': {},
}


class SettingsError(ValueError):
    """Raised when a settings file cannot be read or is invalid."""


def load_settings(path=None):
    """
    Load settings, merged over DEFAULT_SETTINGS.

    Args:
        path: Settings file to read. If None, the bundled settings.json is
            used when present.

    Returns:
        dict with every key of DEFAULT_SETTINGS. 'custom_palettes' maps
        palette names to tuples of ColorStop entries.

    Raises:
        SettingsError if an explicitly given file is missing, or if any file
        is not valid JSON, holds a value of the wrong type or an invalid
        palette
    """
    settings = dict(DEFAULT_SETTINGS)
    settings['custom_palettes'] = {}

    explicit = path is not None
    path = path if explicit else SETTINGS_PATH
    try:
        with open(path, 'r') as f:
            loaded = json.load(f)
    except FileNotFoundError as e:
        if explicit:
            raise SettingsError(f"settings file not found: {path}") from e
        logger.warning("Could not load %s: %s", path, e)
        return settings
    except json.JSONDecodeError as e:
        raise SettingsError(f"invalid JSON in {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise SettingsError(f"{path} must contain a JSON object")

    for key, value in loaded.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning("Ignoring unknown setting %r in %s", key, path)
            continue
        if key == 'custom_palettes':
            settings[key] = _load_palettes(value, path)
        else:
            settings[key] = _check_type(key, value, path)
    return settings


def _check_type(key, value, path):
    expected = type(DEFAULT_SETTINGS[key])
    # true/false load as bool, which isinstance() would accept as int
    if isinstance(value, bool):
        raise SettingsError(f"{key} in {path} must be {expected.__name__}, got {value!r}")
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        raise SettingsError(f"{key} in {path} must be {expected.__name__}, got {value!r}")
    return value


def _load_palettes(entries, path):
    if not isinstance(entries, dict):
        raise SettingsError(f"custom_palettes in {path} must be a JSON object")
    palettes = {}
    for name, stops in entries.items():
        try:
            palettes[name] = palette_from_settings(stops)
        except ValueError as e:
            raise SettingsError(f"invalid palette {name!r} in {path}: {e}") from e
    return palettes
