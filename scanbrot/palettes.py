"""
Palette definitions and gradient expansion for Mandelbrot rendering.

A palette is an ordered tuple of ColorStop entries. Each stop carries a
position along the gradient (0.0 - 1.0) and an 8-bit RGBA color. A position
of 0.0 on any stop but the first means "place me automatically".

expand_palette() turns a palette into a dense numpy array of shape (n, 4)
with uint8 RGBA values, using cosine easing between adjacent stops. The
renderer blends between neighbouring entries of that array per pixel.

To add a new palette:
1. Add an entry to the PALETTES dictionary below
2. Or define it under "custom_palettes" in settings.json
"""

from collections import namedtuple

import numpy as np

from .compute import cosine_interpolation, pack_rgba, unpack_rgb


ColorStop = namedtuple('ColorStop', ['step', 'color'])


class PaletteNotFoundError(KeyError):
    """Raised when a palette keyword is not in the registry."""

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"palette not found: {self.name!r}"


def _stops(*entries):
    return tuple(ColorStop(float(step), tuple(color)) for step, color in entries)


# Registry of built-in palettes.
# Keys are the keywords accepted by --palette.
PALETTES = {
    'Hippi': _stops(
        (0.0, (0xff, 0xff, 0xff, 0xff)),
        (0.02, (0xe5, 0x6b, 0xfa, 0xff)),
        (0.2, (0x8a, 0x2b, 0xe2, 0xff)),
        (0.4, (0x00, 0x9a, 0xcd, 0xff)),
        (0.6, (0x3c, 0xd2, 0x6e, 0xff)),
        (0.8, (0xff, 0xd7, 0x00, 0xff)),
        (1.0, (0xff, 0x45, 0x00, 0xff)),
    ),
    'Plan9': _stops(
        (0.0, (0x00, 0x00, 0x00, 0xff)),
        (0.1, (0x1e, 0x3c, 0x78, 0xff)),
        (0.3, (0xea, 0xff, 0xff, 0xff)),
        (0.5, (0x99, 0x99, 0x4c, 0xff)),
        (0.7, (0xff, 0xff, 0xea, 0xff)),
        (0.9, (0x44, 0x88, 0xcc, 0xff)),
        (1.0, (0x00, 0x00, 0x00, 0xff)),
    ),
    'AfternoonBlue': _stops(
        (0.0, (0x91, 0xd4, 0xf2, 0xff)),
        (0.0, (0x4f, 0x9d, 0xd9, 0xff)),
        (0.0, (0x1f, 0x4e, 0x8c, 0xff)),
        (0.0, (0xf2, 0xe8, 0xc9, 0xff)),
        (0.0, (0x0d, 0x1b, 0x40, 0xff)),
    ),
    'SummerBeach': _stops(
        (0.0, (0xff, 0xf4, 0xd6, 0xff)),
        (0.0, (0xfc, 0xc0, 0x7e, 0xff)),
        (0.0, (0xf2, 0x7c, 0x5a, 0xff)),
        (0.0, (0x2b, 0xa5, 0xb5, 0xff)),
        (0.0, (0x0b, 0x4f, 0x6c, 0xff)),
    ),
    'Biochimist': _stops(
        (0.0, (0x0a, 0x0a, 0x0a, 0xff)),
        (0.15, (0x1b, 0x5e, 0x20, 0xff)),
        (0.35, (0x7c, 0xb3, 0x42, 0xff)),
        (0.55, (0xf9, 0xfb, 0xe7, 0xff)),
        (0.75, (0x8e, 0x24, 0xaa, 0xff)),
        (1.0, (0x12, 0x00, 0x5e, 0xff)),
    ),
    'Fiesta': _stops(
        (0.0, (0x06, 0x4a, 0x53, 0xff)),
        (0.0, (0xff, 0xc8, 0x57, 0xff)),
        (0.0, (0xe9, 0x72, 0x4c, 0xff)),
        (0.0, (0xc5, 0x28, 0x3d, 0xff)),
        (0.0, (0x48, 0x1d, 0x24, 0xff)),
        (0.0, (0x25, 0x5f, 0x85, 0xff)),
    ),
    'Grayscale': _stops(
        (0.0, (0x00, 0x00, 0x00, 0xff)),
        (1.0, (0xff, 0xff, 0xff, 0xff)),
    ),
}


def get_palette(name, custom=None):
    """
    Look up a palette by exact keyword.

    Args:
        name: Palette keyword, e.g. 'Hippi'
        custom: Optional mapping of user-defined palettes, checked after
            the built-in registry

    Returns:
        Tuple of ColorStop entries

    Raises:
        PaletteNotFoundError if name is in neither registry
    """
    if name in PALETTES:
        return PALETTES[name]
    if custom and name in custom:
        return custom[name]
    raise PaletteNotFoundError(name)


def list_palette_names(custom=None):
    """Get list of available palette names."""
    names = list(PALETTES.keys())
    if custom:
        names.extend(n for n in custom if n not in PALETTES)
    return names


def stop_positions(stops):
    """
    Resolve the effective position of every stop.

    An unset (0.0) position on a stop other than the first is derived from
    its index and truncated to two decimal digits.
    """
    total = len(stops)
    positions = []
    for index, stop in enumerate(stops):
        if stop.step == 0.0 and index != 0:
            ratio = (index + 1) / total
            positions.append(int(ratio * 100) / 100)
        else:
            positions.append(stop.step)
    return positions


def _parse_hex_color(text):
    hex_color = text.lstrip('#')
    if len(hex_color) not in (6, 8):
        raise ValueError(f"color {text!r} must be in the form #RRGGBB or #RRGGBBAA.")
    try:
        channels = [int(hex_color[i:i + 2], 16) for i in range(0, len(hex_color), 2)]
    except ValueError as exc:
        raise ValueError(f"color {text!r} must contain only hexadecimal digits.") from exc
    if len(channels) == 3:
        channels.append(0xff)
    return tuple(channels)


def palette_from_settings(entries):
    """
    Build a palette from its JSON representation.

    Args:
        entries: List of [step, "#RRGGBB"] pairs (alpha optional)

    Returns:
        Tuple of ColorStop entries

    Raises:
        ValueError if an entry is malformed, the positions are out of
            order, or there are fewer than 2 stops
    """
    stops = []
    for entry in entries:
        try:
            step, color = entry
        except (TypeError, ValueError) as exc:
            raise ValueError(f"palette stop {entry!r} must be a [step, color] pair.") from exc
        step = float(step)
        if not 0.0 <= step <= 1.0:
            raise ValueError(f"palette stop position {step} is outside [0, 1].")
        stops.append(ColorStop(step, _parse_hex_color(color)))
    if len(stops) < 2:
        raise ValueError("a palette needs at least 2 stops.")
    if stops[0].step != 0.0:
        raise ValueError("the first palette stop must be at position 0.")
    positions = stop_positions(stops)
    if any(b < a for a, b in zip(positions, positions[1:])):
        raise ValueError(f"palette stop positions {positions} are not in increasing order.")
    return tuple(stops)


def expand_palette(stops, samples):
    """
    Expand a palette into a dense gradient.

    Sample positions start at 0 and step by 1/samples while they stay <= 1.
    The step accumulates in floating point, so the last position may land
    just below or just above 1.0. Positions that fall outside every pair of
    adjacent stops produce no entry, so the result can be shorter than
    samples + 1.

    Each entry interpolates the packed 32-bit colors of its bracketing stops
    with a cosine-eased weight. The interpolation starts at the upper stop's
    color and eases towards the lower one.

    Args:
        stops: Tuple of ColorStop entries
        samples: Requested number of samples (float or int, > 0)

    Returns:
        numpy array of shape (n, 4), uint8 RGBA, alpha always 255
    """
    positions = stop_positions(stops)
    packed = [pack_rgba(*stop.color) for stop in stops]
    factor = 1.0 / samples

    values = []
    p = 0.0
    while p <= 1:
        for j in range(len(stops) - 1):
            lo, hi = positions[j], positions[j + 1]
            if lo <= p < hi:
                value = cosine_interpolation(packed[j + 1], packed[j], (p - lo) / (hi - lo))
                values.append(int(value) & 0xFFFFFFFF)
        p += factor

    gradient = np.empty((len(values), 4), dtype=np.uint8)
    for i, value in enumerate(values):
        gradient[i, :3] = unpack_rgb(value)
        gradient[i, 3] = 0xff
    return gradient


def create_gradient(name, samples, custom=None):
    """Look up a palette by name and expand it to samples entries."""
    return expand_palette(get_palette(name, custom), samples)
