"""
PNG output for rendered buffers.

Buffers are handed to pygame as raw RGBA bytes and saved through
pygame.image.save, which picks the encoder from the file extension.
"""

import logging
import os

# Keep pygame's import banner out of CLI output
os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')

import pygame


logger = logging.getLogger(__name__)


class OutputError(OSError):
    """Raised when a rendered buffer cannot be encoded or written."""


def buffer_to_surface(buffer):
    """
    Wrap an (height, width, 4) uint8 RGBA buffer in a pygame Surface.

    The surface owns a copy of the pixel data.
    """
    height, width, channels = buffer.shape
    if channels != 4:
        raise ValueError(f"expected an RGBA buffer, got {channels} channels")
    return pygame.image.frombuffer(buffer.tobytes(), (width, height), 'RGBA').copy()


def save_png(buffer, path):
    """
    Encode a rendered buffer and write it to path.

    Args:
        buffer: (height, width, 4) uint8 RGBA array
        path: Destination file name

    Raises:
        OutputError if the file cannot be created or encoded
    """
    path = os.fspath(path)
    surface = buffer_to_surface(buffer)
    try:
        pygame.image.save(surface, path)
    except (pygame.error, OSError) as exc:
        raise OutputError(f"could not write image to {path!r}: {exc}") from exc
    logger.info("Saved %dx%d image to %s", surface.get_width(), surface.get_height(), path)
