"""
Scanline Mandelbrot renderer.

The ScanlineRenderer class handles:
- Validation of the render parameters and of the complex-plane viewport
- Expansion of the selected palette into a gradient
- Parallel computation of every row of the oversampled buffer
- A one-shot completion event for callers that report progress

Rows are the unit of work. Each row task writes only its own row of the
buffer, so no locking is needed on the buffer itself. The buffer is marked
read-only once every row has finished and only then handed out.
"""

import logging
import math
import numbers
from dataclasses import dataclass

import numba
import numpy as np

from .compute import BLEND_MODES, render_rows, render_rows_serial
from .palettes import create_gradient


logger = logging.getLogger(__name__)


class InvalidViewportError(ValueError):
    """Raised when the viewport bounds cannot be mapped onto pixels."""


@dataclass(frozen=True)
class RenderConfig:
    """
    Parameters that describe a single render.

    Attributes:
        palette: Palette keyword
        x, y: Viewport center in the complex plane
        radius: Width of the viewport in the complex plane
        width, height: Output size before oversampling
        smoothness: Oversampling factor applied to both dimensions
        max_iter: Iteration cap
        color_step: Requested gradient sample count
        blend: 'reference' or 'fractional' (see compute.colorize)
    """

    palette: str = 'Hippi'
    x: float = -0.00275
    y: float = 0.78912
    radius: float = 0.125689
    width: int = 1024
    height: int = 768
    smoothness: int = 8
    max_iter: int = 800
    color_step: float = 6000.0
    blend: str = 'reference'

    def __post_init__(self):
        if not isinstance(self.palette, str):
            raise ValueError(f"palette must be a string, got {self.palette!r}")
        for name in ('x', 'y', 'radius', 'color_step'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a number, got {value!r}")
        for name in ('width', 'height', 'smoothness', 'max_iter'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")
        if not self.color_step > 0:
            raise ValueError(f"color_step must be positive, got {self.color_step}")
        if not isinstance(self.blend, str) or self.blend not in BLEND_MODES:
            raise ValueError(f"blend must be one of {sorted(BLEND_MODES)}, got {self.blend!r}")

    @property
    def render_width(self):
        return self.width * self.smoothness

    @property
    def render_height(self):
        return self.height * self.smoothness

    @property
    def gradient_samples(self):
        """Gradient size, never below the iteration cap."""
        return max(float(self.color_step), float(self.max_iter))


@dataclass(frozen=True)
class Viewport:
    """Bounds of the rendered region in the complex plane."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float


def compute_viewport(config):
    """
    Compute the complex-plane bounds for a render.

    The region is radius wide and radius * height / width tall, centered on
    (x, y). Only the upper bounds are passed through abs(), so a center far
    enough below zero gives an asymmetric window: x = -1, radius = 0.5
    yields xmin = -1.25 and xmax = 0.75.

    Raises:
        InvalidViewportError if the bounds collapse, invert or are not
        finite, or if the buffer is a single pixel wide
    """
    width = config.render_width
    height = config.render_height
    if width < 2:
        raise InvalidViewportError(
            f"invalid viewport: oversampled width {width} leaves no room to map pixels")

    ratio = height / width
    xmin = config.x - config.radius / 2.0
    xmax = abs(config.x + config.radius / 2.0)
    ymin = config.y - config.radius * ratio / 2.0
    ymax = abs(config.y + config.radius * ratio / 2.0)

    viewport = Viewport(xmin, xmax, ymin, ymax)
    if not all(math.isfinite(v) for v in (xmin, xmax, ymin, ymax)):
        raise InvalidViewportError(f"invalid viewport: non-finite bounds {viewport}")
    if not (xmax > xmin and ymax > ymin):
        raise InvalidViewportError(f"invalid viewport: empty or inverted bounds {viewport}")
    return viewport


class ScanlineRenderer:
    """
    Renders a RenderConfig into an RGBA pixel buffer.

    Usage:
        renderer = ScanlineRenderer(RenderConfig(width=320, height=240))
        buffer = renderer.render()

    The parallel kernel runs on numba's thread pool and must be launched
    from the main thread. To report progress, run a ticker on a helper
    thread and pass render() a threading.Event to wait on.

    Attributes:
        config: The RenderConfig being rendered
        custom_palettes: Extra palettes looked up after the built-in ones
        parallel: Whether rows are computed on numba's thread pool
        num_threads: Thread count for the parallel loop (None = all cores)
    """

    def __init__(self, config, custom_palettes=None, parallel=True, num_threads=None):
        if num_threads is not None and not 1 <= num_threads <= numba.config.NUMBA_NUM_THREADS:
            raise ValueError(
                f"num_threads must be between 1 and {numba.config.NUMBA_NUM_THREADS}, got {num_threads}")
        self.config = config
        self.custom_palettes = custom_palettes
        self.parallel = parallel
        self.num_threads = num_threads

    def gradient(self):
        """Expand the configured palette. Raises PaletteNotFoundError."""
        return create_gradient(self.config.palette, self.config.gradient_samples,
                               self.custom_palettes)

    def render(self, done=None):
        """
        Render the full buffer on the calling thread.

        Args:
            done: Optional threading.Event, set once the render has
                finished whether it succeeded or raised

        Returns:
            Read-only uint8 array of shape (height * smoothness,
            width * smoothness, 4). Pixels that were not colored stay
            (0, 0, 0, 0).

        Raises:
            PaletteNotFoundError, InvalidViewportError
        """
        try:
            return self._render()
        finally:
            if done is not None:
                done.set()

    def _render(self):
        config = self.config
        gradient = self.gradient()
        viewport = compute_viewport(config)
        logger.info("Rendering %dx%d (%s palette, %d colors, %d iterations)",
                    config.render_width, config.render_height, config.palette,
                    len(gradient), config.max_iter)

        buffer = np.zeros((config.render_height, config.render_width, 4), dtype=np.uint8)
        blend_mode = BLEND_MODES[config.blend]
        args = (viewport.xmin, viewport.xmax, viewport.ymin, viewport.ymax,
                config.max_iter, gradient, blend_mode, buffer)

        if self.parallel:
            previous = numba.get_num_threads()
            if self.num_threads is not None:
                numba.set_num_threads(self.num_threads)
            try:
                render_rows(*args)
            finally:
                numba.set_num_threads(previous)
        else:
            render_rows_serial(*args)

        buffer.flags.writeable = False
        return buffer


def render(config, custom_palettes=None, parallel=True, num_threads=None):
    """Render config synchronously and return the pixel buffer."""
    renderer = ScanlineRenderer(config, custom_palettes=custom_palettes,
                                parallel=parallel, num_threads=num_threads)
    return renderer.render()
