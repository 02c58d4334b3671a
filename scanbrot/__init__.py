"""
Scanline Mandelbrot Renderer Package

Renders the Mandelbrot set into an RGBA pixel buffer using Numba for
JIT-compiled, row-parallel computation, and writes it out as PNG.

Quick Start:
    from scanbrot import RenderConfig, render
    buffer = render(RenderConfig(width=320, height=240, smoothness=1))

Or from command line:
    python -m scanbrot --palette Plan9 --file plan9.png

Package Structure:
    - compute.py: JIT-compiled escape-time, coloring and row kernels
    - palettes.py: Palette registry and gradient expansion
    - renderer.py: Render configuration, viewport and scanline renderer
    - output.py: PNG encoding via pygame
    - config.py: settings.json loading
    - cli.py: Command-line front end
"""

from .palettes import (
    PALETTES,
    ColorStop,
    PaletteNotFoundError,
    create_gradient,
    expand_palette,
    get_palette,
    list_palette_names,
)
from .renderer import (
    InvalidViewportError,
    RenderConfig,
    ScanlineRenderer,
    Viewport,
    compute_viewport,
    render,
)
from .output import OutputError, save_png

__version__ = "1.0.0"
__all__ = [
    "PALETTES",
    "ColorStop",
    "PaletteNotFoundError",
    "create_gradient",
    "expand_palette",
    "get_palette",
    "list_palette_names",
    "InvalidViewportError",
    "RenderConfig",
    "ScanlineRenderer",
    "Viewport",
    "compute_viewport",
    "render",
    "OutputError",
    "save_png",
]
