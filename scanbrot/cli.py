"""
Command-line front end.

Renders one Mandelbrot image to a PNG file:

    scanbrot --palette Plan9 --width 800 --height 600 --file plan9.png

Defaults come from settings.json (see config.py). While the render runs a
dot is printed every PROGRESS_INTERVAL seconds from a helper thread. The
render itself stays on the main thread, where numba's thread pool expects
its parallel loops to be launched.
"""

import logging
import sys
import threading
from argparse import ArgumentParser

from .compute import BLEND_MODES
from .config import SettingsError, load_settings
from .output import OutputError, save_png
from .palettes import PaletteNotFoundError, list_palette_names
from .renderer import RenderConfig, ScanlineRenderer


PROGRESS_INTERVAL = 0.1  # Seconds between progress dots

EXIT_OK = 0
EXIT_OUTPUT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser(settings):
    """Build the argument parser, taking defaults from settings."""
    parser = ArgumentParser(prog='scanbrot', description='Render the Mandelbrot set to a PNG image.')

    parser.add_argument('--step', type=float,
                        dest='color_step', help='color smooth step. Raised to the iteration count if lower.',
                        metavar='STEP', default=settings['color_step'])

    parser.add_argument('--width', type=int,
                        dest='width', help='rendered image width',
                        metavar='WIDTH', default=settings['width'])

    parser.add_argument('--height', type=int,
                        dest='height', help='rendered image height',
                        metavar='HEIGHT', default=settings['height'])

    parser.add_argument('--xpos', type=float,
                        dest='x', help='point position on the real axis',
                        metavar='X', default=settings['x'])

    parser.add_argument('--ypos', type=float,
                        dest='y', help='point position on the imaginary axis',
                        metavar='Y', default=settings['y'])

    parser.add_argument('--radius', type=float,
                        dest='radius', help='width of the rendered window in the complex plane',
                        metavar='RADIUS', default=settings['radius'])

    parser.add_argument('--iteration', type=int,
                        dest='max_iter', help='iteration count',
                        metavar='ITERATION', default=settings['max_iter'])

    parser.add_argument('--smoothness', type=int,
                        dest='smoothness', help='oversampling factor applied to width and height. Use 4 for 4xAA.',
                        metavar='SMOOTHNESS', default=settings['smoothness'])

    parser.add_argument('--palette', type=str,
                        dest='palette', help=' | '.join(list_palette_names(settings['custom_palettes'])),
                        metavar='PALETTE', default=settings['palette'])

    parser.add_argument('--file', type=str,
                        dest='file', help='rendered image file name',
                        metavar='FILE', default=settings['file'])

    parser.add_argument('--blend', choices=sorted(BLEND_MODES), default=settings['blend'],
                        help='"reference" reproduces the classic banded blend; "fractional" blends smoothly.')

    parser.add_argument('--serial', action='store_true',
                        help='render rows on a single thread.')

    parser.add_argument('--threads', type=int, default=None, metavar='N',
                        help='number of worker threads for the parallel renderer (default: all cores).')

    parser.add_argument('--settings', type=str, default=None, metavar='FILE',
                        help='settings file to read instead of the bundled settings.json.')

    parser.add_argument('--list-palettes', action='store_true',
                        help='print the available palettes and exit.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='enable verbose logging.')

    return parser


def _error(message):
    print(f"error: {message}", file=sys.stderr)


def _report_progress(done):
    while not done.wait(PROGRESS_INTERVAL):
        print('.', end='', flush=True)


def main(argv=None):
    """
    Run the command-line renderer.

    Returns:
        Exit status: 0 on success, 1 if the image could not be written,
        2 for configuration errors
    """
    pre = ArgumentParser(add_help=False)
    pre.add_argument('--settings', default=None)
    known, _ = pre.parse_known_args(argv)
    try:
        settings = load_settings(known.settings)
    except SettingsError as e:
        _error(e)
        return EXIT_CONFIG_ERROR

    opt = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if opt.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    custom_palettes = settings['custom_palettes']
    if opt.list_palettes:
        for name in list_palette_names(custom_palettes):
            print(name)
        return EXIT_OK

    try:
        config = RenderConfig(
            palette=opt.palette,
            x=opt.x,
            y=opt.y,
            radius=opt.radius,
            width=opt.width,
            height=opt.height,
            smoothness=opt.smoothness,
            max_iter=opt.max_iter,
            color_step=opt.color_step,
            blend=opt.blend,
        )
        renderer = ScanlineRenderer(config, custom_palettes=custom_palettes,
                                    parallel=not opt.serial, num_threads=opt.threads)
    except ValueError as e:
        _error(e)
        return EXIT_CONFIG_ERROR

    print("Rendering image...", end='', flush=True)
    done = threading.Event()
    ticker = threading.Thread(target=_report_progress, args=(done,))
    ticker.daemon = True
    ticker.start()
    try:
        buffer = renderer.render(done=done)
    except (PaletteNotFoundError, ValueError) as e:
        ticker.join()
        print()
        _error(e)
        return EXIT_CONFIG_ERROR
    ticker.join()
    print()

    try:
        save_png(buffer, opt.file)
    except OutputError as e:
        _error(e)
        return EXIT_OUTPUT_ERROR

    print(f"\nMandelbrot set rendered into `{opt.file}`")
    return EXIT_OK
