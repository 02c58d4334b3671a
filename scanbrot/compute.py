"""
Mandelbrot computation functions using Numba JIT compilation.

This module contains all the per-pixel functions of the renderer. They are
JIT-compiled so that a full oversampled frame can be computed in a single
parallel loop over rows:
- Packed 32-bit color helpers and the two interpolation curves
- Escape-time iteration of z² + c
- Mapping of the escape value onto an expanded gradient
- Row kernels (one row per task, parallel and serial variants)

Packed colors hold R, G, B, A from the most to the least significant byte.
Every 8-bit channel is widened to 16 bits (v * 0x101) and integer-divided
by 0xFF before packing. A full channel (255) therefore becomes 257 and its
carry bit lands in the next higher channel. Colors coming out of the
gradient depend on that carry, so it is kept.
"""

import math

from numba import jit, prange


# Blend modes for colorize()
BLEND_REFERENCE = 0   # Packed blend weighted by the whole escape value
BLEND_FRACTIONAL = 1  # Per-channel blend weighted by its fractional part

BLEND_MODES = {
    'reference': BLEND_REFERENCE,
    'fractional': BLEND_FRACTIONAL,
}

UINT32_MASK = 0xFFFFFFFF
ESCAPE_NORM = 4.0  # Squared escape radius of the orbit


@jit(nopython=True, cache=True)
def scale_channel(v):
    """Widen an 8-bit channel to 16 bits and divide it back by 0xFF."""
    return (int(v) * 0x101) // 0xff


@jit(nopython=True, cache=True)
def pack_rgba(r, g, b, a):
    """Pack four 8-bit channels into one 32-bit value (R in the top byte)."""
    return ((scale_channel(r) << 24) | (scale_channel(g) << 16) |
            (scale_channel(b) << 8) | scale_channel(a)) & UINT32_MASK


@jit(nopython=True, cache=True)
def unpack_rgb(value):
    """Extract (r, g, b) from a packed 32-bit value. Alpha is dropped."""
    return (value >> 24) & 0xff, (value >> 16) & 0xff, (value >> 8) & 0xff


@jit(nopython=True, cache=True)
def cosine_interpolation(c1, c2, mu):
    """Ease from c1 (mu = 0) to c2 (mu = 1) along half a cosine period."""
    mu2 = (1 - math.cos(mu * math.pi)) / 2.0
    return c1 * (1 - mu2) + c2 * mu2


@jit(nopython=True, cache=True)
def _mul_u32(a, b):
    # a * b mod 2**32 without leaving the int64 range
    lo = a * (b & 0xffff)
    hi = ((a * (b >> 16)) & 0xffff) << 16
    return (lo + hi) & UINT32_MASK


@jit(nopython=True, cache=True)
def linear_interpolation(c1, c2, mu):
    """
    Blend two packed colors with unsigned 32-bit arithmetic.

    Computes c1 * (1 - mu) + c2 * mu modulo 2**32, exactly as uint32
    math would. For mu outside {0, 1} the result wraps around.

    Args:
        c1, c2: Packed colors in [0, 2**32)
        mu: Integer weight in [0, 2**32)
    """
    inv = (1 - mu) & UINT32_MASK
    return (_mul_u32(c1, inv) + _mul_u32(c2, mu)) & UINT32_MASK


@jit(nopython=True, cache=True)
def mandel_iteration(cx, cy, max_iter):
    """
    Iterate z² + c from z = 0 for the point c = cx + i·cy.

    Args:
        cx, cy: Real and imaginary parts of c
        max_iter: Iteration cap

    Returns:
        (norm_sq, iterations). If the orbit escapes, norm_sq is |z|² at the
        escaping step and iterations is that step's 0-based index. Otherwise
        norm_sq is |z|² / 2 and iterations is max_iter.
    """
    x, y = 0.0, 0.0

    for i in range(max_iter):
        xy = x * y
        xx = x * x
        yy = y * y
        if xx + yy > ESCAPE_NORM:
            return xx + yy, i
        x = xx - yy + cx
        y = 2 * xy + cy

    return (x * x + y * y) / 2, max_iter


@jit(nopython=True, cache=True)
def colorize(norm_sq, iterations, max_iter, gradient, blend_mode):
    """
    Map an escape value onto the gradient.

    The continuous index is (max_iter - iterations) + ln(norm_sq). Its
    absolute value, truncated, selects gradient[idx] and gradient[idx + 1].

    With BLEND_REFERENCE the two entries are packed and blended with the
    index itself, truncated to uint32, as the weight. Weights above 1 wrap
    around in 32 bits and give banded colors; this is the reference look.
    With BLEND_FRACTIONAL each channel is blended with the fractional part
    of the index, which always stays between the two entries.

    Args:
        norm_sq, iterations: Output of mandel_iteration
        max_iter: Iteration cap used for mandel_iteration
        gradient: (n, 4) uint8 array from expand_palette
        blend_mode: BLEND_REFERENCE or BLEND_FRACTIONAL

    Returns:
        (hit, r, g, b). hit is False when the index falls past the end of
        the gradient or is not finite; the pixel is then left untouched.
    """
    if norm_sq <= 0.0:
        # Orbit sits on the origin, ln() is undefined
        return False, 0, 0, 0
    smoothed = (max_iter - iterations) + math.log(norm_sq)
    if not math.isfinite(smoothed):
        return False, 0, 0, 0

    magnitude = abs(smoothed)
    idx = int(magnitude)
    if idx >= gradient.shape[0] - 1:
        return False, 0, 0, 0

    c1 = gradient[idx]
    c2 = gradient[idx + 1]

    if blend_mode == BLEND_FRACTIONAL:
        mu = magnitude - idx
        r = int(c1[0] * (1 - mu) + c2[0] * mu)
        g = int(c1[1] * (1 - mu) + c2[1] * mu)
        b = int(c1[2] * (1 - mu) + c2[2] * mu)
        return True, r, g, b

    p1 = pack_rgba(c1[0], c1[1], c1[2], c1[3])
    p2 = pack_rgba(c2[0], c2[1], c2[2], c2[3])
    weight = int(smoothed) & UINT32_MASK
    r, g, b = unpack_rgb(linear_interpolation(p1, p2, weight))
    return True, r, g, b


@jit(nopython=True, cache=True)
def render_row(iy, xmin, xmax, ymin, ymax, max_iter, gradient, blend_mode, out):
    """
    Compute and color a single row of the output buffer.

    Both axes are scaled by the buffer width minus one. Only out[iy] is
    written, so rows can be computed concurrently without locking.

    Args:
        iy: Row index
        xmin, xmax, ymin, ymax: Viewport bounds in the complex plane
        max_iter: Iteration cap
        gradient: (n, 4) uint8 gradient
        blend_mode: BLEND_REFERENCE or BLEND_FRACTIONAL
        out: (height, width, 4) uint8 buffer, modified in place
    """
    width = out.shape[1]
    denom = width - 1
    y = ymin + (ymax - ymin) * iy / denom

    for ix in range(width):
        x = xmin + (xmax - xmin) * ix / denom
        norm_sq, iterations = mandel_iteration(x, y, max_iter)
        hit, r, g, b = colorize(norm_sq, iterations, max_iter, gradient, blend_mode)
        if hit:
            out[iy, ix, 0] = r
            out[iy, ix, 1] = g
            out[iy, ix, 2] = b
            out[iy, ix, 3] = 0xff


@jit(nopython=True, parallel=True, cache=True)
def render_rows(xmin, xmax, ymin, ymax, max_iter, gradient, blend_mode, out):
    """Render every row of out in parallel (one row per task)."""
    for iy in prange(out.shape[0]):
        render_row(iy, xmin, xmax, ymin, ymax, max_iter, gradient, blend_mode, out)


@jit(nopython=True, cache=True)
def render_rows_serial(xmin, xmax, ymin, ymax, max_iter, gradient, blend_mode, out):
    """Single-threaded version of render_rows with identical output."""
    for iy in range(out.shape[0]):
        render_row(iy, xmin, xmax, ymin, ymax, max_iter, gradient, blend_mode, out)
