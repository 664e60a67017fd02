"""
Pixel to complex-plane mapping.

    real = center_real + (x - width / 2) * scale
    imag = center_imag - (y - height / 2) * scale

Row 0 is the top of the image. The per-point and per-tile functions use
the same expression so both paths produce identical coordinates.
"""

import numpy as np


def to_complex(pixel, viewport):
    """Map a pixel ``(x, y)`` to the plane point it samples."""
    x, y = pixel
    real = float(viewport.center_real) + (x - viewport.width / 2) * viewport.scale
    imag = float(viewport.center_imag) - (y - viewport.height / 2) * viewport.scale
    return complex(real, imag)


def pixel_axes(viewport, x0, y0, x1, y1):
    """
    Plane coordinates of the columns and rows of a tile.

    Returns:
        (reals, imags): float64 arrays of length x1 - x0 and y1 - y0.
    """
    cols = np.arange(x0, x1, dtype=np.int64)
    rows = np.arange(y0, y1, dtype=np.int64)
    reals = float(viewport.center_real) + (cols - viewport.width / 2) * viewport.scale
    imags = float(viewport.center_imag) - (rows - viewport.height / 2) * viewport.scale
    return reals.astype(np.float64), imags.astype(np.float64)


def to_complex_mp(pixel, viewport, ctx):
    """
    Map a pixel with arbitrary precision.

    ``ctx`` is an mpmath context; its precision bounds how deep a zoom
    stays distinguishable from its neighbours.
    """
    x, y = pixel
    scale = ctx.mpf(viewport.scale)
    real = ctx.mpf(viewport.center_real) + (x - ctx.mpf(viewport.width) / 2) * scale
    imag = ctx.mpf(viewport.center_imag) - (y - ctx.mpf(viewport.height) / 2) * scale
    return real, imag


def pixel_axes_mp(viewport, x0, y0, x1, y1, ctx):
    scale = ctx.mpf(viewport.scale)
    half_w = ctx.mpf(viewport.width) / 2
    half_h = ctx.mpf(viewport.height) / 2
    re0 = ctx.mpf(viewport.center_real)
    im0 = ctx.mpf(viewport.center_imag)
    reals = [re0 + (x - half_w) * scale for x in range(x0, x1)]
    imags = [im0 - (y - half_h) * scale for y in range(y0, y1)]
    return reals, imags
