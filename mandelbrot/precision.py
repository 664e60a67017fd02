"""
Arithmetic precision strategies.

A precision strategy bundles the pixel mapping and the escape loop for one
number representation. The scheduler and the render engine only ever call
``compute_tile(viewport, x0, y0, x1, y1)``, so switching between float64
and arbitrary precision is a configuration change.

- ``double``: float64 coordinates, Numba kernels. Good down to a scale of
  roughly 1e-13 plane units per pixel.
- ``extended``: mpmath coordinates and iteration at ``dps`` decimal
  digits. Pure Python and far slower, meant for deep zooms.
"""

import logging

import mpmath

from .compute import (
    DEFAULT_ESCAPE_RADIUS,
    EscapeResult,
    allocate_tile_arrays,
    compute_tile,
    escape_point,
    escape_point_mp,
)
from .mapping import pixel_axes, pixel_axes_mp, to_complex, to_complex_mp

logger = logging.getLogger(__name__)


class DoublePrecision:
    name = "double"

    def __init__(self, escape_radius=DEFAULT_ESCAPE_RADIUS):
        self.escape_radius = escape_radius
        self.escape_r2 = escape_radius * escape_radius

    def coordinate(self, value):
        return float(value)

    def to_complex(self, pixel, viewport):
        return to_complex(pixel, viewport)

    def evaluate(self, pixel, viewport):
        c = to_complex(pixel, viewport)
        n, mag2, esc = escape_point(c.real, c.imag, viewport.max_iter, self.escape_r2)
        return EscapeResult(int(n), float(mag2), bool(esc))

    def compute_tile(self, viewport, x0, y0, x1, y1):
        reals, imags = pixel_axes(viewport, x0, y0, x1, y1)
        counts, mags, escaped = allocate_tile_arrays(y1 - y0, x1 - x0)
        compute_tile(reals, imags, viewport.max_iter, self.escape_r2, counts, mags, escaped)
        return counts, mags, escaped


class ExtendedPrecision:
    name = "extended"

    def __init__(self, escape_radius=DEFAULT_ESCAPE_RADIUS, dps=50):
        self.escape_radius = escape_radius
        # Private context so the global mpmath precision is left alone
        self.ctx = mpmath.MPContext()
        self.ctx.dps = dps
        self.escape_r2 = self.ctx.mpf(escape_radius) ** 2

    def coordinate(self, value):
        """
        Plane coordinate at the working precision.

        Strings keep every digit they carry, so a deep-zoom centre read
        from a settings file is not first rounded to float64.
        """
        if isinstance(value, float):
            # Shortest decimal form, e.g. 0.1 rather than its binary expansion
            value = repr(value)
        return self.ctx.mpf(value)

    def to_complex(self, pixel, viewport):
        """Plane point as an ``(real, imag)`` pair of mpmath numbers."""
        return to_complex_mp(pixel, viewport, self.ctx)

    def evaluate(self, pixel, viewport):
        cr, ci = to_complex_mp(pixel, viewport, self.ctx)
        n, mag2, esc = escape_point_mp(cr, ci, viewport.max_iter, self.escape_r2)
        return EscapeResult(n, mag2, esc)

    def compute_tile(self, viewport, x0, y0, x1, y1):
        reals, imags = pixel_axes_mp(viewport, x0, y0, x1, y1, self.ctx)
        counts, mags, escaped = allocate_tile_arrays(y1 - y0, x1 - x0)
        for py, ci in enumerate(imags):
            for px, cr in enumerate(reals):
                n, mag2, esc = escape_point_mp(cr, ci, viewport.max_iter, self.escape_r2)
                counts[py, px] = n
                mags[py, px] = mag2
                escaped[py, px] = esc
        return counts, mags, escaped


# Registry of precision strategies, keyed by configuration name.
PRECISIONS = {
    'double': DoublePrecision,
    'extended': ExtendedPrecision,
}


def get_precision(name, escape_radius=DEFAULT_ESCAPE_RADIUS, dps=50):
    """
    Build the precision strategy registered under ``name``.

    Raises:
        KeyError if name not found
    """
    if name == 'extended':
        logger.debug("Using extended precision at %d digits", dps)
        return ExtendedPrecision(escape_radius, dps)
    return PRECISIONS[name](escape_radius)


def list_precision_names():
    return list(PRECISIONS.keys())
