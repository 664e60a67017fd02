"""
Mapping escape results to colors.

Points that never escaped get IN_SET_COLOR. Escaped points are shaded
from a colormap, either by their integer iteration count (discrete) or
by the normalized iteration count

    n + 1 - log(log|z| / log R) / log 2

which removes the bands between consecutive counts (smooth). The value
is scaled by max_iter onto the colormap and interpolated linearly
between neighbouring entries.

The per-point and per-tile paths run the same compiled shading routine,
so a pixel always gets the same color whichever way it was computed.
"""

import math

import numpy as np
from numba import jit

from .colormaps import IN_SET_COLOR, get_colormap
from .compute import DEFAULT_ESCAPE_RADIUS

LOG2 = math.log(2.0)


@jit(nopython=True, nogil=True, cache=True)
def shade_value(iterations, magnitude_sq, max_iter, smooth, log_escape):
    """Continuous (or integer) escape value, clamped to [0, max_iter]."""
    value = float(iterations)
    if smooth and magnitude_sq > 1.0 and magnitude_sq < np.inf:
        log_zn = np.log(magnitude_sq) * 0.5
        nu = np.log(log_zn / log_escape) / LOG2
        value = iterations + 1 - nu
    if value != value:
        value = float(iterations)
    if value < 0.0:
        value = 0.0
    elif value > max_iter:
        value = float(max_iter)
    return value


@jit(nopython=True, nogil=True, cache=True)
def shade(iterations, magnitude_sq, escaped, max_iter, colormap, smooth, log_escape):
    """Color of one point as an (r, g, b) tuple of uint8."""
    if not escaped:
        return (np.uint8(IN_SET_COLOR[0]), np.uint8(IN_SET_COLOR[1]),
                np.uint8(IN_SET_COLOR[2]))
    value = shade_value(iterations, magnitude_sq, max_iter, smooth, log_escape)
    num_colors = colormap.shape[0]
    fidx = value / max_iter * (num_colors - 1)
    idx0 = int(fidx)
    if idx0 >= num_colors - 1:
        idx0 = num_colors - 1
        idx1 = num_colors - 1
        t = 0.0
    else:
        idx1 = idx0 + 1
        t = fidx - idx0
    return (
        np.uint8(colormap[idx0, 0] * (1 - t) + colormap[idx1, 0] * t),
        np.uint8(colormap[idx0, 1] * (1 - t) + colormap[idx1, 1] * t),
        np.uint8(colormap[idx0, 2] * (1 - t) + colormap[idx1, 2] * t),
    )


@jit(nopython=True, nogil=True, cache=True)
def apply_colormap(counts, magnitudes, escaped, max_iter, colormap, smooth, log_escape, out):
    """
    Shade a whole tile.

    Args:
        counts, magnitudes, escaped: (h, w) arrays from compute_tile
        max_iter: Iteration budget the tile was computed with
        colormap: Nx3 array of RGB colors (uint8)
        smooth: Use the normalized iteration count
        log_escape: log of the bailout radius (at least log 2)
        out: (h, w, 3) uint8 output, modified in place
    """
    height, width = counts.shape
    for py in range(height):
        for px in range(width):
            r, g, b = shade(counts[py, px], magnitudes[py, px], escaped[py, px],
                            max_iter, colormap, smooth, log_escape)
            out[py, px, 0] = r
            out[py, px, 1] = g
            out[py, px, 2] = b


class Palette:
    """
    A named colormap plus shading mode.

    Usage:
        palette = Palette('Hot')
        rgb = palette.color_for(evaluate(c, 100), 100)
    """

    def __init__(self, name='Hot', smooth=True, escape_radius=DEFAULT_ESCAPE_RADIUS):
        self.name = name
        self.smooth = bool(smooth)
        self.escape_radius = escape_radius
        self.colormap = get_colormap(name)
        self.log_escape = math.log(max(escape_radius, 2.0))

    def __repr__(self):
        mode = 'smooth' if self.smooth else 'discrete'
        return f"Palette({self.name!r}, {mode})"

    def color_for(self, result, max_iter):
        """Color of a single EscapeResult."""
        r, g, b = shade(result.iterations, result.magnitude_sq, result.escaped,
                        max_iter, self.colormap, self.smooth, self.log_escape)
        return int(r), int(g), int(b)

    def apply(self, counts, magnitudes, escaped, max_iter, out=None):
        """Shade tile arrays into an (h, w, 3) uint8 image."""
        if out is None:
            out = np.empty(counts.shape + (3,), dtype=np.uint8)
        apply_colormap(counts, magnitudes, escaped, max_iter, self.colormap,
                       self.smooth, self.log_escape, out)
        return out
