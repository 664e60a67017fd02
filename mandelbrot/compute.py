"""
Escape-time computation for the Mandelbrot set using Numba JIT compilation.

This module contains the performance-critical loops:
- escape_point: iterate z <- z^2 + c for a single point
- compute_tile: the same loop over every pixel of a tile
- escape_point_mp: an mpmath version for zooms beyond float64

The compiled kernels release the GIL (nogil=True), so tiles computed on
separate worker threads really run in parallel.

Escape is tested on |z|^2 against the squared bailout radius, so no square
root is taken in the loop. A magnitude that turns into NaN or infinity
counts as an escape at the current iteration and is reported as infinity;
no NaN ever leaves this module.
"""

import math
from typing import NamedTuple

import numpy as np
from numba import jit


DEFAULT_ESCAPE_RADIUS = 2.0


class EscapeResult(NamedTuple):
    """Outcome of iterating one point."""

    iterations: int
    magnitude_sq: float
    escaped: bool


@jit(nopython=True, nogil=True, cache=True)
def escape_point(cr, ci, max_iter, escape_r2):
    """
    Iterate z <- z^2 + c starting from z = 0.

    Args:
        cr, ci: Real and imaginary parts of c
        max_iter: Iteration budget
        escape_r2: Squared bailout radius

    Returns:
        (iterations, magnitude_sq, escaped)
    """
    zr = 0.0
    zi = 0.0
    zr2 = 0.0
    zi2 = 0.0
    mag2 = 0.0
    iteration = 0
    while iteration < max_iter:
        zi = 2.0 * zr * zi + ci
        zr = zr2 - zi2 + cr
        zr2 = zr * zr
        zi2 = zi * zi
        iteration += 1
        mag2 = zr2 + zi2
        # NaN fails this comparison too
        if not mag2 <= escape_r2:
            break
    escaped = not mag2 <= escape_r2
    if math.isnan(mag2):
        mag2 = np.inf
    return iteration, mag2, escaped


@jit(nopython=True, nogil=True, cache=True)
def compute_tile(reals, imags, max_iter, escape_r2, counts, magnitudes, escaped):
    """
    Run the escape loop for every pixel of a tile.

    Args:
        reals: Real coordinate of each tile column (float64, length w)
        imags: Imaginary coordinate of each tile row (float64, length h)
        max_iter: Iteration budget
        escape_r2: Squared bailout radius
        counts: (h, w) int64 output, iterations reached
        magnitudes: (h, w) float64 output, final |z|^2
        escaped: (h, w) bool output
    """
    for py in range(imags.shape[0]):
        ci = imags[py]
        for px in range(reals.shape[0]):
            n, mag2, esc = escape_point(reals[px], ci, max_iter, escape_r2)
            counts[py, px] = n
            magnitudes[py, px] = mag2
            escaped[py, px] = esc


def allocate_tile_arrays(height, width):
    """Output arrays for compute_tile."""
    return (
        np.zeros((height, width), dtype=np.int64),
        np.zeros((height, width), dtype=np.float64),
        np.zeros((height, width), dtype=np.bool_),
    )


def evaluate(c, max_iter, escape_radius=DEFAULT_ESCAPE_RADIUS):
    """Iterate a single point and return its EscapeResult."""
    c = complex(c)
    n, mag2, esc = escape_point(c.real, c.imag, max_iter, escape_radius * escape_radius)
    return EscapeResult(int(n), float(mag2), bool(esc))


def escape_point_mp(cr, ci, max_iter, escape_r2):
    """
    Arbitrary precision escape loop.

    ``cr`` and ``ci`` are mpmath numbers; arithmetic runs at the precision
    of the context they were created in. The returned magnitude is a
    float, which is all the palette needs.
    """
    zr = zi = zr2 = zi2 = cr * 0
    mag2 = zr2
    iteration = 0
    while iteration < max_iter:
        zi = 2 * zr * zi + ci
        zr = zr2 - zi2 + cr
        zr2 = zr * zr
        zi2 = zi * zi
        iteration += 1
        mag2 = zr2 + zi2
        if not mag2 <= escape_r2:
            break
    escaped = not mag2 <= escape_r2
    mag2 = float(mag2)
    if math.isnan(mag2):
        mag2 = math.inf
    return iteration, mag2, escaped


def warmup_jit():
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup so the first tiles do not pay for compiling.
    """
    escape_point(0.0, 0.0, 10, 4.0)
    counts, mags, esc = allocate_tile_arrays(2, 2)
    axis = np.zeros(2, dtype=np.float64)
    compute_tile(axis, axis, 10, 4.0, counts, mags, esc)
