"""
Colormap definitions for Mandelbrot visualization.

Each colormap function returns a numpy array of shape (4096, 3) with
RGB values (uint8). The high resolution (4096 colors) allows for
smooth interpolation when shading fractional iteration counts.

The set of colormaps is closed: every entry of COLORMAPS is an
independent pure function, and palettes are selected by name.
"""

import numpy as np


NUM_COLORS = 4096  # Resolution of colormap for smooth gradients
IN_SET_COLOR = (0, 0, 0)
# Darkest channel value of ramps that would otherwise start at IN_SET_COLOR
LOW_END = 0.08


def _ramp():
    return np.linspace(0.0, 1.0, NUM_COLORS)


def _to_uint8(r, g, b):
    channels = np.stack([r, g, b], axis=1)
    return np.clip(255 * channels, 0, 255).astype(np.uint8)


def _hsv_to_rgb(h, s, v):
    """Vectorized HSV to RGB with h wrapped into [0, 1)."""
    h = (h - np.floor(h)) * 6.0
    sector = np.floor(h).astype(np.int64) % 6
    f = h - np.floor(h)
    p = v * (1 - s)
    q = v * (1 - s * f)
    t = v * (1 - s * (1 - f))
    choices_r = [v, q, p, p, t, v]
    choices_g = [t, v, v, q, p, p]
    choices_b = [p, p, t, v, v, q]
    conds = [sector == k for k in range(6)]
    return (np.select(conds, choices_r),
            np.select(conds, choices_g),
            np.select(conds, choices_b))


def create_colormap_hot():
    """
    Hot colormap: dark red -> red -> orange -> yellow -> white.

    A power curve spends more of the range in the bright colors.
    """
    t = _ramp() ** 0.8
    return _to_uint8(
        np.minimum(1.0, LOW_END + t * 2.5),
        np.maximum(0.0, (t - 0.4) * 2.5),
        np.maximum(0.0, (t - 0.7) * 3.3),
    )


def create_colormap_ocean():
    """Ocean colormap: deep blue -> cyan -> white."""
    t = _ramp()
    return _to_uint8(
        np.maximum(0.0, (t - 0.5) * 2),
        t,
        (50 + 205 * t) / 255,
    )


def create_colormap_forest():
    """Forest colormap: dark green -> lime -> yellow."""
    t = _ramp()
    return _to_uint8(
        np.maximum(0.0, (t - 0.3) * 1.4),
        (80 + 175 * t) / 255,
        np.maximum(0.0, (t - 0.7) * 3.3),
    )


def create_colormap_purple():
    """Purple colormap: deep purple -> magenta -> pink -> white."""
    t = _ramp()
    return _to_uint8(
        (100 + 155 * t) / 255,
        np.maximum(0.0, (t - 0.3) * 1.4),
        (80 + 175 * t) / 255,
    )


def create_colormap_rainbow():
    """
    Rainbow colormap: cycles through hues.

    Five full hue rotations make fine detail stand out.
    """
    t = _ramp()
    ones = np.ones_like(t)
    return _to_uint8(*_hsv_to_rgb(t * 5, ones, ones))


def create_colormap_spectrum():
    """
    Spectrum colormap: fully saturated hue of sqrt(t) + 0.5.

    The classic pseudo-color scheme of the original Java viewer, starting
    at cyan and sweeping the hue circle quickly near the set boundary.
    """
    t = _ramp()
    ones = np.ones_like(t)
    return _to_uint8(*_hsv_to_rgb(np.sqrt(t) + 0.5, ones, ones))


def create_colormap_grayscale():
    """Grayscale colormap: dark gray -> white."""
    t = LOW_END + (1 - LOW_END) * _ramp()
    return _to_uint8(t, t, t)


# Registry of all available colormaps.
# Keys are display names, values are factory functions.
COLORMAPS = {
    'Hot': create_colormap_hot,
    'Ocean': create_colormap_ocean,
    'Forest': create_colormap_forest,
    'Purple': create_colormap_purple,
    'Rainbow': create_colormap_rainbow,
    'Spectrum': create_colormap_spectrum,
    'Grayscale': create_colormap_grayscale,
}


def get_colormap(name):
    """
    Get a colormap by name.

    Raises:
        KeyError if name not found
    """
    return COLORMAPS[name]()


def get_default_colormap():
    """Get the default colormap (Hot)."""
    return create_colormap_hot()


def list_colormap_names():
    """Get list of available colormap names."""
    return list(COLORMAPS.keys())
