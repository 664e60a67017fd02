"""
Viewport value objects.

A Viewport describes which part of the complex plane is on screen:
the plane point at the image center, the plane distance covered by one
pixel, the image size in pixels and the iteration budget.

Viewports are immutable. Panning, zooming and resizing all return a new
Viewport, so a render request can hold on to the one it was started with
while the user keeps moving.

Vertical convention: pixel row 0 is the top of the image and the
imaginary axis points up, so the imaginary part decreases as y grows.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Tuple

from .errors import ConfigurationError
from .mapping import to_complex


class PixelCoordinate(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class Viewport:
    """
    Immutable mapping between an image and a region of the plane.

    The centre may be held as mpmath numbers for deep zooms; pan and zoom
    then add their offsets at that precision instead of rounding to float64.
    """

    center_real: float
    center_imag: float
    scale: float
    width: int
    height: int
    max_iter: int = 500

    def __post_init__(self):
        if not self.scale > 0:
            raise ConfigurationError(f"scale must be positive, got {self.scale!r}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"viewport must have a positive size, got {self.width}x{self.height}"
            )
        if self.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {self.max_iter}")

    @classmethod
    def from_bounds(cls, re_min, re_max, im_min, im_max, width,
                    height=None, max_iter=500) -> "Viewport":
        """
        Build a viewport covering the given plane limits.

        When ``height`` is omitted it follows the aspect ratio of the
        limits, e.g. the classic (-2, 1) x (-1, 1) view at 1280 pixels
        wide is 853 pixels high. The horizontal extent sets the scale.
        """
        if not re_max > re_min:
            raise ConfigurationError(f"invalid real limits: {re_min} .. {re_max}")
        if not im_max > im_min:
            raise ConfigurationError(f"invalid imaginary limits: {im_min} .. {im_max}")
        if width <= 0:
            raise ConfigurationError(f"width must be positive, got {width}")
        if height is None:
            height = int(width / ((re_max - re_min) / (im_max - im_min)))
        return cls(
            center_real=(re_min + re_max) / 2,
            center_imag=(im_min + im_max) / 2,
            scale=(re_max - re_min) / width,
            width=width,
            height=height,
            max_iter=max_iter,
        )

    @property
    def center(self) -> complex:
        return complex(self.center_real, self.center_imag)

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def bounds(self):
        """Plane limits ``(re_min, re_max, im_min, im_max)`` of the image."""
        half_w = self.width / 2 * self.scale
        half_h = self.height / 2 * self.scale
        return (
            self.center_real - half_w,
            self.center_real + half_w,
            self.center_imag - half_h,
            self.center_imag + half_h,
        )

    def to_complex(self, x: int, y: int) -> complex:
        return to_complex(PixelCoordinate(x, y), self)

    def with_center(self, real, imag) -> "Viewport":
        return replace(self, center_real=real, center_imag=imag)

    def with_max_iter(self, max_iter: int) -> "Viewport":
        return replace(self, max_iter=max_iter)

    def moved(self, d_real, d_imag) -> "Viewport":
        """Shift the view by an offset in plane units."""
        return replace(
            self,
            center_real=self.center_real + d_real,
            center_imag=self.center_imag + d_imag,
        )

    def pan(self, dx, dy) -> "Viewport":
        """Shift the view by an offset in pixels (positive dy moves down)."""
        return self.moved(dx * self.scale, -dy * self.scale)

    def zoom(self, factor, anchor: Optional[Tuple[int, int]] = None) -> "Viewport":
        """
        Zoom by ``factor``; values above 1 zoom in, below 1 zoom out.

        With an ``anchor`` pixel, the plane point under that pixel stays
        under it, which is what a mouse-wheel zoom wants.
        """
        if not factor > 0:
            raise ConfigurationError(f"zoom factor must be positive, got {factor!r}")
        new_scale = self.scale / factor
        if anchor is None:
            return replace(self, scale=new_scale)
        ax, ay = anchor
        dx = ax - self.width / 2
        dy = ay - self.height / 2
        # Point under the anchor before and after must coincide
        return replace(
            self,
            center_real=self.center_real + dx * (self.scale - new_scale),
            center_imag=self.center_imag - dy * (self.scale - new_scale),
            scale=new_scale,
        )

    def resize(self, width: int, height: int) -> "Viewport":
        return replace(self, width=width, height=height)
