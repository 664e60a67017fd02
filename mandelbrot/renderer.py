"""
Incremental, cancellable Mandelbrot rendering.

The RenderEngine class handles:
- Background computation on a pool of worker threads so the UI stays
  responsive
- Cancelling superseded work when the view changes mid-render
- Writing finished tiles into a persistent RGB pixel buffer
- Notifying listeners of each updated region so the display can repaint
  as tiles arrive instead of waiting for the whole frame
"""

import logging
import threading
from typing import NamedTuple

import numpy as np

from .colormaps import COLORMAPS
from .config import RenderConfig
from .errors import ConfigurationError
from .palette import Palette
from .precision import get_precision
from .tiles import TileScheduler

logger = logging.getLogger(__name__)


class RegionUpdate(NamedTuple):
    """Pixel rectangle [x0, x1) x [y0, y1) that now holds fresh colors."""

    generation: int
    x0: int
    y0: int
    x1: int
    y1: int


def allocate_buffer(width, height):
    return np.zeros((height, width, 3), dtype=np.uint8)


def render_tile(tile, viewport, precision, palette):
    """Compute and shade one tile of ``viewport``."""
    counts, mags, escaped = precision.compute_tile(
        viewport, tile.x0, tile.y0, tile.x1, tile.y1
    )
    return palette.apply(counts, mags, escaped, viewport.max_iter)


class RenderEngine:
    """
    Renders viewports into a shared pixel buffer, tile by tile.

    Usage:
        engine = RenderEngine(config)
        engine.add_listener(lambda region: repaint(region))
        engine.render(viewport)

        # Later, in your display loop:
        image = engine.snapshot()   # (height, width, 3) uint8

    Each call to render() supersedes the previous one. Tiles still in
    flight for an older viewport are dropped, never drawn.
    """

    def __init__(self, config=None):
        self.config = config or RenderConfig()
        self.precision = get_precision(
            self.config.precision, self.config.escape_radius, self.config.extended_dps
        )
        self.palette = Palette(
            self.config.palette, self.config.smooth, self.config.escape_radius
        )

        self._buffer = allocate_buffer(self.config.width, self.config.height)
        self._viewport = None
        self._listeners = []
        self._listeners_lock = threading.Lock()

        self._scheduler = TileScheduler(
            self.config.worker_count,
            self.config.tile_size,
            apply=self._write_tile,
            on_applied=self._notify,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def viewport(self):
        """Viewport of the most recent render request."""
        return self._viewport

    @property
    def generation(self):
        return self._scheduler.generation

    @property
    def stats(self):
        return self._scheduler.stats

    def add_listener(self, listener):
        """Register ``listener(region: RegionUpdate)``; called on worker threads."""
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener):
        with self._listeners_lock:
            self._listeners.remove(listener)

    def render(self, viewport):
        """
        Start rendering ``viewport``, superseding any render in progress.

        The buffer keeps its old contents and is overwritten tile by tile,
        unless the image size changed, in which case it is reallocated.

        Returns:
            The generation number of this render
        """
        precision = self.precision
        palette = self.palette

        def prepare(generation):
            if self._buffer.shape[:2] != (viewport.height, viewport.width):
                self._buffer = allocate_buffer(viewport.width, viewport.height)
            self._viewport = viewport

        def compute(tile):
            return render_tile(tile, viewport, precision, palette)

        generation = self._scheduler.start_generation(
            viewport.width, viewport.height, compute, prepare
        )
        logger.debug("Render %d: center=(%s, %s) scale=%g size=%dx%d max_iter=%d",
                     generation, viewport.center_real, viewport.center_imag,
                     viewport.scale, viewport.width, viewport.height, viewport.max_iter)
        return generation

    def update_settings(self, max_iter=None, palette=None, smooth=None):
        """
        Update rendering settings and re-render the current view.

        Args:
            max_iter: New maximum iteration count (or None to keep current)
            palette: New colormap name (or None to keep current)
            smooth: Smooth or discrete shading (or None to keep current)

        Returns:
            True if any setting changed, False otherwise
        """
        if palette is not None and palette not in COLORMAPS:
            raise ConfigurationError(f"unknown palette {palette!r}")
        if max_iter is not None and max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {max_iter}")

        changed = False
        if palette is not None and palette != self.palette.name:
            changed = True
        if smooth is not None and bool(smooth) != self.palette.smooth:
            changed = True
        if changed:
            self.palette = Palette(
                palette if palette is not None else self.palette.name,
                smooth if smooth is not None else self.palette.smooth,
                self.config.escape_radius,
            )
        viewport = self._viewport
        if max_iter is not None and viewport is not None and max_iter != viewport.max_iter:
            viewport = viewport.with_max_iter(max_iter)
            changed = True
        if changed and viewport is not None:
            self.render(viewport)
        return changed

    def snapshot(self):
        """Copy of the pixel buffer, shape (height, width, 3), dtype uint8."""
        with self._scheduler.lock:
            return self._buffer.copy()

    def wait(self, timeout=None):
        """Block until the current render has finished; False on timeout."""
        finished = self._scheduler.wait(timeout)
        if finished:
            logger.debug("Render %d finished (%s)", self.generation, self.stats)
        return finished

    def is_idle(self):
        return self._scheduler.pending() == 0

    def close(self):
        self._scheduler.close()

    def _write_tile(self, result):
        tile = result.tile
        self._buffer[tile.y0:tile.y1, tile.x0:tile.x1] = result.pixels

    def _notify(self, result):
        tile = result.tile
        region = RegionUpdate(tile.generation, tile.x0, tile.y0, tile.x1, tile.y1)
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(region)
