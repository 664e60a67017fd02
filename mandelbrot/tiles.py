"""
Tiling and background scheduling of render work.

The image is cut into square tiles (TILE_SIZE pixels on a side, smaller
at the right and bottom edges). Smaller tiles spread better over the
workers and make cancellation snappier; larger tiles cost less per-tile
overhead. Tiles are ordered center-first so the middle of the view fills
in before the edges.

Every render request gets a new generation number. A worker checks the
generation before starting a tile, and the result is checked again under
the scheduler lock before it is applied. Starting a new generation takes
the same lock, so once it returns no tile of an older generation can
land in the output.
"""

from __future__ import annotations

import logging
import threading
from concurrent import futures
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

TILE_SIZE = 64


@dataclass(frozen=True)
class Tile:
    """Half-open pixel rectangle [x0, x1) x [y0, y1) of one generation."""

    x0: int
    y0: int
    x1: int
    y1: int
    generation: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def shape(self):
        return self.height, self.width


@dataclass(frozen=True)
class TileResult:
    tile: Tile
    pixels: np.ndarray


@dataclass
class SchedulerStats:
    """Diagnostic counters; stale work is counted, never reported as an error."""

    completed: int = 0
    skipped: int = 0
    discarded: int = 0
    cancelled: int = 0


def make_tiles(width: int, height: int, tile_size: int, generation: int) -> List[Tile]:
    """Disjoint tiles covering a width x height image, nearest to the center first."""
    tiles = []
    for y0 in range(0, height, tile_size):
        for x0 in range(0, width, tile_size):
            tiles.append(Tile(x0, y0, min(x0 + tile_size, width),
                              min(y0 + tile_size, height), generation))
    cx = width / 2
    cy = height / 2
    tiles.sort(key=lambda t: ((t.x0 + t.x1) / 2 - cx) ** 2 + ((t.y0 + t.y1) / 2 - cy) ** 2)
    return tiles


class TileScheduler:
    """
    Runs tile computations on a fixed pool of worker threads.

    Usage:
        scheduler = TileScheduler(4, 64, apply=write_into_buffer)
        generation = scheduler.start_generation(800, 600, compute)
        scheduler.wait()

    Args:
        worker_count: Number of worker threads
        tile_size: Edge length of a tile in pixels
        apply: Called with each accepted TileResult while the scheduler
            lock is held; must be quick
        on_applied: Called with each accepted TileResult after the lock
            is released, on the worker thread
    """

    def __init__(self, worker_count: int, tile_size: int = TILE_SIZE,
                 apply: Optional[Callable[[TileResult], None]] = None,
                 on_applied: Optional[Callable[[TileResult], None]] = None):
        self.worker_count = worker_count
        self.tile_size = tile_size
        self._apply = apply
        self._on_applied = on_applied
        self._lock = threading.Lock()
        self._generation = 0
        self._futures: List[futures.Future] = []
        self._executor = futures.ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="tile-worker"
        )
        self.stats = SchedulerStats()

    @property
    def lock(self):
        """Lock guarding the generation counter and every applied tile."""
        return self._lock

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def start_generation(self, width, height, compute, prepare=None) -> int:
        """
        Invalidate all outstanding work and enqueue every tile of a new image.

        Args:
            width, height: Image size in pixels
            compute: Called on a worker with a Tile, returns its (h, w, 3) pixels
            prepare: Called with the new generation number under the lock,
                before any of its tiles can be applied

        Returns:
            The new generation number
        """
        # Tiles are queued before the lock is released, so pending() and
        # wait() never see a started generation with nothing outstanding
        with self._lock:
            self._generation += 1
            generation = self._generation
            stale = self._futures
            if prepare is not None:
                prepare(generation)
            cancelled = sum(1 for f in stale if f.cancel())
            self.stats.cancelled += cancelled
            tiles = make_tiles(width, height, self.tile_size, generation)
            self._futures = []
            for tile in tiles:
                future = self._executor.submit(self._run, tile, compute)
                future.add_done_callback(self._log_failure)
                self._futures.append(future)

        logger.debug("Generation %d: %d tiles queued, %d stale tiles cancelled",
                     generation, len(tiles), cancelled)
        return generation

    def submit(self, result: TileResult) -> bool:
        """Apply a finished tile if its generation is still current."""
        with self._lock:
            if result.tile.generation != self._generation:
                self.stats.discarded += 1
                return False
            if self._apply is not None:
                self._apply(result)
            self.stats.completed += 1
        if self._on_applied is not None:
            self._on_applied(result)
        return True

    def _run(self, tile: Tile, compute) -> bool:
        if not self.is_current(tile.generation):
            with self._lock:
                self.stats.skipped += 1
            return False
        pixels = compute(tile)
        return self.submit(TileResult(tile, pixels))

    @staticmethod
    def _log_failure(future):
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Tile computation failed", exc_info=exc)

    def pending(self) -> int:
        """Number of tiles of the current generation not yet finished."""
        with self._lock:
            return sum(1 for f in self._futures if not f.done())

    def wait(self, timeout=None) -> bool:
        """
        Block until every tile of the current generation has finished.

        Re-raises the first exception raised by a tile computation.

        Returns:
            True if the generation finished, False on timeout
        """
        with self._lock:
            pending = list(self._futures)
        done, not_done = futures.wait(pending, timeout=timeout)
        for future in done:
            if not future.cancelled():
                future.result()
        return not not_done

    def close(self):
        """Stop the workers, dropping tiles that have not started."""
        with self._lock:
            self._generation += 1
        self._executor.shutdown(wait=True, cancel_futures=True)
