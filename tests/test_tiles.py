import threading
import time

import numpy as np
import pytest

from mandelbrot import Tile, TileScheduler, make_tiles
from mandelbrot.tiles import TileResult


@pytest.mark.parametrize("width,height,size", [(400, 300, 64), (64, 64, 64), (10, 7, 3), (1, 1, 16)])
def test_tiles_cover_image_exactly_once(width, height, size):
    coverage = np.zeros((height, width), dtype=np.int64)
    tiles = make_tiles(width, height, size, generation=3)
    for tile in tiles:
        assert tile.generation == 3
        assert 0 < tile.width <= size and 0 < tile.height <= size
        coverage[tile.y0:tile.y1, tile.x0:tile.x1] += 1
    assert (coverage == 1).all()


def test_tiles_are_ordered_center_first():
    tiles = make_tiles(256, 256, 64, generation=1)
    first = tiles[0]
    assert first.x0 <= 128 <= first.x1 and first.y0 <= 128 <= first.y1
    corners = {(0, 0), (192, 0), (0, 192), (192, 192)}
    assert {(t.x0, t.y0) for t in tiles[-4:]} == corners


class Canvas:
    """Pixel sink recording which generation painted each pixel."""

    def __init__(self, width, height):
        self.pixels = np.zeros((height, width, 3), dtype=np.uint8)

    def apply(self, result):
        t = result.tile
        self.pixels[t.y0:t.y1, t.x0:t.x1] = result.pixels


def filled(value):
    def compute(tile):
        return np.full(tile.shape + (3,), value, dtype=np.uint8)
    return compute


def test_generations_increase_and_results_land():
    canvas = Canvas(40, 30)
    applied = []
    scheduler = TileScheduler(3, 16, apply=canvas.apply, on_applied=applied.append)
    try:
        g1 = scheduler.start_generation(40, 30, filled(7))
        assert scheduler.wait(timeout=10)
        g2 = scheduler.start_generation(40, 30, filled(9))
        assert scheduler.wait(timeout=10)
    finally:
        scheduler.close()
    assert g2 == g1 + 1
    assert (canvas.pixels == 9).all()
    assert scheduler.stats.completed == 2 * len(make_tiles(40, 30, 16, 0))
    assert len(applied) == scheduler.stats.completed


def test_stale_generation_never_reaches_the_output():
    canvas = Canvas(64, 64)
    release = threading.Event()
    started = threading.Barrier(3)

    def slow_first(tile):
        started.wait(timeout=10)
        release.wait(timeout=10)
        return np.full(tile.shape + (3,), 1, dtype=np.uint8)

    scheduler = TileScheduler(2, 16, apply=canvas.apply)
    try:
        scheduler.start_generation(64, 64, slow_first)
        # Both workers are now inside a generation-1 tile
        started.wait(timeout=10)
        scheduler.start_generation(64, 64, filled(2))
        release.set()
        assert scheduler.wait(timeout=10)
    finally:
        scheduler.close()

    assert (canvas.pixels == 2).all()
    stats = scheduler.stats
    assert stats.completed == 16
    assert stats.discarded == 2
    assert stats.cancelled + stats.skipped == 14


def test_submit_rejects_other_generations():
    scheduler = TileScheduler(1, 8, apply=lambda result: None)
    try:
        generation = scheduler.start_generation(8, 8, filled(0))
        scheduler.wait(timeout=10)
        stale = TileResult(Tile(0, 0, 8, 8, generation - 1), np.zeros((8, 8, 3), np.uint8))
        assert not scheduler.submit(stale)
        assert scheduler.is_current(generation)
        assert not scheduler.is_current(generation - 1)
    finally:
        scheduler.close()


def test_wait_reraises_worker_errors():
    def broken(tile):
        raise RuntimeError("boom")

    scheduler = TileScheduler(1, 8)
    try:
        scheduler.start_generation(8, 8, broken)
        with pytest.raises(RuntimeError, match="boom"):
            scheduler.wait(timeout=10)
    finally:
        scheduler.close()


def test_started_generation_is_never_reported_idle():
    seen = []
    scheduler = TileScheduler(4, 4)

    def compute(tile):
        # Runs while this tile's own future is still outstanding
        seen.append(scheduler.pending())
        return np.zeros(tile.shape + (3,), dtype=np.uint8)

    try:
        for _ in range(5):
            scheduler.start_generation(32, 32, compute)
            assert scheduler.wait(timeout=10)
    finally:
        scheduler.close()
    assert seen
    assert min(seen) >= 1


def test_close_cancels_queued_tiles():
    release = threading.Event()
    started = threading.Event()
    calls = []

    def blocked(tile):
        calls.append(tile)
        started.set()
        release.wait(timeout=10)
        return np.full(tile.shape + (3,), 1, dtype=np.uint8)

    canvas = Canvas(64, 64)
    scheduler = TileScheduler(1, 16, apply=canvas.apply)
    scheduler.start_generation(64, 64, blocked)
    assert started.wait(timeout=10)
    closer = threading.Thread(target=scheduler.close)
    closer.start()
    deadline = time.monotonic() + 10
    while scheduler.generation == 1 and time.monotonic() < deadline:
        time.sleep(0.001)
    release.set()
    closer.join(timeout=10)

    assert not closer.is_alive()
    assert len(calls) == 1
    assert not canvas.pixels.any()
    # The tile in flight finished after close and was dropped
    assert scheduler.stats.completed == 0
    assert scheduler.stats.discarded == 1
