import pytest

from mandelbrot import RenderEngine, default_config


@pytest.fixture
def make_engine():
    """Build RenderEngines with small tiles; all are closed after the test."""
    engines = []

    def factory(**overrides):
        settings = {"worker_count": 2, "tile_size": 16}
        settings.update(overrides)
        engine = RenderEngine(default_config(**settings))
        engines.append(engine)
        return engine

    yield factory
    for engine in engines:
        engine.close()
