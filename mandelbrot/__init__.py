"""
Mandelbrot Set Viewer Package

A tiled, multi-threaded Mandelbrot renderer with an interactive Pygame
front end. Computation is JIT-compiled with Numba.

Quick Start:
    from mandelbrot import RenderEngine, Viewport

    with RenderEngine() as engine:
        engine.render(Viewport(-0.5, 0.0, 0.005, 400, 300, max_iter=100))
        engine.wait()
        image = engine.snapshot()

Or from command line:
    python -m mandelbrot

Package Structure:
    - viewport.py: Immutable Viewport values (pan, zoom, resize)
    - mapping.py: Pixel to complex-plane mapping
    - compute.py: JIT-compiled escape-time iteration
    - precision.py: float64 and arbitrary-precision strategies
    - colormaps.py: Color scheme definitions (hot, ocean, forest, etc.)
    - palette.py: Smooth and discrete shading of escape results
    - tiles.py: Tiling and the generation-aware worker pool
    - renderer.py: RenderEngine, the incremental pixel buffer
    - config.py: Validated settings and JSON loading
    - app.py: Interactive viewer and command line entry point

Controls:
    - Scroll: Zoom in/out at mouse position
    - Drag: Pan around
    - Arrow keys: Move, +/-: Zoom about the center
    - R: Reset to default view
    - ESC: Quit
"""

from .colormaps import COLORMAPS, get_colormap, list_colormap_names
from .compute import EscapeResult, evaluate
from .config import RenderConfig, default_config, load_config
from .errors import ConfigurationError
from .mapping import to_complex
from .palette import Palette
from .renderer import RegionUpdate, RenderEngine
from .tiles import Tile, TileScheduler, make_tiles
from .viewport import PixelCoordinate, Viewport

__version__ = "1.0.0"


# The viewer pulls in pygame, so load it only when asked for
def __getattr__(name):
    if name in ("run", "main", "MandelbrotApp"):
        from . import app

        return getattr(app, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "COLORMAPS",
    "ConfigurationError",
    "EscapeResult",
    "MandelbrotApp",
    "Palette",
    "PixelCoordinate",
    "RegionUpdate",
    "RenderConfig",
    "RenderEngine",
    "Tile",
    "TileScheduler",
    "Viewport",
    "default_config",
    "evaluate",
    "get_colormap",
    "list_colormap_names",
    "load_config",
    "main",
    "make_tiles",
    "run",
    "to_complex",
]
