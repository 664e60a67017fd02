"""
Interactive viewer for the Mandelbrot render engine.

Contains the MandelbrotApp class which handles:
- Window setup and main loop
- User input (zoom, pan, keyboard, window resize)
- Turning input into new Viewport values for the engine
- Repainting as rendered regions arrive
"""

import argparse
import logging
import queue

import pygame

from .colormaps import list_colormap_names
from .compute import warmup_jit
from .config import default_config, load_config
from .errors import ConfigurationError
from .precision import list_precision_names
from .renderer import RenderEngine

logger = logging.getLogger(__name__)


class MandelbrotApp:
    """
    Main application class for the Mandelbrot viewer.

    Owns the pygame window and the event loop. Everything it knows about
    the view lives in ``self.viewport``; each change produces a new
    Viewport that is handed to the engine after a short debounce.
    """

    RENDER_DELAY_MS = 25  # Delay before starting render after user action
    ZOOM_IN_FACTOR = 1 / 0.85
    ZOOM_OUT_FACTOR = 1 / 1.18
    KEY_ZOOM_FACTOR = 2.0
    PAN_FRACTION = 0.1  # Arrow keys move by this fraction of the view

    def __init__(self, config=None):
        self.config = config or default_config()
        self.home = self.config.initial_viewport()
        self.viewport = self.home

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None
        self.surface = None

        self.engine = None
        self.updates = queue.SimpleQueue()

        # Input state
        self.dragging = False
        self.drag_start = None
        self.drag_start_viewport = None
        self.drag_offset = (0, 0)

        # Render timing
        self.last_action_time = 0
        self.pending_render = False

        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self.engine = RenderEngine(self.config)
        self.engine.add_listener(self.updates.put)
        try:
            pygame.display.set_caption("Compiling (first run only)...")
            warmup_jit()
            self.engine.render(self.viewport)

            self.running = True
            while self.running:
                current_time = pygame.time.get_ticks()
                self._handle_events(current_time)
                self._drain_updates()
                self._maybe_start_render(current_time)
                self._draw()
                self.clock.tick(60)
        finally:
            self.engine.close()
            pygame.quit()

    def _init_pygame(self):
        pygame.init()
        self.screen = pygame.display.set_mode(
            self.viewport.size, pygame.DOUBLEBUF | pygame.RESIZABLE
        )
        self.clock = pygame.time.Clock()
        self.surface = pygame.Surface(self.viewport.size)

    def _request_render(self, viewport, current_time):
        self.viewport = viewport
        self.last_action_time = current_time
        self.pending_render = True

    def _handle_events(self, current_time):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.MOUSEWHEEL:
                self._handle_zoom(event, current_time)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.dragging = True
                self.drag_start = event.pos
                self.drag_start_viewport = self.viewport
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self._handle_drag_end(event, current_time)
            elif event.type == pygame.MOUSEMOTION and self.dragging:
                mx, my = event.pos
                self.drag_offset = (mx - self.drag_start[0], my - self.drag_start[1])
            elif event.type == pygame.VIDEORESIZE:
                self._handle_resize(event, current_time)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event, current_time)

    def _handle_zoom(self, event, current_time):
        """Mouse wheel zoom, keeping the point under the cursor fixed."""
        factor = self.ZOOM_IN_FACTOR if event.y > 0 else self.ZOOM_OUT_FACTOR
        anchor = pygame.mouse.get_pos()
        self._request_render(self.viewport.zoom(factor, anchor), current_time)

    def _handle_drag_end(self, event, current_time):
        if not self.dragging:
            return
        self.dragging = False
        dx = self.drag_start[0] - event.pos[0]
        dy = self.drag_start[1] - event.pos[1]
        if dx or dy:
            self._request_render(self.drag_start_viewport.pan(dx, dy), current_time)
        self.drag_offset = (0, 0)

    def _handle_resize(self, event, current_time):
        width, height = max(1, event.w), max(1, event.h)
        self.screen = pygame.display.set_mode(
            (width, height), pygame.DOUBLEBUF | pygame.RESIZABLE
        )
        self._request_render(self.viewport.resize(width, height), current_time)

    def _handle_key(self, event, current_time):
        """Handle keyboard input."""
        step_x = self.viewport.width * self.PAN_FRACTION
        step_y = self.viewport.height * self.PAN_FRACTION
        moves = {
            pygame.K_LEFT: (-step_x, 0),
            pygame.K_RIGHT: (step_x, 0),
            pygame.K_UP: (0, -step_y),
            pygame.K_DOWN: (0, step_y),
        }
        if event.key in moves:
            self._request_render(self.viewport.pan(*moves[event.key]), current_time)
        elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self._request_render(self.viewport.zoom(self.KEY_ZOOM_FACTOR), current_time)
        elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self._request_render(self.viewport.zoom(1 / self.KEY_ZOOM_FACTOR), current_time)
        elif event.key == pygame.K_r:
            # Reset to the configured view at the current window size
            home = self.home.resize(self.viewport.width, self.viewport.height)
            self._request_render(home, current_time)
        elif event.key == pygame.K_ESCAPE:
            self.running = False

    def _maybe_start_render(self, current_time):
        """Start a new render once input has settled."""
        if self.pending_render and current_time - self.last_action_time > self.RENDER_DELAY_MS:
            self.pending_render = False
            self.engine.render(self.viewport)

    def _drain_updates(self):
        """Repaint from the engine buffer if any region arrived since last frame."""
        updated = False
        while True:
            try:
                self.updates.get_nowait()
            except queue.Empty:
                break
            updated = True
        if not updated:
            return
        pixels = self.engine.snapshot()
        height, width = pixels.shape[:2]
        if self.surface.get_size() != (width, height):
            self.surface = pygame.Surface((width, height))
        pygame.surfarray.blit_array(self.surface, pixels.swapaxes(0, 1))

    def _draw(self):
        self.screen.fill((0, 0, 0))
        self.screen.blit(self.surface, self.drag_offset)
        pygame.display.flip()

        if self.pending_render or not self.engine.is_idle():
            pygame.display.set_caption("Computing...")
        else:
            vp = self.viewport
            pygame.display.set_caption(
                f"Mandelbrot Set - center {float(vp.center_real):.10g}"
                f"{float(vp.center_imag):+.10g}i, "
                f"scale {vp.scale:.3g} - scroll to zoom, drag to pan, R to reset"
            )


def run(config=None):
    """Run the Mandelbrot viewer with the given RenderConfig."""
    app = MandelbrotApp(config)
    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="mandelbrot", description="Interactive Mandelbrot set viewer"
    )
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument("--width", type=int)
    parser.add_argument("--height", type=int)
    parser.add_argument("--max-iter", type=int)
    parser.add_argument("--palette", choices=list_colormap_names())
    parser.add_argument("--tile-size", type=int)
    parser.add_argument("--workers", type=int, dest="worker_count")
    parser.add_argument("--precision", choices=list_precision_names())
    parser.add_argument("--center", nargs=2, metavar=("REAL", "IMAG"),
                        help="plane point at the window centre; all digits are kept "
                             "with --precision extended")
    parser.add_argument("--scale", type=float, help="plane units per pixel")
    parser.add_argument("--discrete", action="store_true",
                        help="shade by integer iteration count")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    overrides = {
        "width": args.width,
        "height": args.height,
        "max_iter": args.max_iter,
        "palette": args.palette,
        "tile_size": args.tile_size,
        "worker_count": args.worker_count,
        "precision": args.precision,
        "center": args.center,
        "scale": args.scale,
        "smooth": False if args.discrete else None,
    }
    try:
        if args.config:
            config = load_config(args.config, **overrides)
        else:
            config = default_config(**overrides)
    except ConfigurationError as e:
        parser.error(str(e))

    logger.info("Starting viewer: %s", config)
    run(config)
