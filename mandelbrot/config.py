"""Render configuration and JSON settings loading."""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from .colormaps import COLORMAPS
from .errors import ConfigurationError
from .precision import PRECISIONS, get_precision
from .tiles import TILE_SIZE
from .viewport import Viewport

logger = logging.getLogger(__name__)

# Names used by settings files written for other front ends.
_ALIASES = {
    "maxIterations": "max_iter",
    "paletteName": "palette",
    "tileSize": "tile_size",
    "workerCount": "worker_count",
}


def default_worker_count() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class RenderConfig:
    """Settings for the render engine and the initial view.

    The default view shows the classic overview, (-2.5, 1.0) on the real
    axis, centered vertically on 0.
    """

    max_iter: int = 500
    palette: str = "Hot"
    tile_size: int = TILE_SIZE
    worker_count: int = field(default_factory=default_worker_count)
    escape_radius: float = 2.0
    smooth: bool = True
    precision: str = "double"
    extended_dps: int = 50
    width: int = 800
    height: int = 800
    # Numbers, or decimal strings to keep more digits than float64 holds
    center: Tuple[Union[float, str], Union[float, str]] = (-0.75, 0.0)
    scale: float = 3.5 / 800

    def __post_init__(self):
        if self.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be positive, got {self.max_iter}")
        if self.palette not in COLORMAPS:
            raise ConfigurationError(
                f"unknown palette {self.palette!r}; choose from {', '.join(COLORMAPS)}"
            )
        if self.tile_size <= 0:
            raise ConfigurationError(f"tile_size must be positive, got {self.tile_size}")
        if self.worker_count <= 0:
            raise ConfigurationError(f"worker_count must be positive, got {self.worker_count}")
        if self.escape_radius < 2.0:
            raise ConfigurationError(
                f"escape_radius must be at least 2, got {self.escape_radius}"
            )
        if self.precision not in PRECISIONS:
            raise ConfigurationError(
                f"unknown precision {self.precision!r}; choose from {', '.join(PRECISIONS)}"
            )
        if self.extended_dps <= 0:
            raise ConfigurationError(f"extended_dps must be positive, got {self.extended_dps}")
        # Reuses the viewport checks for size and scale
        self.initial_viewport()

    def initial_viewport(self) -> Viewport:
        """Starting view; centre coordinates are at the configured precision."""
        strategy = get_precision(self.precision, self.escape_radius, self.extended_dps)
        return Viewport(
            center_real=strategy.coordinate(self.center[0]),
            center_imag=strategy.coordinate(self.center[1]),
            scale=self.scale,
            width=self.width,
            height=self.height,
            max_iter=self.max_iter,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def default_config(**overrides: object) -> RenderConfig:
    """Return the default config optionally overridden with kwargs."""
    return replace(RenderConfig(), **_normalize(overrides))


def load_config(path: str | Path, **overrides: object) -> RenderConfig:
    """
    Load settings from a JSON file on top of the defaults.

    A missing or unreadable file logs a warning and yields the defaults;
    values that are present must be valid. Keyword overrides win over the
    file.
    """
    settings = _read_settings(path)
    if settings is None:
        settings = {}
    elif not isinstance(settings, dict):
        raise ConfigurationError(f"{path}: settings must be a JSON object")
    merged = {**_normalize(settings), **_normalize(overrides)}
    return default_config(**merged)


def _read_settings(path: str | Path) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Could not load settings from %s: %s", path, e)
        return None


def _normalize(raw: Dict[str, object]) -> Dict[str, object]:
    known = {f.name for f in fields(RenderConfig)}
    result: Dict[str, object] = {}
    for key, value in raw.items():
        if value is None:
            continue
        name = _ALIASES.get(key, key)
        if name not in known:
            raise ConfigurationError(f"unknown setting {key!r}")
        result[name] = value
    if "center" in result:
        center = result["center"]
        if not isinstance(center, (list, tuple)) or len(center) != 2:
            raise ConfigurationError(f"center must be a [real, imag] pair, got {center!r}")
        result["center"] = tuple(_as_coordinate(part) for part in center)
    for name in ("max_iter", "tile_size", "worker_count", "extended_dps", "width", "height"):
        if name in result:
            result[name] = _as_int(name, result[name])
    for name in ("scale", "escape_radius"):
        if name in result:
            result[name] = _as_real(name, result[name])
    for name in ("palette", "precision"):
        if name in result and not isinstance(result[name], str):
            raise ConfigurationError(f"{name} must be a name, got {result[name]!r}")
    if "smooth" in result and not isinstance(result["smooth"], bool):
        raise ConfigurationError(f"smooth must be true or false, got {result['smooth']!r}")
    return result


def _is_number(value: object) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))


def _as_int(name: str, value: object) -> int:
    if not _is_number(value) or int(value) != value:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _as_real(name: str, value: object) -> float:
    if not _is_number(value):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    return float(value)


def _as_coordinate(value: object) -> Union[float, str]:
    """A float, or a decimal string kept verbatim for extended precision."""
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            parsed = math.nan
        if not math.isfinite(parsed):
            raise ConfigurationError(f"center coordinate must be a number, got {value!r}")
        return value.strip()
    if not _is_number(value):
        raise ConfigurationError(f"center coordinate must be a number, got {value!r}")
    return float(value)
