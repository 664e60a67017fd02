"""Exceptions raised by the Mandelbrot viewer."""


class ConfigurationError(ValueError):
    """Raised when a viewport or render setting is out of range.

    Invalid settings are rejected where they are constructed, so nothing
    past a ``Viewport`` or ``RenderConfig`` ever sees them.
    """
