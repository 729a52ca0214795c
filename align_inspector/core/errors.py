"""Exceptions raised by the inspector core.

Destination failures are not wrapped: they surface as the ``OSError`` raised
by the failing ``open``/``write`` call.
"""


class ConfigError(ValueError):
    """Invalid configuration value, detected at construction time."""


class ShapeError(ValueError):
    """Attribute matrix does not fit the shape expected by an export block."""
