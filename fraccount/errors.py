"""
Exception types raised by the box counting pipeline.

Every error derives from :class:`BoxCountError` so callers can catch the whole
family at once. Errors that describe bad input also derive from ``ValueError``.
"""


class BoxCountError(Exception):
    """Base class for all fraccount errors."""


class ConfigurationError(BoxCountError, ValueError):
    """The configuration cannot be used (detected before any counting)."""


class EmptyGridError(BoxCountError, ValueError):
    """The sample grid has a zero-sized axis."""


class NoBoxesError(BoxCountError):
    """No box size survived series generation, or no sample was produced."""


class EmptyInputError(BoxCountError, ValueError):
    """The regression was given no usable samples."""


class DegenerateFitError(BoxCountError):
    """Fewer than two distinct box sizes, so the slope is undefined."""


class EstimationCancelled(BoxCountError):
    """The run was cancelled between two box sizes."""
