"""
Exception types raised by the Pixel Lab core.

FormatError and ParameterError subclass ValueError and BoundsError subclasses
IndexError, so callers that already catch the built-in types keep working.
"""


class PixelLabError(Exception):
    """Base class for all Pixel Lab errors."""


class FormatError(PixelLabError, ValueError):
    """Malformed or unrecognized binary container."""


class ParameterError(PixelLabError, ValueError):
    """Invalid operation parameter or malformed pixel buffer."""


class BoundsError(PixelLabError, IndexError):
    """Pixel access outside the buffer dimensions."""
