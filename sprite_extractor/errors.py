"""
Exception types raised by the sprite extraction library.
"""


class SpriteExtractorError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SpriteExtractorError, ValueError):
    """A configuration value is missing, non-numeric or out of range."""


class DimensionMismatch(SpriteExtractorError, ValueError):
    """Two images that must share dimensions do not, or a trim leaves nothing."""


class DecodeFailure(SpriteExtractorError, IOError):
    """Image data could not be decoded."""
