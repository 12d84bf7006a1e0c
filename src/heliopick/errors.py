from __future__ import annotations


class HelioPickError(Exception):
    """Base class for heliopick errors."""


class InvalidGeometry(HelioPickError, ValueError):
    """Raised when an image or disk geometry cannot be used for picking."""


class MetadataError(HelioPickError):
    """Raised when sidecar or header metadata cannot be parsed."""
