"""
heliopick: turn pixel picks on solar disk images into heliographic coordinates.

Public API:
- resolve_geometry, DiskGeometry
- to_heliographic, to_heliographic_array, is_within_disk, percent_distance
- load_image_entry
- SOURCE_IDS
"""

from .errors import HelioPickError, InvalidGeometry, MetadataError
from .geometry import (
    CenteredDetection,
    ContourBasedDetection,
    DetectionStrategy,
    DiskGeometry,
    DiskParams,
    resolve_geometry,
)
from .transform import (
    OFF_DISK,
    HeliographicResult,
    OffDisk,
    PixelPoint,
    ProjectionModel,
    is_within_disk,
    percent_distance,
    to_heliographic,
    to_heliographic_array,
)
from .loader import ImageEntry, load_image_entry
from .sources import SOURCE_IDS

__all__ = [
    "CenteredDetection",
    "ContourBasedDetection",
    "DetectionStrategy",
    "DiskGeometry",
    "DiskParams",
    "HelioPickError",
    "HeliographicResult",
    "ImageEntry",
    "InvalidGeometry",
    "MetadataError",
    "OFF_DISK",
    "OffDisk",
    "PixelPoint",
    "ProjectionModel",
    "SOURCE_IDS",
    "is_within_disk",
    "load_image_entry",
    "percent_distance",
    "resolve_geometry",
    "to_heliographic",
    "to_heliographic_array",
]
