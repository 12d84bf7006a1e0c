"""
Pixel -> heliographic coordinate transform.

Angles are degrees at the boundary and radians inside. The disk center maps
to the sub-observer point (L0, B0); points with rho > 1 are off the disk and
yield :data:`OFF_DISK` instead of coordinates.
"""

from __future__ import annotations

import enum
import math
from typing import NamedTuple, Sequence, Tuple, Union

import numpy as np

from ._numeric import clamp, normalize_longitude
from .geometry import DiskGeometry, validate_geometry

DEFAULT_LIMB_TOLERANCE = 1.05


class PixelPoint(NamedTuple):
    x: float
    y: float


class HeliographicResult(NamedTuple):
    """Heliographic coordinates of an on-disk pick."""

    longitude_deg: float
    latitude_deg: float
    rho: float

    @property
    def percent_distance(self) -> float:
        return self.rho * 100.0


class OffDisk:
    """Sentinel type for picks outside the projected disk."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "OFF_DISK"


OFF_DISK = OffDisk()


class ProjectionModel(str, enum.Enum):
    """How normalized radius maps to angular distance from disk center.

    LINEAR
        ``rho * 90 deg``; the default.
    ARCSIN
        ``asin(rho)``, orthographic foreshortening.
    """

    LINEAR = "linear"
    ARCSIN = "arcsin"


PointLike = Union[PixelPoint, Sequence[float]]


def _offsets(point: PointLike, geometry: DiskGeometry) -> Tuple[float, float]:
    x, y = point
    # pixel rows grow downward, latitude grows upward
    return float(x) - geometry.center_x, geometry.center_y - float(y)


def radial_distance(point: PointLike, geometry: DiskGeometry) -> float:
    """Distance from disk center in units of the disk radius (unclamped)."""
    validate_geometry(geometry)
    dx, dy = _offsets(point, geometry)
    return math.hypot(dx, dy) / geometry.radius_px


def percent_distance(point: PointLike, geometry: DiskGeometry) -> float:
    return radial_distance(point, geometry) * 100.0


def is_within_disk(
    point: PointLike,
    geometry: DiskGeometry,
    tolerance_factor: float = DEFAULT_LIMB_TOLERANCE,
) -> bool:
    """Lenient acceptance test for picks, ``rho <= tolerance_factor``.

    The transform itself still refuses anything beyond rho = 1.
    """
    return radial_distance(point, geometry) <= tolerance_factor


def position_angle(point: PointLike, geometry: DiskGeometry) -> float:
    """Position angle from solar north in degrees, P-angle removed."""
    dx, dy = _offsets(point, geometry)
    return math.degrees(math.atan2(dx, dy)) - geometry.p_angle_deg


def _rho_angle(rho, model: ProjectionModel):
    if model is ProjectionModel.ARCSIN:
        return np.arcsin(clamp(rho))
    return rho * (np.pi / 2.0)


def _carrington(dx, dy, rho, geometry: DiskGeometry, model: ProjectionModel):
    theta = np.deg2rad(np.rad2deg(np.arctan2(dx, dy)) - geometry.p_angle_deg)
    ra = _rho_angle(rho, model)
    b0 = np.deg2rad(geometry.b0_deg)

    sin_b = np.cos(ra) * np.sin(b0) + np.sin(ra) * np.cos(b0) * np.cos(theta)
    lat = np.rad2deg(np.arcsin(clamp(sin_b)))

    y_term = np.sin(ra) * np.sin(theta)
    x_term = np.cos(ra) * np.cos(b0) - np.sin(ra) * np.cos(theta) * np.sin(b0)
    lon = normalize_longitude(np.rad2deg(np.arctan2(y_term, x_term)) + geometry.l0_deg)
    return lon, lat


def to_heliographic(
    point: PointLike,
    geometry: DiskGeometry,
    model: Union[ProjectionModel, str] = ProjectionModel.LINEAR,
) -> Union[HeliographicResult, OffDisk]:
    """Convert a pixel pick into heliographic longitude/latitude.

    Parameters
    ----------
    point
        ``(x, y)`` in the same pixel space as ``geometry``.
    geometry
        Disk center, radius and orientation (B0, L0, P-angle).
    model
        Radius-to-angle mapping, see :class:`ProjectionModel`.

    Returns
    -------
    HeliographicResult | OffDisk
        Longitude in [0, 360), latitude in [-90, 90] and rho, or
        :data:`OFF_DISK` when rho > 1.
    """
    validate_geometry(geometry)
    model = ProjectionModel(model)

    dx, dy = _offsets(point, geometry)
    rho = math.hypot(dx, dy) / geometry.radius_px
    if rho > 1.0:
        return OFF_DISK

    lon, lat = _carrington(dx, dy, rho, geometry, model)
    return HeliographicResult(float(lon), float(lat), rho)


def to_heliographic_array(
    xs,
    ys,
    geometry: DiskGeometry,
    model: Union[ProjectionModel, str] = ProjectionModel.LINEAR,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized :func:`to_heliographic`.

    Returns ``(longitude, latitude, rho)`` arrays broadcast from ``xs`` and
    ``ys``; longitude and latitude are NaN where rho > 1.
    """
    validate_geometry(geometry)
    model = ProjectionModel(model)

    xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64))
    dx = xs - geometry.center_x
    dy = geometry.center_y - ys
    rho = np.hypot(dx, dy) / geometry.radius_px

    lon, lat = _carrington(dx, dy, rho, geometry, model)
    lon = np.asarray(lon, dtype=np.float64)
    lat = np.asarray(lat, dtype=np.float64)
    off = rho > 1.0
    lon = np.where(off, np.nan, lon)
    lat = np.where(off, np.nan, lat)
    return lon, lat, rho
