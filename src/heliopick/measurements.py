"""
Recorded picks and the rotation analysis built on them.

A feature tracked across a sequence of images drifts in longitude as the Sun
rotates; :func:`rotation_rate` turns such a track into degrees per day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import MetadataError
from .geometry import DiskGeometry
from .loader import ImageEntry
from .metadata import parse_observation_time
from .transform import OFF_DISK, OffDisk, PointLike, ProjectionModel, to_heliographic

UNKNOWN_TIME = "Unknown"


@dataclass(frozen=True)
class Measurement:
    image: str
    observation_time: str
    pixel_x: float
    pixel_y: float
    helio_longitude: float
    helio_latitude: float
    distance_percent: float
    label: str = ""


def measure(
    entry: ImageEntry,
    point: PointLike,
    label: str = "",
    geometry: Optional[DiskGeometry] = None,
    model: Union[ProjectionModel, str] = ProjectionModel.LINEAR,
) -> Union[Measurement, OffDisk]:
    """Transform ``point`` on ``entry`` and package it as a Measurement.

    ``geometry`` overrides the entry's own geometry, e.g. with manual
    corrections applied.
    """
    geometry = geometry or entry.geometry
    result = to_heliographic(point, geometry, model)
    if result is OFF_DISK:
        return OFF_DISK

    x, y = point
    obs = entry.observation_time.isoformat() if entry.observation_time else UNKNOWN_TIME
    return Measurement(
        image=entry.name,
        observation_time=obs,
        pixel_x=float(x),
        pixel_y=float(y),
        helio_longitude=result.longitude_deg,
        helio_latitude=result.latitude_deg,
        distance_percent=result.percent_distance,
        label=label,
    )


class MeasurementLog:
    """Append-only list of measurements in recording order."""

    def __init__(self, measurements: Iterable[Measurement] = ()):
        self._items: List[Measurement] = list(measurements)

    def append(self, measurement: Measurement) -> None:
        self._items.append(measurement)

    def __iter__(self) -> Iterator[Measurement]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Measurement:
        return self._items[index]

    def labels(self) -> List[str]:
        seen = []
        for m in self._items:
            if m.label and m.label not in seen:
                seen.append(m.label)
        return seen

    def filter(self, label: Optional[str] = None) -> List[Measurement]:
        if label is None:
            return list(self._items)
        return [m for m in self._items if m.label == label]


def _timestamp(m: Measurement) -> datetime:
    try:
        return parse_observation_time(m.observation_time)
    except MetadataError:
        raise ValueError(
            f"{m.image}: no usable observation time ({m.observation_time!r})"
        ) from None


def rotation_series(measurements: Sequence[Measurement]) -> Tuple[np.ndarray, np.ndarray]:
    """Hours since the first observation and longitude, sorted by time.

    Raises
    ------
    ValueError
        A measurement has no parseable observation time (e.g. ``"Unknown"``).
    """
    if not measurements:
        return np.array([]), np.array([])
    ordered = sorted(measurements, key=_timestamp)
    t0 = _timestamp(ordered[0])
    hours = np.array([(_timestamp(m) - t0).total_seconds() / 3600.0 for m in ordered])
    longitudes = np.array([m.helio_longitude for m in ordered])
    return hours, longitudes


def rotation_rate(measurements: Sequence[Measurement]) -> float:
    """Apparent longitude drift in degrees per day.

    Longitudes are unwrapped across the 0/360 seam before the linear fit.

    Raises
    ------
    ValueError
        Fewer than two distinct observation times, or a measurement
        without a usable observation time.
    """
    hours, longitudes = rotation_series(measurements)
    if np.unique(hours).size < 2:
        raise ValueError("rotation_rate needs measurements at two or more distinct times")
    unwrapped = np.unwrap(longitudes, period=360.0)
    slope, _ = np.polyfit(hours, unwrapped, 1)
    return float(slope * 24.0)
