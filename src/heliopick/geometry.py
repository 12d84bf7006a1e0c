"""
Solar disk geometry: where the disk sits in an image and how it is oriented.

A :class:`DiskGeometry` is built once per image by :func:`resolve_geometry`,
preferring trusted center/radius values (FITS header, JSON sidecar) over an
estimate produced by a :class:`DetectionStrategy`.
"""

from __future__ import annotations

import abc
import dataclasses
import logging
import math
from typing import Any, Mapping, NamedTuple, Optional, Tuple, Union

import numpy as np

from .errors import InvalidGeometry

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_FRACTION = 0.45


class DiskParams(NamedTuple):
    """Disk center and radius in image pixels."""

    cx: float
    cy: float
    radius: float


@dataclasses.dataclass(frozen=True)
class DiskGeometry:
    center_x: float
    center_y: float
    radius_px: float
    b0_deg: float = 0.0
    l0_deg: float = 0.0
    p_angle_deg: float = 0.0

    def __post_init__(self) -> None:
        validate_geometry(self)

    @property
    def params(self) -> DiskParams:
        return DiskParams(self.center_x, self.center_y, self.radius_px)

    def corrected(
        self,
        radius_correction: float = 1.0,
        x_offset: float = 0.0,
        y_offset: float = 0.0,
    ) -> "DiskGeometry":
        """Return a new geometry with manual offsets and a radius scale applied."""
        return dataclasses.replace(
            self,
            center_x=self.center_x + float(x_offset),
            center_y=self.center_y + float(y_offset),
            radius_px=self.radius_px * float(radius_correction),
        )

    def scaled(self, scale: float) -> "DiskGeometry":
        """Return the geometry in a resampled pixel space (e.g. a display canvas)."""
        scale = float(scale)
        return dataclasses.replace(
            self,
            center_x=self.center_x * scale,
            center_y=self.center_y * scale,
            radius_px=self.radius_px * scale,
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def validate_geometry(geometry: Any) -> None:
    """Reject geometries whose radius is not a positive finite number."""
    radius = getattr(geometry, "radius_px", None)
    try:
        radius = float(radius)
    except (TypeError, ValueError):
        raise InvalidGeometry(f"radius_px must be numeric, got {radius!r}") from None
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidGeometry(f"radius_px must be > 0, got {radius}")
    for name in ("center_x", "center_y"):
        value = getattr(geometry, name, None)
        try:
            finite = math.isfinite(float(value))
        except (TypeError, ValueError):
            finite = False
        if not finite:
            raise InvalidGeometry(f"{name} must be finite, got {value!r}")


class DetectionStrategy(abc.ABC):
    """Estimates the disk when no trusted center/radius is available."""

    name = "abstract"

    @abc.abstractmethod
    def estimate(self, width: int, height: int, pixels: Optional[np.ndarray] = None) -> DiskParams:
        ...


class CenteredDetection(DetectionStrategy):
    """Assume the disk is centered and fills a fixed fraction of the short side.

    This is a stand-in for limb detection, not an accurate fit.
    """

    name = "centered"

    def __init__(self, radius_fraction: float = DEFAULT_RADIUS_FRACTION):
        if radius_fraction <= 0:
            raise InvalidGeometry(f"radius_fraction must be > 0, got {radius_fraction}")
        self.radius_fraction = float(radius_fraction)

    def estimate(self, width: int, height: int, pixels: Optional[np.ndarray] = None) -> DiskParams:
        return DiskParams(width / 2, height / 2, min(width, height) * self.radius_fraction)


class ContourBasedDetection(DetectionStrategy):
    """Extension point for limb fitting on pixel data.

    Subclasses implement :meth:`fit_limb`. Pixel samples are required; there
    is no fallback to the centered estimate.
    """

    name = "contour"

    def __init__(self, threshold: float = 0.5):
        self.threshold = float(threshold)

    @abc.abstractmethod
    def fit_limb(self, pixels: np.ndarray) -> DiskParams:
        ...

    def estimate(self, width: int, height: int, pixels: Optional[np.ndarray] = None) -> DiskParams:
        if pixels is None:
            raise InvalidGeometry(f"{type(self).__name__} needs pixel samples to locate the limb")
        pixels = np.asarray(pixels)
        if pixels.shape[:2] != (int(height), int(width)):
            raise InvalidGeometry(
                f"pixel array shape {pixels.shape[:2]} does not match image {height}x{width}"
            )
        return DiskParams(*self.fit_limb(pixels))


def _coerce_params(trusted_params: Union[Mapping[str, Any], Tuple, None]) -> Optional[DiskParams]:
    if trusted_params is None:
        return None
    try:
        if isinstance(trusted_params, Mapping):
            cx, cy, radius = (trusted_params[k] for k in ("cx", "cy", "radius"))
        else:
            cx, cy, radius = trusted_params
        return DiskParams(float(cx), float(cy), float(radius))
    except (KeyError, TypeError, ValueError):
        logger.warning("Ignoring malformed disk parameters: %r", trusted_params)
        return None


def _coerce_orientation(trusted_orientation: Optional[Mapping[str, Any]]) -> Tuple[float, float, float]:
    if not trusted_orientation:
        return 0.0, 0.0, 0.0
    out = []
    for key in ("B0", "L0", "P_ANGLE"):
        raw = trusted_orientation.get(key)
        if raw is None:
            out.append(0.0)
            continue
        try:
            val = float(raw)
        except (TypeError, ValueError):
            raise InvalidGeometry(f"{key} must be numeric, got {raw!r}") from None
        if not math.isfinite(val):
            raise InvalidGeometry(f"{key} must be finite, got {raw!r}")
        out.append(val)
    return out[0], out[1], out[2]


def resolve_geometry(
    width: float,
    height: float,
    trusted_params: Union[Mapping[str, Any], DiskParams, None] = None,
    trusted_orientation: Optional[Mapping[str, Any]] = None,
    strategy: Optional[DetectionStrategy] = None,
    pixels: Optional[np.ndarray] = None,
) -> DiskGeometry:
    """Build the disk geometry for an image.

    Parameters
    ----------
    width, height
        Image intrinsic size in pixels.
    trusted_params
        ``{"cx", "cy", "radius"}`` from a header or sidecar. Used verbatim when
        well formed; malformed values are ignored with a warning.
    trusted_orientation
        ``{"B0", "L0", "P_ANGLE"}`` in degrees. Missing keys default to 0.
    strategy
        Fallback estimator, :class:`CenteredDetection` by default.
    pixels
        Pixel samples, only needed by strategies that look at the image.

    Raises
    ------
    InvalidGeometry
        Non-positive image size, trusted radius <= 0, or non-numeric
        orientation.
    """
    try:
        width = float(width)
        height = float(height)
    except (TypeError, ValueError):
        raise InvalidGeometry(f"image size must be numeric, got {width!r}x{height!r}") from None
    if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
        raise InvalidGeometry(f"image size must be positive, got {width}x{height}")

    b0, l0, p_angle = _coerce_orientation(trusted_orientation)

    params = _coerce_params(trusted_params)
    if params is not None:
        if not math.isfinite(params.radius) or params.radius <= 0:
            raise InvalidGeometry(f"trusted radius must be > 0, got {params.radius}")
        logger.debug("Using trusted disk parameters %s", params)
    else:
        strategy = strategy or CenteredDetection()
        params = strategy.estimate(width, height, pixels)
        logger.debug("Estimated disk parameters %s with %s strategy", params, strategy.name)

    return DiskGeometry(
        center_x=float(params.cx),
        center_y=float(params.cy),
        radius_px=float(params.radius),
        b0_deg=b0,
        l0_deg=l0,
        p_angle_deg=p_angle,
    )
