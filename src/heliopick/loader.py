from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import NamedTuple, Optional, Tuple, Union

import imageio.v3 as iio
from astropy.io import fits

from .config import Settings
from .errors import InvalidGeometry, MetadataError
from .geometry import (
    CenteredDetection,
    ContourBasedDetection,
    DetectionStrategy,
    DiskGeometry,
    resolve_geometry,
)
from .metadata import (
    observation_time_from_header,
    orientation_from_header,
    params_from_header,
    parse_sidecar,
)

logger = logging.getLogger(__name__)

FITS_EXTENSIONS = {".fits", ".fit", ".fts"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg"}

PathLike = Union[str, Path]


class ImageEntry(NamedTuple):
    name: str
    width: int
    height: int
    geometry: DiskGeometry
    observation_time: Optional[datetime]
    geometry_source: str


def find_sidecar(path: PathLike) -> Optional[Path]:
    """``<stem>.json`` next to the image, if there is one."""
    candidate = Path(path).with_suffix(".json")
    return candidate if candidate.is_file() else None


def read_image_size(path: PathLike) -> Tuple[int, int]:
    """Return (width, height) of a PNG/JPEG without keeping the pixels around."""
    try:
        shape = iio.improps(path).shape
    except Exception as e:
        raise InvalidGeometry(f"Failed to read image properties of {path}: {e}") from e
    if len(shape) < 2:
        raise InvalidGeometry(f"{path} is not a 2-D image (shape {shape})")
    return int(shape[1]), int(shape[0])


def read_fits_image_header(path: PathLike) -> fits.Header:
    """Header of the first HDU carrying a 2-D (or deeper) image."""
    try:
        with fits.open(path) as hdul:
            for hdu in hdul:
                if hdu.header.get("NAXIS", 0) >= 2:
                    return hdu.header.copy()
    except (OSError, ValueError) as e:
        raise InvalidGeometry(f"Failed to read FITS header of {path}: {e}") from e
    raise InvalidGeometry(f"{path} contains no image HDU")


def _strategy(settings: Settings, strategy: Optional[DetectionStrategy]) -> DetectionStrategy:
    return strategy or CenteredDetection(settings.FALLBACK_RADIUS_FRACTION)


def load_image_entry(
    path: PathLike,
    sidecar_path: Optional[PathLike] = None,
    settings: Optional[Settings] = None,
    strategy: Optional[DetectionStrategy] = None,
) -> ImageEntry:
    """Size, disk geometry and observation time for one image file.

    FITS files supply everything from their header. PNG/JPEG previews take
    metadata from a JSON sidecar (``sidecar_path`` or ``<stem>.json``);
    an unreadable sidecar is logged and the estimated geometry used.
    """
    path = Path(path)
    settings = settings or Settings()
    ext = path.suffix.lower()

    params = None
    orientation = None
    obs_time = None

    if ext in FITS_EXTENSIONS:
        header = read_fits_image_header(path)
        width, height = int(header["NAXIS1"]), int(header["NAXIS2"])
        params = params_from_header(header)
        orientation = orientation_from_header(header)
        try:
            obs_time = observation_time_from_header(header)
        except MetadataError as e:
            logger.warning("%s: %s", path.name, e)
    elif ext in IMAGE_EXTENSIONS:
        width, height = read_image_size(path)
        sidecar = Path(sidecar_path) if sidecar_path else find_sidecar(path)
        if sidecar is not None:
            try:
                md = parse_sidecar(sidecar.read_text(encoding="utf-8"))
            except (OSError, MetadataError) as e:
                logger.warning("Ignoring sidecar %s: %s", sidecar, e)
            else:
                params = md.sun_params
                orientation = md.orientation
                obs_time = md.observation_time
    else:
        raise InvalidGeometry(f"Unsupported image type: {path.name}")

    if params is not None and not settings.PREFER_HEADER:
        logger.debug("%s: ignoring trusted disk parameters (PREFER_HEADER off)", path.name)
        params = None

    strategy = _strategy(settings, strategy)
    pixels = None
    if params is None and isinstance(strategy, ContourBasedDetection):
        pixels = fits.getdata(path) if ext in FITS_EXTENSIONS else iio.imread(path)

    geometry = resolve_geometry(
        width,
        height,
        trusted_params=params,
        trusted_orientation=orientation,
        strategy=strategy,
        pixels=pixels,
    )
    source = "header" if params is not None else "estimate"
    logger.info("Loaded %s (%dx%d), disk from %s", path.name, width, height, source)

    return ImageEntry(
        name=path.name,
        width=width,
        height=height,
        geometry=geometry,
        observation_time=obs_time,
        geometry_source=source,
    )
