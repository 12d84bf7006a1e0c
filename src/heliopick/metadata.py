from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, NamedTuple, Optional
from xml.etree import ElementTree as ET

from astropy.io import fits
from astropy.time import Time

from .errors import MetadataError
from .geometry import DiskParams

logger = logging.getLogger(__name__)

# (orientation key, header keywords in order of preference)
ORIENTATION_KEYS = (
    ("B0", ("B0", "SOLAR_B0", "CRLT_OBS", "HGLT_OBS")),
    ("L0", ("L0", "CRLN_OBS")),
    ("P_ANGLE", ("P_ANGLE", "SOLAR_P")),
)


class SidecarMetadata(NamedTuple):
    sun_params: Optional[DiskParams]
    orientation: Dict[str, float]
    observation_time: Optional[datetime]
    header: Dict[str, Any]


def _parse_header_value(value: Optional[str]):
    """Convert XML text into a header-storable primitive."""
    if value is None:
        return "N/A"

    s = value.strip()
    if s.lower() in {"nan", "null", "n/a", ""}:
        return 0
    if s.lower() in {"inf", "+inf"}:
        return 1.0e9
    if s.lower() == "-inf":
        return -1.0e9

    try:
        if "." in s or "e" in s.lower():
            return float(s)
        return int(s)
    except ValueError:
        s = s.replace("\n", " ").replace("\r", " ")
        return s.encode("ascii", "ignore").decode("ascii")[:68]


def header_xml_to_fits_header(xml_text: str) -> fits.Header:
    """Convert a Helioviewer JP2 header (XML) into a FITS Header.

    Notes
    -----
    - Only leaf elements become cards; keywords are cut to 8 characters.
    - Keyword collisions are resolved by suffixing with a digit.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MetadataError(f"Malformed JP2 header XML: {e}") from e
    hdr = fits.Header()

    for element in root.iter():
        if len(element):
            continue
        key = element.tag.upper().strip()[:8]
        val = _parse_header_value(element.text)

        if key in hdr:
            base = key[:7]
            for i in range(10):
                candidate = f"{base}{i}"
                if candidate not in hdr:
                    key = candidate
                    break

        hdr[key] = val

    return hdr


def _number(header: Mapping[str, Any], key: str) -> Optional[float]:
    if key not in header:
        return None
    try:
        return float(header[key])
    except (TypeError, ValueError):
        logger.warning("Header keyword %s is not numeric: %r", key, header[key])
        return None


def params_from_header(header: Mapping[str, Any]) -> Optional[DiskParams]:
    """Disk center/radius from header keywords, or None when absent.

    ``FNDLMB*`` limb-fit keywords take precedence; the radius is the mean of
    the minor and major axis. Otherwise the WCS reference pixel and
    ``RSUN_OBS`` are used, converted to 0-based, top-down pixel coordinates.
    """
    xc = _number(header, "FNDLMBXC")
    yc = _number(header, "FNDLMBYC")
    axes = [a for a in (_number(header, "FNDLMBMI"), _number(header, "FNDLMBMA")) if a is not None]
    if xc is not None and yc is not None and axes:
        return DiskParams(xc, yc, sum(axes) / len(axes))

    crpix1 = _number(header, "CRPIX1")
    crpix2 = _number(header, "CRPIX2")
    cdelt1 = _number(header, "CDELT1")
    cdelt2 = _number(header, "CDELT2") or cdelt1
    rsun = _number(header, "RSUN_OBS")
    naxis2 = _number(header, "NAXIS2")
    if None in (crpix1, crpix2, cdelt1, rsun, naxis2) or not cdelt1 or not cdelt2:
        return None

    crval1 = _number(header, "CRVAL1") or 0.0
    crval2 = _number(header, "CRVAL2") or 0.0
    cx = crpix1 - 1.0 - crval1 / cdelt1
    cy_bottom_up = crpix2 - 1.0 - crval2 / cdelt2
    return DiskParams(cx, naxis2 - 1.0 - cy_bottom_up, rsun / abs(cdelt1))


def orientation_from_header(header: Mapping[str, Any]) -> Dict[str, float]:
    out = {}
    for name, keys in ORIENTATION_KEYS:
        value = None
        for key in keys:
            value = _number(header, key)
            if value is not None:
                break
        out[name] = value if value is not None else 0.0
    return out


def parse_observation_time(value: str) -> datetime:
    """Parse an ISO-8601 / FITS timestamp into an aware UTC datetime."""
    s = str(value).strip()
    for suffix in ("Z", "+00:00"):
        if s.endswith(suffix):
            s = s[: -len(suffix)]
            break
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        # FITS dates such as "2014-01-01T23:59:59.34" need astropy's parser
        try:
            return Time(s, scale="utc").to_datetime(timezone=timezone.utc)
        except ValueError as e:
            raise MetadataError(f"Unrecognized observation time {value!r}") from e
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def observation_time_from_header(header: Mapping[str, Any]) -> Optional[datetime]:
    date = header.get("DATE-OBS")
    if not date or date == "N/A":
        return None
    date = str(date).strip()
    if "T" not in date and " " not in date:
        date = f"{date}T{header.get('TIME-OBS') or '00:00:00'}"
    return parse_observation_time(date)


def parse_sidecar(text: str) -> SidecarMetadata:
    """Parse a JSON sidecar written next to a preview image.

    Recognized keys are ``sun_params`` (``cx``, ``cy``, ``radius``),
    ``header`` (B0/L0/P_ANGLE and DATE-OBS/TIME-OBS) and
    ``observation_time``. A header DATE-OBS wins over ``observation_time``.
    Unusable fields are logged and dropped; only invalid JSON or a
    non-object root or header raises :class:`MetadataError`.
    """
    try:
        md = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Sidecar is not valid JSON: {e}") from e
    if not isinstance(md, dict):
        raise MetadataError("Sidecar must be a JSON object")

    header = md.get("header") or {}
    if not isinstance(header, dict):
        raise MetadataError("Sidecar 'header' must be a JSON object")

    sun_params = None
    sp = md.get("sun_params")
    if sp:
        try:
            sun_params = DiskParams(float(sp["cx"]), float(sp["cy"]), float(sp["radius"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed sun_params in sidecar: %r", sp)

    obs_time = None
    if md.get("observation_time"):
        try:
            obs_time = parse_observation_time(md["observation_time"])
        except MetadataError as e:
            logger.warning("%s", e)
    try:
        header_time = observation_time_from_header(header)
    except MetadataError as e:
        logger.warning("%s", e)
        header_time = None
    if header_time is not None:
        obs_time = header_time

    return SidecarMetadata(
        sun_params=sun_params,
        orientation=orientation_from_header(header),
        observation_time=obs_time,
        header=header,
    )
