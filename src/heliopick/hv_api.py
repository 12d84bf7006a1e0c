from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests
from astropy.io import fits

from .metadata import header_xml_to_fits_header

logger = logging.getLogger(__name__)

BASE_URL = "https://api.helioviewer.org/v2/"


def get_closest_image(date: str, source_id: int, timeout: float = 60.0) -> Tuple[Optional[int], Optional[str]]:
    """
    Returns (image_id, closest_date_str) where closest_date_str is like "YYYY-MM-DD HH:MM:SS" (UTC).
    """
    url = f"{BASE_URL}getClosestImage/"
    r = requests.get(url, params={"date": date, "sourceId": int(source_id)}, timeout=timeout)
    if r.status_code != 200:
        logger.warning("getClosestImage failed for %s (sourceId=%s): HTTP %s", date, source_id, r.status_code)
        return None, None
    data = r.json()
    return data.get("id"), data.get("date")


def get_jp2_header_text(image_id: int, timeout: float = 60.0) -> Optional[str]:
    """Download JP2 header (XML string) for a given Helioviewer image id."""
    url = f"{BASE_URL}getJP2Header/"
    r = requests.get(url, params={"id": image_id}, timeout=timeout)
    if r.status_code != 200:
        logger.warning("getJP2Header failed for id=%s: HTTP %s", image_id, r.status_code)
        return None
    return r.text


def fetch_header(date: str, source_id: int, timeout: float = 60.0) -> Optional[fits.Header]:
    """Header of the Helioviewer image closest to ``date``.

    Parameters
    ----------
    date
        ISO8601 with Z recommended, e.g. "2014-01-01T23:59:59Z"
    source_id
        Helioviewer sourceId, see ``SOURCE_IDS``.

    Returns
    -------
    astropy.io.fits.Header | None
        None when no image or header could be retrieved.
    """
    image_id, closest = get_closest_image(date, source_id, timeout=timeout)
    if image_id is None:
        return None
    logger.debug("Closest image to %s is id=%s at %s", date, image_id, closest)

    text = get_jp2_header_text(image_id, timeout=timeout)
    if text is None:
        return None
    return header_xml_to_fits_header(text)
