"""Place-name geocoding through the Nominatim (OpenStreetMap) search API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import requests

from .util.http import http_timeout

logger = logging.getLogger(__name__)

NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")
# Nominatim's usage policy requires an identifying User-Agent
USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "DivineAstrology/1.0 (contact@example.com)")


class GeocodingError(RuntimeError):
    """Raised when the geocoder cannot be reached or returns garbage."""


class PlaceNotFound(LookupError):
    """Raised when the geocoder has no match for a place name."""


@dataclass(frozen=True)
class GeoLocation:
    lat: float
    lon: float
    display_name: Optional[str] = None


def geocode(place: str) -> GeoLocation:
    """Resolve a free-text place name to coordinates (first match wins)."""

    try:
        resp = requests.get(
            NOMINATIM_URL,
            params={"format": "json", "q": place, "limit": 1},
            headers={"User-Agent": USER_AGENT},
            timeout=http_timeout(),
        )
        resp.raise_for_status()
        results = resp.json()
    except requests.RequestException as exc:
        raise GeocodingError(f"Nominatim request failed: {exc}") from exc
    except ValueError as exc:
        raise GeocodingError("Nominatim returned invalid JSON") from exc

    # Nominatim answers errors with a JSON object, matches with a list
    if not isinstance(results, list):
        raise GeocodingError(f"Unexpected Nominatim response: {results!r}")
    if not results:
        raise PlaceNotFound(place)

    first = results[0]
    try:
        location = GeoLocation(
            lat=float(first["lat"]),
            lon=float(first["lon"]),
            display_name=first.get("display_name"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingError(f"Unexpected Nominatim result: {first!r}") from exc

    logger.info("geocoded %r to %.4f, %.4f", place, location.lat, location.lon)
    return location
