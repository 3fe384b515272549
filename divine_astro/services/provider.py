"""Client for the Free Astrology API planets endpoint."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterator, Optional, Tuple

import requests

from ..schemas import BodyPosition, BodyResult
from .util.http import http_timeout
from .zodiac import InvalidAngle, decompose

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://json.freeastrologyapi.com/planets"


class ProviderNotConfigured(RuntimeError):
    """Raised when FREE_ASTRO_API_KEY is not set."""


class ProviderError(RuntimeError):
    """Raised when the provider call fails or answers with a non-2xx status."""

    def __init__(self, details: str, status_code: Optional[int] = None):
        super().__init__(details)
        self.details = details
        self.status_code = status_code


def build_payload(
    *,
    year: int,
    month: int,
    date: int,
    hours: int,
    minutes: int,
    seconds: float,
    latitude: float,
    longitude: float,
    timezone: Optional[float],
) -> Dict[str, Any]:
    return {
        "year": year,
        "month": month,
        "date": date,
        "hours": hours,
        "minutes": minutes,
        "seconds": seconds,
        "latitude": latitude,
        "longitude": longitude,
        "timezone": timezone,
        "config": {
            "observation_point": "topocentric",
            "ayanamsha": os.getenv("FREE_ASTRO_AYANAMSHA", "lahiri"),
        },
    }


def fetch_planets(payload: Dict[str, Any]) -> Any:
    api_key = os.getenv("FREE_ASTRO_API_KEY")
    if not api_key:
        raise ProviderNotConfigured("Server missing FREE_ASTRO_API_KEY")

    url = os.getenv("FREE_ASTRO_API_URL", DEFAULT_API_URL)
    try:
        resp = requests.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json", "x-api-key": api_key},
            timeout=http_timeout(),
        )
    except requests.RequestException as exc:
        raise ProviderError(str(exc)) from exc

    if not resp.ok:
        logger.warning("provider returned %s: %s", resp.status_code, resp.text[:200])
        raise ProviderError(resp.text, status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError("Provider returned invalid JSON", status_code=resp.status_code) from exc


def _is_true(value: Any) -> Optional[bool]:
    # the provider reports isRetro as the strings "true"/"false"
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def extract_longitudes(payload: Any) -> Iterator[Tuple[str, Any, Optional[bool]]]:
    """Yield ``(name, fullDegree, is_retro)`` for each body in a provider payload.

    ``output`` is either a list of index-keyed dicts or a single such dict.
    """

    output = payload.get("output") if isinstance(payload, dict) else None
    if isinstance(output, dict):
        output = [output]
    if not isinstance(output, list):
        return

    for chunk in output:
        if not isinstance(chunk, dict):
            continue
        for key, entry in chunk.items():
            if not isinstance(entry, dict):
                continue
            name = entry.get("name") or str(key)
            yield name, entry.get("fullDegree"), _is_true(entry.get("isRetro"))


def enrich(payload: Any) -> Dict[str, BodyResult]:
    """Sign breakdown for every body the provider returned."""

    bodies: Dict[str, BodyResult] = {}
    for name, full_degree, retro in extract_longitudes(payload):
        try:
            position = BodyPosition.from_breakdown(decompose(full_degree), retro=retro)
            bodies[name] = BodyResult(ok=True, position=position)
        except InvalidAngle as exc:
            logger.warning("provider returned unusable longitude for %s: %s", name, exc)
            bodies[name] = BodyResult(ok=False, error=str(exc))
    return bodies
