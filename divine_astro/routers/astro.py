"""Provider-backed chart endpoint: geocode a place, then ask the astrology API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..schemas import AstroRequest, AstroResponse, GeoLocationOut
from ..services import provider
from ..services.geocode import GeocodingError, PlaceNotFound, geocode
from ..services.util.place import resolve_timezone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/astro", tags=["astro"])

MISSING_FIELDS = "Missing fields: year, month, date, hours, minutes, place"
OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": error, **extra}, status_code=status_code)


async def _json_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("JSON body must be an object")
    return body


@router.api_route("", methods=OTHER_METHODS, include_in_schema=False)
@router.api_route("/echo", methods=OTHER_METHODS, include_in_schema=False)
def only_post():
    return _error(405, "Only POST allowed")


@router.post("/echo")
async def echo(request: Request):
    try:
        body = await _json_body(request)
    except ValueError as exc:
        return _error(400, f"Invalid JSON body: {exc}")
    return {"ok": True, "received": body}


@router.post("", response_model=AstroResponse)
async def astro(request: Request):
    try:
        body = await _json_body(request)
    except ValueError as exc:
        return _error(400, f"Invalid JSON body: {exc}")

    try:
        req = AstroRequest.model_validate(body)
    except ValidationError as exc:
        return _error(
            400,
            "Invalid fields",
            details=exc.errors(include_url=False, include_context=False, include_input=False),
        )
    if req.missing_fields():
        return _error(400, MISSING_FIELDS)

    try:
        local_dt = datetime(req.year, req.month, req.date, req.hours, req.minutes, int(req.seconds))
    except ValueError as exc:
        return _error(400, f"Invalid date/time: {exc}")

    try:
        location = await run_in_threadpool(geocode, req.place)
    except PlaceNotFound:
        return _error(400, "Place not found")
    except GeocodingError as exc:
        return _error(502, "Geocoding error", details=str(exc))

    tz_offset = resolve_timezone(req.timezone, location.lat, location.lon, local_dt)
    payload = provider.build_payload(
        year=req.year,
        month=req.month,
        date=req.date,
        hours=req.hours,
        minutes=req.minutes,
        seconds=req.seconds,
        latitude=location.lat,
        longitude=location.lon,
        timezone=tz_offset,
    )

    try:
        data = await run_in_threadpool(provider.fetch_planets, payload)
    except provider.ProviderNotConfigured as exc:
        logger.error("astrology provider is not configured")
        return _error(500, str(exc))
    except provider.ProviderError as exc:
        return _error(502, "Astrology provider error", details=exc.details)

    return AstroResponse(
        input=req.model_dump(),
        location=GeoLocationOut(lat=location.lat, lon=location.lon, display_name=location.display_name),
        timezone=tz_offset,
        computed_at=datetime.now(timezone.utc).isoformat(),
        bodies=provider.enrich(data),
        provider=data,
    )
