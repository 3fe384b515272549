"""Timezone helpers for geocoded places."""

from datetime import datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

_TF = TimezoneFinder()


def infer_tz(lat: float, lon: float) -> Optional[str]:
    """Infer timezone name for a coordinate pair."""

    return _TF.timezone_at(lng=lon, lat=lat)


def utc_offset_hours(tz_name: str, local_dt: datetime) -> Optional[float]:
    """UTC offset (hours) of ``tz_name`` at a naive local datetime, DST included."""

    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return None
    offset = local_dt.replace(tzinfo=zone).utcoffset()
    return offset.total_seconds() / 3600 if offset is not None else None


def resolve_timezone(
    value: Union[float, str, None], lat: float, lon: float, local_dt: datetime
) -> Optional[float]:
    """Turn a request timezone into a numeric UTC offset.

    Numbers pass through; strings may be numeric or an IANA zone name; a
    missing value is inferred from the coordinates. ``None`` when nothing
    can be resolved.
    """

    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return utc_offset_hours(value.strip(), local_dt)

    tz_name = infer_tz(lat, lon)
    if tz_name is None:
        return None
    return utc_offset_hours(tz_name, local_dt)
