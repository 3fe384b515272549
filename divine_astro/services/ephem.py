"""Swiss Ephemeris helpers used by the chart builder."""

from __future__ import annotations

import os
import threading
from datetime import datetime
from typing import Dict
from zoneinfo import ZoneInfo

import swisseph as swe


# Engine version for API responses
try:
    ENGINE_VERSION = f"swisseph-{swe.version}"
except AttributeError:
    ENGINE_VERSION = "swisseph-2.10"

# Ketu is derived from Rahu rather than computed
BODIES: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
    "Mercury": swe.MERCURY,
    "Venus": swe.VENUS,
    "Mars": swe.MARS,
    "Jupiter": swe.JUPITER,
    "Saturn": swe.SATURN,
    "Uranus": swe.URANUS,
    "Neptune": swe.NEPTUNE,
    "Pluto": swe.PLUTO,
    "Rahu": swe.TRUE_NODE,
    "Chiron": swe.CHIRON,
}

# Guards set_sid_mode and every calculation that depends on it
ENGINE_LOCK = threading.Lock()

AYANAMSHA_MAP = {
    "lahiri": swe.SIDM_LAHIRI,
    "krishnamurti": swe.SIDM_KRISHNAMURTI,
    "raman": swe.SIDM_RAMAN,
    "fagan_bradley": swe.SIDM_FAGAN_BRADLEY,
}


def backend_name() -> str:
    raw_backend = os.getenv("EPHEMERIS_BACKEND")
    backend = raw_backend.strip().lower() if raw_backend else "swieph"
    return "moseph" if backend == "moseph" else "swieph"


def _backend_flag() -> int:
    """Return the Swiss Ephemeris backend flag based on environment configuration."""

    return swe.FLG_MOSEPH if backend_name() == "moseph" else swe.FLG_SWIEPH


def init_paths(ephe_dir: str | os.PathLike[str] | None) -> None:
    """Set the Swiss Ephemeris file search path when available."""

    if not ephe_dir:
        return

    path = os.fspath(ephe_dir)
    if os.path.isdir(path):
        swe.set_ephe_path(path)


def to_jd_utc(date_str: str, time_str: str, tz: str) -> float:
    """Convert a local date/time to a Julian day in UTC."""

    dt_local = datetime.fromisoformat(f"{date_str}T{time_str}").replace(tzinfo=ZoneInfo(tz))
    dt_utc = dt_local.astimezone(ZoneInfo("UTC"))
    hour = (
        dt_utc.hour
        + dt_utc.minute / 60
        + dt_utc.second / 3600
        + dt_utc.microsecond / 3_600_000_000
    )
    return swe.julday(dt_utc.year, dt_utc.month, dt_utc.day, hour, swe.GREG_CAL)


def calc_flags(sidereal: bool = False, ayanamsha: str | None = "lahiri") -> int:
    flag = _backend_flag() | swe.FLG_SPEED
    if sidereal:
        mode = AYANAMSHA_MAP.get((ayanamsha or "lahiri").lower(), swe.SIDM_LAHIRI)
        swe.set_sid_mode(mode)
        flag |= swe.FLG_SIDEREAL
    return flag


def body_position(jd_utc: float, code: int, flag: int) -> Dict[str, float]:
    """Raw ecliptic longitude and speed for one body.

    Errors from the engine (e.g. missing asteroid files for Chiron) are not
    caught here; the chart builder records them per body.
    """

    values, _ = swe.calc_ut(jd_utc, code, flag)
    lon, _lat, _dist, lon_speed, _lat_speed, _dist_speed = values
    return {"lon": lon, "speed_lon": lon_speed, "retro": lon_speed < 0}
