"""Chart assembly: ephemeris positions mapped through the zodiac decomposer."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from hashlib import sha256
from typing import Dict, Optional

from ..schemas import (
    Angles,
    BodyPosition,
    BodyResult,
    ComputeRequest,
    ComputeResponse,
    HouseCusp,
    MetaOut,
    SignPosition,
)
from . import ephem, houses as houses_svc
from .zodiac import decompose, derive_opposite_point

logger = logging.getLogger(__name__)


def _body_ok(lon: float, speed: Optional[float] = None, retro: Optional[bool] = None) -> BodyResult:
    position = BodyPosition.from_breakdown(
        decompose(lon),
        retro=retro,
        speed=round(speed, 6) if speed is not None else None,
    )
    return BodyResult(ok=True, position=position)


def compute_bodies(jd: float, flag: int) -> Dict[str, BodyResult]:
    """Compute every supported body; a failure is recorded against that body only."""

    results: Dict[str, BodyResult] = {}
    for name, code in ephem.BODIES.items():
        try:
            p = ephem.body_position(jd, code, flag)
            results[name] = _body_ok(p["lon"], p["speed_lon"], p["retro"])
        except Exception as exc:
            logger.warning("ephemeris lookup failed for %s: %s", name, exc)
            results[name] = BodyResult(ok=False, error=f"{type(exc).__name__}: {exc}")

    rahu = results.get("Rahu")
    if rahu is not None and rahu.ok:
        # nodes share speed and direction
        results["Ketu"] = _body_ok(
            derive_opposite_point(rahu.position.longitude),
            rahu.position.speed,
            rahu.position.retro,
        )
    else:
        results["Ketu"] = BodyResult(ok=False, error="Ketu unavailable: Rahu could not be computed")
    return results


def chart_id_for(req: ComputeRequest, house_system: str, ayanamsha: Optional[str]) -> str:
    seed = (
        f"{req.system}|{req.date}|{req.time}|{req.time_known}|{req.place.lat:.6f}|"
        f"{req.place.lon:.6f}|{req.place.tz}|{house_system}|{ayanamsha or ''}"
    )
    return "cht_" + sha256(seed.encode()).hexdigest()[:24]


def build_chart(req: ComputeRequest) -> ComputeResponse:
    ephem.init_paths(os.getenv("EPHEMERIS_DIR"))
    options = req.options
    sidereal = req.system == "vedic"
    ayan = ((options and options.ayanamsha) or "lahiri") if sidereal else None
    house_system = (options and options.house_system) or ("whole_sign" if sidereal else "placidus")

    jd = ephem.to_jd_utc(req.date, req.time, req.place.tz)
    hs = None
    # sidereal mode is global engine state; hold it until houses are computed
    with ephem.ENGINE_LOCK:
        flag = ephem.calc_flags(sidereal=sidereal, ayanamsha=ayan)
        bodies = compute_bodies(jd, flag)
        if req.time_known:
            hs = houses_svc.houses(
                jd, req.place.lat, req.place.lon, system=house_system, sidereal=sidereal
            )

    angles, out_houses, warnings = None, None, []
    if hs is not None:
        angles = Angles(
            ascendant=SignPosition.from_breakdown(decompose(hs["asc"])),
            midheaven=SignPosition.from_breakdown(decompose(hs["mc"])),
        )
        cusps = [decompose(c) for c in hs["cusps"]]
        out_houses = [
            HouseCusp(num=i + 1, cusp=SignPosition.from_breakdown(c)) for i, c in enumerate(cusps)
        ]
        cusp_lons = [c.longitude for c in cusps]
        for result in bodies.values():
            if result.ok:
                result.position.house = houses_svc.house_of(result.position.longitude, cusp_lons)
    else:
        warnings.append("Birth time unknown; using solar whole-sign fallback for houses.")
        sun = bodies.get("Sun")
        if sun is not None and sun.ok:
            for result in bodies.values():
                if result.ok:
                    result.position.house = houses_svc.solar_whole_sign_house(
                        sun.position.longitude, result.position.longitude
                    )
        else:
            warnings.append("Sun position unavailable; houses not assigned.")

    failed = [name for name, r in bodies.items() if not r.ok]
    if failed:
        warnings.append(f"Positions unavailable for: {', '.join(failed)}")

    meta = MetaOut(
        engine_version=ephem.ENGINE_VERSION,
        zodiac="sidereal" if sidereal else "tropical",
        house_system=house_system,
        ayanamsha=ayan,
        backend=ephem.backend_name(),
        warnings=(warnings or None),
    )
    return ComputeResponse(
        chart_id=chart_id_for(req, house_system, ayan),
        input=req,
        computed_at=datetime.now(timezone.utc).isoformat(),
        meta=meta,
        angles=angles,
        houses=out_houses,
        bodies=bodies,
    )
