import swisseph as swe

from .zodiac import SIGN_WIDTH, normalize

HOUSE_CODE_MAP = {
    "placidus": "P",
    "koch": "K",
    "whole_sign": "W",
    "regiomontanus": "R",
    "campanus": "C",
    "equal": "E",
}


def houses(jd_utc: float, lat: float, lon: float, system: str = "placidus", sidereal: bool = False):
    hs = HOUSE_CODE_MAP.get(system.lower(), "P")
    # sidereal mode must already be set via ephem.calc_flags
    flags = swe.FLG_SIDEREAL if sidereal else 0
    cusps, ascmc = swe.houses_ex(jd_utc, lat, lon, hs.encode(), flags)
    # raw engine values; the caller normalises via the zodiac helpers
    return {
        "asc": ascmc[0],
        "mc": ascmc[1],
        "cusps": [cusps[i] for i in range(12)],
    }


def house_of(lon: float, cusps: list[float]) -> int:
    # Shift everything so cusp 1 sits at 0° and find the sector containing lon
    shift = cusps[0]
    nlon = normalize(lon - shift)
    ncusps = [normalize(c - shift) for c in cusps] + [360.0]
    for i in range(12):
        if ncusps[i] <= nlon < ncusps[i + 1]:
            return i + 1
    return 12


def solar_whole_sign_house(sun_lon: float, lon: float) -> int:
    # House 1 = Sun's sign when birth time is unknown
    start = int(normalize(sun_lon) // SIGN_WIDTH)
    sidx = int(normalize(lon) // SIGN_WIDTH)
    return (sidx - start) % 12 + 1
