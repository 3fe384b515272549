"""Ecliptic longitude normalisation and zodiac sign breakdowns."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from numbers import Real
from typing import Any, Dict

SIGN_NAMES = [
    "Aries",
    "Taurus",
    "Gemini",
    "Cancer",
    "Leo",
    "Virgo",
    "Libra",
    "Scorpio",
    "Sagittarius",
    "Capricorn",
    "Aquarius",
    "Pisces",
]

SIGN_WIDTH = 30.0


class InvalidAngle(ValueError):
    """Raised when an angle is not a finite real number."""


class InternalInvariantViolation(AssertionError):
    """Raised when a derived sign index falls outside 1..12."""


@dataclass(frozen=True)
class SignBreakdown:
    longitude: float
    sign_index: int  # 1 = Aries ... 12 = Pisces
    sign_name: str
    degrees: int
    minutes: int
    seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _check_angle(angle: Any) -> float:
    if isinstance(angle, bool) or not isinstance(angle, Real):
        raise InvalidAngle(f"angle must be a real number, got {angle!r}")
    value = float(angle)
    if not math.isfinite(value):
        raise InvalidAngle(f"angle must be finite, got {value!r}")
    return value


def normalize(angle: float) -> float:
    """Reduce ``angle`` to the half-open range [0, 360)."""

    value = _check_angle(angle) % 360.0
    # float modulo of a tiny negative number rounds up to the modulus itself
    if value >= 360.0:
        return 0.0
    return value


def derive_opposite_point(angle: float) -> float:
    """Longitude exactly opposite ``angle``, e.g. Ketu from Rahu."""

    return normalize(_check_angle(angle) + 180.0)


def decompose(angle: float) -> SignBreakdown:
    """Split a longitude into sign and degrees/minutes/seconds within the sign.

    Seconds are rounded to two decimals. A rounded value of 60.00 carries
    into minutes and degrees while the result stays inside the sign; at
    29°59′ the seconds are clamped to 59.99 instead so the sign never
    changes.
    """

    lon = normalize(angle)
    sign_index = int(lon // SIGN_WIDTH) + 1
    if not 1 <= sign_index <= 12:
        raise InternalInvariantViolation(
            f"sign index {sign_index} out of range for longitude {lon!r}"
        )

    within = lon - (sign_index - 1) * SIGN_WIDTH
    degrees = int(within)
    minutes_float = (within - degrees) * 60
    minutes = int(minutes_float)
    seconds = round((minutes_float - minutes) * 60, 2)

    if seconds >= 60.0:
        if minutes < 59:
            minutes += 1
            seconds = 0.0
        elif degrees < 29:
            degrees += 1
            minutes = 0
            seconds = 0.0
        else:
            seconds = 59.99

    return SignBreakdown(
        longitude=lon,
        sign_index=sign_index,
        sign_name=SIGN_NAMES[sign_index - 1],
        degrees=degrees,
        minutes=minutes,
        seconds=seconds,
    )


def format_dms(breakdown: SignBreakdown) -> str:
    # "Pisces 25°00′00″"
    return (
        f"{breakdown.sign_name} {breakdown.degrees:02d}°"
        f"{breakdown.minutes:02d}′{int(breakdown.seconds):02d}″"
    )
