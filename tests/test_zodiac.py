import math

import pytest

from divine_astro.services import zodiac
from divine_astro.services.zodiac import (
    InternalInvariantViolation,
    InvalidAngle,
    decompose,
    derive_opposite_point,
    format_dms,
    normalize,
)

SAMPLES = [0.0, 12.5, 45.123, 179.99, 300.5, 359.999, -77.7, -5.0, 1234.5678]


def test_normalize_wraps_negative_angles():
    assert normalize(-10) == 350.0


def test_normalize_wraps_full_turns():
    assert normalize(370) == 10.0
    assert normalize(720) == 0.0


def test_normalize_tiny_negative_does_not_return_360():
    # -1e-20 % 360.0 rounds to 360.0 in floating point
    assert normalize(-1e-20) == 0.0


@pytest.mark.parametrize("x", SAMPLES)
@pytest.mark.parametrize("k", [-3, -1, 1, 2, 5])
def test_normalize_is_periodic(x, k):
    assert normalize(x + 360 * k) == pytest.approx(normalize(x), abs=1e-9)


@pytest.mark.parametrize("x", SAMPLES + [1e12, -1e12, 359.9999999999])
def test_normalize_range_and_idempotence(x):
    n = normalize(x)
    assert 0.0 <= n < 360.0
    assert normalize(n) == n


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, None, "10", True])
def test_invalid_angles_are_rejected(bad):
    with pytest.raises(InvalidAngle):
        normalize(bad)
    with pytest.raises(InvalidAngle):
        decompose(bad)
    with pytest.raises(InvalidAngle):
        derive_opposite_point(bad)


def test_decompose_zero_is_start_of_aries():
    b = decompose(0)
    assert (b.sign_index, b.sign_name, b.degrees, b.minutes, b.seconds) == (1, "Aries", 0, 0, 0)


def test_decompose_end_of_pisces():
    b = decompose(359.999)
    assert (b.sign_index, b.sign_name, b.degrees, b.minutes) == (12, "Pisces", 29, 59)
    # 0.999° = 59.94′ = 59′56.4″
    assert b.seconds == pytest.approx(56.4, abs=0.01)


def test_decompose_negative_matches_wrapped_value():
    assert decompose(-5) == decompose(355)
    b = decompose(-5)
    assert (b.sign_index, b.sign_name, b.degrees, b.minutes, b.seconds) == (12, "Pisces", 25, 0, 0)
    assert b.longitude == 355.0


def test_decompose_every_sign_boundary():
    for i, name in enumerate(zodiac.SIGN_NAMES):
        b = decompose(i * 30 + 0.5)
        assert b.sign_index == i + 1
        assert b.sign_name == name
        assert b.degrees == 0 and b.minutes == 30


@pytest.mark.parametrize("x", SAMPLES + [10.99999999, 29.9999999, 10 + 20 / 60 + 59.999 / 3600])
def test_decompose_fields_and_reconstruction(x):
    b = decompose(x)
    assert 1 <= b.sign_index <= 12
    assert b.sign_index == math.floor(b.longitude / 30) + 1
    assert 0 <= b.degrees <= 29
    assert 0 <= b.minutes <= 59
    assert 0 <= b.seconds < 60
    rebuilt = b.degrees + b.minutes / 60 + b.seconds / 3600
    assert rebuilt == pytest.approx(normalize(x) % 30, abs=0.01)


def test_rounded_seconds_carry_into_minutes():
    b = decompose(10 + 20 / 60 + 59.999 / 3600)
    assert (b.degrees, b.minutes, b.seconds) == (10, 21, 0.0)


def test_rounded_seconds_carry_into_degrees():
    b = decompose(10.99999999)
    assert (b.sign_name, b.degrees, b.minutes, b.seconds) == ("Aries", 11, 0, 0.0)


def test_rounded_seconds_clamp_at_end_of_sign():
    b = decompose(29.9999999)
    assert (b.sign_name, b.degrees, b.minutes, b.seconds) == ("Aries", 29, 59, 59.99)


def test_out_of_range_sign_index_is_loud(monkeypatch):
    monkeypatch.setattr(zodiac, "normalize", lambda angle: 360.0)
    with pytest.raises(InternalInvariantViolation):
        zodiac.decompose(0)
    assert issubclass(InternalInvariantViolation, AssertionError)


def test_opposite_point():
    assert derive_opposite_point(10) == 190.0
    assert derive_opposite_point(200) == 20.0
    assert derive_opposite_point(-90) == 90.0


@pytest.mark.parametrize("x", SAMPLES)
def test_opposite_point_is_an_involution(x):
    assert derive_opposite_point(derive_opposite_point(x)) == pytest.approx(normalize(x), abs=1e-9)


def test_format_dms():
    assert format_dms(decompose(355)) == "Pisces 25°00′00″"
    assert format_dms(decompose(121.25)) == "Leo 01°15′00″"


def test_breakdown_to_dict():
    d = decompose(45.5).to_dict()
    assert d == {
        "longitude": 45.5,
        "sign_index": 2,
        "sign_name": "Taurus",
        "degrees": 15,
        "minutes": 30,
        "seconds": 0.0,
    }
