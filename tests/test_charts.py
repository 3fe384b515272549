import os
os.environ.setdefault("EPHEMERIS_BACKEND", "moseph")

import pytest
from fastapi.testclient import TestClient

from divine_astro.app import app
from divine_astro.services import ephem, houses as houses_svc
from divine_astro.services.zodiac import derive_opposite_point

client = TestClient(app)

PAYLOAD = {
    "system": "western",
    "date": "1990-08-18",
    "time": "14:32:00",
    "time_known": True,
    "place": {"lat": 17.385, "lon": 78.4867, "tz": "Asia/Kolkata", "query": "Hyderabad, IN"},
}


@pytest.fixture(autouse=True)
def _open_access(monkeypatch):
    monkeypatch.setenv("EPHEMERIS_BACKEND", "moseph")
    monkeypatch.setenv("AUTH_ENABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")


def _compute(payload=PAYLOAD):
    res = client.post("/v1/charts/compute", json=payload)
    assert res.status_code == 200, res.text
    return res.json()


def test_compute_western_chart():
    data = _compute()
    assert data["chart_id"].startswith("cht_")
    assert data["meta"]["zodiac"] == "tropical"
    assert data["meta"]["house_system"] == "placidus"
    assert data["meta"]["backend"] == "moseph"
    assert data["input"]["date"] == "1990-08-18"
    assert data["computed_at"]

    bodies = data["bodies"]
    for name in ("Sun", "Moon", "Mercury", "Venus", "Mars", "Jupiter", "Saturn",
                 "Uranus", "Neptune", "Pluto", "Rahu", "Ketu", "Chiron"):
        assert name in bodies

    sun = bodies["Sun"]
    assert sun["ok"] is True
    assert sun["position"]["sign_name"] == "Leo"
    assert 0 <= sun["position"]["longitude"] < 360
    assert 1 <= sun["position"]["house"] <= 12
    assert sun["position"]["dms"].startswith("Leo ")


def test_ketu_is_opposite_rahu():
    bodies = _compute()["bodies"]
    rahu = bodies["Rahu"]["position"]
    ketu = bodies["Ketu"]["position"]
    assert ketu["longitude"] == pytest.approx(derive_opposite_point(rahu["longitude"]))
    assert ketu["retro"] == rahu["retro"]


def test_angles_and_cusps_are_decomposed():
    data = _compute()
    asc = data["angles"]["ascendant"]
    assert 1 <= asc["sign_index"] <= 12
    assert 0 <= asc["longitude"] < 360
    assert "midheaven" in data["angles"]
    assert [h["num"] for h in data["houses"]] == list(range(1, 13))
    assert data["houses"][0]["cusp"]["longitude"] == pytest.approx(asc["longitude"])


def test_chart_id_is_deterministic():
    assert _compute()["chart_id"] == _compute()["chart_id"]


def test_vedic_chart_is_sidereal():
    tropical = _compute()["bodies"]["Sun"]["position"]["longitude"]
    data = _compute({**PAYLOAD, "system": "vedic"})
    assert data["meta"]["zodiac"] == "sidereal"
    assert data["meta"]["ayanamsha"] == "lahiri"
    assert data["meta"]["house_system"] == "whole_sign"
    sidereal = data["bodies"]["Sun"]["position"]["longitude"]
    # Lahiri ayanamsha was about 23.7° in 1990
    assert 23.0 < (tropical - sidereal) % 360 < 24.5


def test_unknown_time_uses_solar_whole_sign_houses():
    data = _compute({**PAYLOAD, "time_known": False})
    assert data["angles"] is None
    assert data["houses"] is None
    assert any("Birth time unknown" in w for w in data["meta"]["warnings"])
    assert data["bodies"]["Sun"]["position"]["house"] == 1


def test_one_failing_body_does_not_abort_the_chart(monkeypatch):
    real = ephem.body_position

    def flaky(jd, code, flag):
        if code == ephem.BODIES["Mars"]:
            raise RuntimeError("ephemeris file missing")
        return real(jd, code, flag)

    monkeypatch.setattr(ephem, "body_position", flaky)
    data = _compute()
    mars = data["bodies"]["Mars"]
    assert mars["ok"] is False
    assert mars["position"] is None
    assert "ephemeris file missing" in mars["error"]
    assert data["bodies"]["Venus"]["ok"] is True
    assert any("Mars" in w for w in data["meta"]["warnings"])


def test_ketu_fails_with_rahu(monkeypatch):
    real = ephem.body_position

    def flaky(jd, code, flag):
        if code == ephem.BODIES["Rahu"]:
            raise RuntimeError("node unavailable")
        return real(jd, code, flag)

    monkeypatch.setattr(ephem, "body_position", flaky)
    bodies = _compute()["bodies"]
    assert bodies["Rahu"]["ok"] is False
    assert bodies["Ketu"]["ok"] is False
    assert "Rahu" in bodies["Ketu"]["error"]


def test_unknown_timezone_is_rejected():
    bad = {**PAYLOAD, "place": {**PAYLOAD["place"], "tz": "Mars/Olympus_Mons"}}
    res = client.post("/v1/charts/compute", json=bad)
    assert res.status_code == 400


def test_bad_latitude_is_a_validation_error():
    bad = {**PAYLOAD, "place": {**PAYLOAD["place"], "lat": 123.0}}
    res = client.post("/v1/charts/compute", json=bad)
    assert res.status_code == 422


def test_engine_lock_held_while_sidereal_mode_is_active(monkeypatch):
    real_position = ephem.body_position
    real_houses = houses_svc.houses
    held = []

    def checked_position(jd, code, flag):
        held.append(ephem.ENGINE_LOCK.locked())
        return real_position(jd, code, flag)

    def checked_houses(*args, **kwargs):
        held.append(ephem.ENGINE_LOCK.locked())
        return real_houses(*args, **kwargs)

    monkeypatch.setattr(ephem, "body_position", checked_position)
    monkeypatch.setattr(houses_svc, "houses", checked_houses)
    _compute({**PAYLOAD, "system": "vedic"})
    assert held and all(held)
    assert not ephem.ENGINE_LOCK.locked()
