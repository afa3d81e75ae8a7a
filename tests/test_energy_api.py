from __future__ import annotations

from datetime import timedelta

from saturway.core.time_utils import utcnow
from saturway.db.models.energy_log import EnergyLog


def test_create_energy_log(client, user_headers):
    _, headers = user_headers
    resp = client.post("/api/energy", json={"value": 60}, headers=headers)
    assert resp.status_code == 201
    entry = resp.json()["data"]["energyLog"]
    assert entry["value"] == 60
    assert entry["source"] == "today"


def test_energy_value_must_be_a_step(client, user_headers):
    _, headers = user_headers
    resp = client.post("/api/energy", json={"value": 55}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "value"


def test_energy_source_is_validated(client, user_headers):
    _, headers = user_headers
    resp = client.post("/api/energy", json={"value": 40, "source": "elsewhere"}, headers=headers)
    assert resp.status_code == 400


def test_today_energy_empty(client, user_headers):
    _, headers = user_headers
    resp = client.get("/api/energy/today", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"logs": [], "lastValue": None, "avgValue": None}


def test_today_energy_aggregates_current_day_only(client, user_headers, session_factory):
    user_id, headers = user_headers
    with session_factory() as db:
        db.add(EnergyLog(user_id=user_id, value=20, source="today", created_at=utcnow() - timedelta(days=2)))
        db.commit()

    client.post("/api/energy", json={"value": 40}, headers=headers)
    client.post("/api/energy", json={"value": 100, "source": "review"}, headers=headers)

    data = client.get("/api/energy/today", headers=headers).json()["data"]
    assert [log["value"] for log in data["logs"]] == [40, 100]
    assert data["lastValue"] == 100
    assert data["avgValue"] == 70
