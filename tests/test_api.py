import pytest
from fastapi.testclient import TestClient

from football_sim import api


@pytest.fixture
def client(tmp_path, monkeypatch, small_reference):
    service = api.SimService(data_root=tmp_path, seed=21)
    service._reference = small_reference
    monkeypatch.setattr(api, "service", service)
    return TestClient(api.app)


def test_health(client) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}


def test_meta_and_season(client, tmp_path) -> None:
    meta = client.get("/api/meta").json()
    assert meta["club"]["club_id"] == "BRA_SERIE_A_01"
    assert meta["season_id"] == "2025_2026"
    assert "balanced" in meta["tactics"]
    assert meta["transfer_window"] == "Pre-season window"
    assert (tmp_path / "career_save.json").exists()

    season = client.get("/api/season").json()
    assert season["status"] == "NOT_STARTED"
    assert season["next_fixture"]["home_id"] == "BRA_SERIE_A_01" or season["next_fixture"]["away_id"] == "BRA_SERIE_A_01"


def test_advance_and_standings(client) -> None:
    season = client.post("/api/advance", json={"rounds": 3}).json()
    assert season["current_round"] == 3
    rows = client.get("/api/standings").json()
    assert len(rows) == 8
    assert [r["position"] for r in rows] == list(range(1, 9))
    assert sum(r["is_user"] for r in rows) == 1
    assert all(r["played"] == 3 for r in rows)

    other = client.get("/api/standings", params={"league_id": "BRA_SERIE_B"}).json()
    assert all(r["played"] == 3 for r in other)
    assert client.get("/api/standings", params={"league_id": "NOPE"}).status_code == 404


def test_season_new_requires_completed_season(client) -> None:
    response = client.post("/api/season/new")
    assert response.status_code == 400
    assert response.json()["detail"] == "season_not_complete"

    client.post("/api/advance", json={"rounds": 99})
    assert client.get("/api/season").json()["completed"] is True
    started = client.post("/api/season/new").json()
    assert started["season_id"] == "2026_2027"


def test_tactics_and_training_validation(client) -> None:
    assert client.post("/api/tactics", json={"style": "Counter"}).json()["style"] == "counter"
    assert client.post("/api/tactics", json={"style": "tiki"}).status_code == 400
    assert client.post("/api/training", json={"plan": "rest"}).json()["ok"] is True
    again = client.post("/api/training", json={"plan": "rest"})
    assert again.status_code == 400
    assert again.json()["detail"] == "already_trained"


def test_transfer_endpoints(client) -> None:
    market = client.get("/api/market", params={"limit": 5}).json()
    assert len(market) == 5
    target = market[0]
    made = client.post("/api/transfers/offer", json={"player_id": target["player_id"], "fee": target["value"]})
    assert made.status_code == 200
    offer_id = made.json()["offer"]["offer_id"]

    view = client.get("/api/transfers").json()
    assert [o["offer_id"] for o in view["outbox"]] == [offer_id]
    assert client.post(f"/api/transfers/{offer_id}/accept-counter").json()["detail"] == "no_counter_to_accept"
    assert client.post("/api/transfers/OUT-99999/cancel").status_code == 404
    assert client.post(f"/api/transfers/{offer_id}/cancel").json()["offer"]["status"] == "CANCELLED"


def test_staff_sponsor_and_continental(client) -> None:
    assert client.post("/api/staff/analyst/hire").json()["hired_staff"] == ["analyst"]
    assert client.post("/api/staff/ghost/hire").status_code == 404
    assert client.post("/api/sponsor/regional_bank").json()["sponsor_id"] == "regional_bank"

    view = client.get("/api/continental").json()
    assert "CONMEBOL_LIB" in view["live"]["tournaments"]
    step = client.post("/api/continental/advance").json()
    assert step["advanced"] is True
    assert step["matchday"] == 1


def test_reset_picks_new_club(client) -> None:
    client.post("/api/advance")
    meta = client.post("/api/reset", json={"club_id": "BRA_SERIE_B_02"}).json()
    assert meta["club"]["club_id"] == "BRA_SERIE_B_02"
    assert client.get("/api/season").json()["current_round"] == 0
