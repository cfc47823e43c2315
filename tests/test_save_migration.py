import json

import pytest

from football_sim.league import CareerSimulator
from football_sim.persistence import SAVE_VERSION, SaveVersionError, load_save, migrate_save


def _sim(tmp_path, reference) -> CareerSimulator:
    return CareerSimulator(reference=reference, seed=5, save_path=str(tmp_path / "career_save.json"))


def _legacy_v1() -> dict:
    return {
        "career": {"clubId": "BRA_SERIE_A_03"},
        "season": {
            "id": "2025_2026",
            "leagueId": "BRA_SERIE_A",
            "currentRound": 1,
            "rounds": [
                [{"homeId": "BRA_SERIE_A_03", "awayId": "BRA_SERIE_A_04", "played": True, "hg": 2, "ag": 0}],
                [{"homeId": "BRA_SERIE_A_04", "awayId": "BRA_SERIE_A_03", "played": False}],
            ],
            "table": {
                "BRA_SERIE_A_03": {"id": "BRA_SERIE_A_03", "name": "Three", "P": 1, "W": 1, "GF": 2},
                "BRA_SERIE_A_04": {"id": "BRA_SERIE_A_04", "name": "Four", "P": 1, "L": 1, "GA": 2},
            },
        },
        "squad": {"players": [{"id": "x1", "name": "Legacy Player", "pos": "ATT", "overall": 71, "form": 1.5}]},
        "finance": {"cash": 12_345, "currency": "BRL"},
        "staff": {"hired": ["analyst"]},
        "sponsor": {"id": "mining"},
        "transfers": {
            "outbox": [
                {
                    "id": "OUT-00007",
                    "type": "OUT",
                    "pid": "BRA_SERIE_A_05_p1",
                    "from": {"clubId": "BRA_SERIE_A_05"},
                    "to": {"clubId": "BRA_SERIE_A_03"},
                    "fee": 1_000_000,
                    "status": "COUNTERED",
                    "counter": {"fee": 1_200_000, "wage": 30_000},
                }
            ],
            "lastProcessedRound": 1,
        },
    }


@pytest.mark.regression
def test_migrates_legacy_camel_case_save(tmp_path) -> None:
    path = tmp_path / "career_save.json"
    path.write_text(json.dumps(_legacy_v1()), encoding="utf-8")
    save, error = load_save(path)
    assert error == ""
    assert save.career.club_id == "BRA_SERIE_A_03"
    assert save.season.current_round == 1
    assert save.season.rounds[0][0].home_goals == 2
    assert save.season.table["BRA_SERIE_A_03"].points == 3
    assert save.squad[0].position == "ATT"
    assert save.cash == 12_345
    assert save.sponsor_id == "mining"
    assert save.hired_staff == ["analyst"]
    offer = save.transfers.outbox[0]
    assert (offer.status, offer.agreed_fee, offer.agreed_wage) == ("COUNTERED", 1_200_000, 30_000)
    assert save.transfers.history == []


@pytest.mark.regression
def test_migrates_v2_top_level_club_id() -> None:
    doc = migrate_save({"save_version": 2, "club_id": "BRA_SERIE_A_02", "finance": {"cash": 5}})
    assert doc["save_version"] == SAVE_VERSION
    assert doc["career"] == {"club_id": "BRA_SERIE_A_02", "score": 0, "trophies": []}
    assert doc["transfers"]["finalized_offer_ids"] == []
    assert doc["continental_live"] is None


@pytest.mark.regression
def test_save_without_club_is_invalid() -> None:
    with pytest.raises(ValueError):
        migrate_save({"save_version": 2})


@pytest.mark.regression
def test_rejects_future_save_version_with_clear_error(tmp_path, small_reference) -> None:
    path = tmp_path / "career_save.json"
    path.write_text(json.dumps({"save_version": 999, "career": {"club_id": "BRA_SERIE_A_02"}}), encoding="utf-8")
    with pytest.raises(SaveVersionError):
        migrate_save(json.loads(path.read_text(encoding="utf-8")))

    sim = _sim(tmp_path, small_reference)
    assert "Unsupported career save version 999" in sim.last_load_error
    assert sim.user_club_id == "BRA_SERIE_A_01"


@pytest.mark.regression
def test_legacy_save_resumes_career(tmp_path, small_reference) -> None:
    (tmp_path / "career_save.json").write_text(json.dumps(_legacy_v1()), encoding="utf-8")
    sim = _sim(tmp_path, small_reference)
    assert sim.last_load_error == ""
    assert sim.user_club_id == "BRA_SERIE_A_03"
    assert sim.season.current_round == 1
    # The partial legacy season is kept as-is.
    assert sim.season.total_rounds == 2


@pytest.mark.regression
def test_unknown_career_club_starts_fresh(tmp_path, small_reference) -> None:
    path = tmp_path / "career_save.json"
    path.write_text(
        json.dumps({"save_version": SAVE_VERSION, "career": {"club_id": "NOWHERE_FC"}}),
        encoding="utf-8",
    )
    sim = _sim(tmp_path, small_reference)
    assert "NOWHERE_FC" in sim.last_load_error
    assert sim.user_club_id == "BRA_SERIE_A_01"


@pytest.mark.regression
def test_state_save_includes_save_version_and_backup(tmp_path, small_reference) -> None:
    sim = _sim(tmp_path, small_reference)
    state_path = tmp_path / "career_save.json"
    backup_path = tmp_path / "career_save.json.bak"

    payload = json.loads(state_path.read_text(encoding="utf-8"))
    assert payload["save_version"] == CareerSimulator.SAVE_VERSION

    sim._save_state()
    assert backup_path.exists()
    assert json.loads(backup_path.read_text(encoding="utf-8"))["save_version"] == SAVE_VERSION


def test_corrupt_save_is_reported(tmp_path, small_reference) -> None:
    (tmp_path / "career_save.json").write_text("{not json", encoding="utf-8")
    sim = _sim(tmp_path, small_reference)
    assert sim.last_load_error.startswith("Failed to load career save")
    assert sim.season.current_round == 0


@pytest.mark.regression
def test_v2_mid_season_save_rebuilds_world(tmp_path, small_reference) -> None:
    sim = _sim(tmp_path, small_reference)
    for _ in range(3):
        sim.advance_round()
    path = tmp_path / "career_save.json"
    doc = json.loads(path.read_text(encoding="utf-8"))
    doc["save_version"] = 2
    doc["club_id"] = doc.pop("career")["club_id"]
    for key in ("parallel_leagues", "continental_live", "continentals", "movements"):
        doc.pop(key, None)
    path.write_text(json.dumps(doc), encoding="utf-8")

    resumed = _sim(tmp_path, small_reference)
    assert resumed.last_load_error == ""
    assert resumed.season.current_round == 3
    leagues = resumed.save.parallel_leagues
    assert sorted(leagues) == ["ARG_PRIMERA", "BRA_SERIE_B"]
    assert all(league.current_round == 3 for league in leagues.values())
    assert all(row.played == 3 for league in leagues.values() for row in league.table.values())
    assert resumed.save.continental_live is not None
    assert resumed.save.continental_live.tournaments["CONMEBOL_LIB"].participants

    before = {lid: id(league) for lid, league in leagues.items()}
    resumed.ensure_season()
    assert {lid: id(league) for lid, league in resumed.save.parallel_leagues.items()} == before

    while not resumed.season.completed:
        resumed.advance_round()
    season_id = resumed.season.season_id
    assert sorted(resumed.save.league_tables[season_id]) == ["ARG_PRIMERA", "BRA_SERIE_A", "BRA_SERIE_B"]
    assert resumed.save.movements[season_id]
    assert "CONMEBOL_LIB" in resumed.save.continentals[season_id]
