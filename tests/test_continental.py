import random

import pytest

from football_sim.config import GROUPS_KO, KO, LEAGUE_KO, CompetitionSpec
from football_sim.continental import (
    advance_matchday,
    bracket_order,
    build_tournament,
    knockout_size_for,
    play_step,
    run_to_completion,
)
from football_sim.models import (
    STAGE_DONE,
    STAGE_GROUPS,
    STAGE_KO,
    STAGE_LEAGUE,
    STAGE_PLACEHOLDER,
    ContinentalLive,
)

CL = CompetitionSpec("CL", "Champions", "uefa", "champions", GROUPS_KO, size=32)
EL = CompetitionSpec("EL", "Europa", "uefa", "europa", LEAGUE_KO, size=24, league_rounds=8, knockout_size=8)
CUP = CompetitionSpec("CUP", "Cup", "conmebol", "sudamericana", KO, size=16)


def _field(n: int) -> tuple[list[str], dict[str, float]]:
    ids = [f"c{i:02d}" for i in range(n)]
    return ids, {cid: 90.0 - i for i, cid in enumerate(ids)}


def _player(seed: int):
    rng = random.Random(seed)
    return lambda home, away: (rng.randint(0, 3), rng.randint(0, 3))


def test_bracket_keeps_top_seeds_apart() -> None:
    assert bracket_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]
    assert knockout_size_for(16) == 16
    assert knockout_size_for(12) == 8
    assert knockout_size_for(6) == 4
    assert knockout_size_for(1) == 0


def test_groups_format_full_run() -> None:
    ids, ratings = _field(32)
    rng = random.Random(1)
    t = build_tournament(CL, ids, ratings.__getitem__, rng)
    assert t.stage == STAGE_GROUPS
    assert len(t.groups) == 8
    assert all(len(g.club_ids) == 4 and len(g.matchdays) == 3 for g in t.groups)
    # One club from each pot per group.
    for group in t.groups:
        pots = sorted(ids.index(cid) // 8 for cid in group.club_ids)
        assert pots == [0, 1, 2, 3]

    play = _player(2)
    for _ in range(3):
        play_step(t, play, rng)
    assert t.stage == STAGE_KO
    assert len(t.knockout.seeds) == 16
    assert len(t.knockout.rounds[0].ties) == 8

    run_to_completion(t, play, rng)
    assert t.stage == STAGE_DONE
    assert t.champion_id in ids
    assert [r.name for r in t.knockout.rounds] == ["Round of 16", "Quarter-finals", "Semi-finals", "Final"]
    assert t.knockout.rounds[-1].winners() == [t.champion_id]


def test_league_phase_then_knockout() -> None:
    ids, ratings = _field(24)
    rng = random.Random(4)
    t = build_tournament(EL, ids, ratings.__getitem__, rng)
    assert t.stage == STAGE_LEAGUE
    phase = t.league_phase
    assert len(phase.rounds) == 8
    for rnd in phase.rounds:
        clubs = [cid for m in rnd for cid in (m.home_id, m.away_id)]
        assert len(clubs) == len(set(clubs)) == 24
    run_to_completion(t, _player(5), rng)
    assert t.finished
    assert len(t.knockout.seeds) == 8
    assert all(row.played == 8 for row in phase.table.values())


def test_straight_knockout_keeps_top_seeds() -> None:
    ids, ratings = _field(12)
    t = build_tournament(CUP, ids, ratings.__getitem__, random.Random(0))
    assert t.stage == STAGE_KO
    assert t.knockout.seeds == ids[:8]


def test_small_fields_degrade() -> None:
    ids, ratings = _field(5)
    t = build_tournament(CL, ids, ratings.__getitem__, random.Random(0))
    assert t.format == KO
    assert t.stage == STAGE_KO

    lone = build_tournament(CL, ["c00"], ratings.__getitem__, random.Random(0))
    assert lone.stage == STAGE_PLACEHOLDER
    assert not lone.active
    run_to_completion(lone, _player(1), random.Random(1))
    assert lone.champion_id is None


def test_drawn_knockout_ties_go_to_penalties() -> None:
    ids, ratings = _field(4)
    t = build_tournament(CUP, ids, ratings.__getitem__, random.Random(0))
    run_to_completion(t, lambda home, away: (1, 1), random.Random(3))
    ties = [tie for rnd in t.knockout.rounds for tie in rnd.ties]
    assert all(tie.penalties and tie.winner_id in (tie.home_id, tie.away_id) for tie in ties)
    assert t.champion_id is not None


def test_penalty_shootouts_follow_the_injected_generator() -> None:
    ids, ratings = _field(8)
    champions = set()
    for _ in range(2):
        t = build_tournament(CUP, ids, ratings.__getitem__, random.Random(0))
        run_to_completion(t, lambda home, away: (0, 0), random.Random(11))
        champions.add(t.champion_id)
    assert len(champions) == 1

    t = build_tournament(CUP, ids, ratings.__getitem__, random.Random(0))
    with pytest.raises(TypeError):
        run_to_completion(t, lambda home, away: (0, 0))


def test_advance_matchday_leaves_input_untouched() -> None:
    ids, ratings = _field(32)
    rng = random.Random(9)
    live = ContinentalLive(
        season_id="2025_2026",
        next_at_round_index=1,
        tournaments={"CL": build_tournament(CL, ids, ratings.__getitem__, rng)},
    )
    before = live.to_dict()
    new_live, summary = advance_matchday(live, _player(3), rng)
    assert live.to_dict() == before
    assert new_live.matchdays_played == 1
    assert summary["matchday"] == 1
    assert len(summary["results"]) == 16
    assert new_live.tournaments["CL"].matchday_index == 1

    steps = 0
    while not new_live.finished:
        new_live, summary = advance_matchday(new_live, _player(steps), rng)
        steps += 1
    # Two more group matchdays, then four knockout rounds.
    assert steps == 6
    assert summary["finished"] is True
    assert summary["champions"]["CL"] == new_live.tournaments["CL"].champion_id
