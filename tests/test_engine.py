import random

import pytest

from football_sim.config import MAX_EXPECTED_GOALS, MAX_GOALS, MIN_EXPECTED_GOALS
from football_sim.engine import (
    MatchContext,
    build_match_stats,
    build_modifiers,
    expected_goals,
    sample_goals,
    simulate_match,
    team_strength,
)


def test_expected_goals_favours_stronger_home_side_and_clamps() -> None:
    home, away = expected_goals(80.0, 60.0)
    assert home > away
    assert expected_goals(200.0, 0.0) == (MAX_EXPECTED_GOALS, MIN_EXPECTED_GOALS)


def test_sample_goals_stays_in_range() -> None:
    rng = random.Random(5)
    draws = [sample_goals(3.6, rng) for _ in range(500)]
    assert min(draws) >= 0
    assert max(draws) <= MAX_GOALS
    assert sum(draws) / len(draws) > 2.5


def test_user_strength_uses_squad_form_without_noise() -> None:
    ctx = MatchContext(ratings={"u": 70.0, "o": 70.0}, rng=random.Random(1), user_club_id="u", squad_form=[2.0, 0.0])
    assert team_strength("u", ctx) == 71.0
    assert 69.0 <= team_strength("o", ctx) <= 71.0


def test_same_seed_same_result() -> None:
    def play(seed: int):
        ctx = MatchContext(ratings={"a": 72.0, "b": 68.0}, rng=random.Random(seed))
        return simulate_match("a", "b", ctx)

    assert play(42) == play(42)


def test_staff_and_tactics_combine() -> None:
    mods = build_modifiers("attacking", ["analyst", "fitness_coach"])
    assert mods.attack == pytest.approx(1.12 * 1.03)
    assert mods.chaos == pytest.approx(0.08)
    assert mods.training_boost == pytest.approx(0.10)
    with pytest.raises(ValueError):
        build_modifiers("park_the_bus")


def test_match_stats_are_consistent_with_score() -> None:
    ctx = MatchContext(ratings={"a": 75.0, "b": 65.0}, rng=random.Random(8))
    for _ in range(50):
        outcome = simulate_match("a", "b", ctx)
        stats = build_match_stats("a", "b", outcome, ctx)
        assert 35 <= stats.possession_home <= 65
        assert stats.possession_home + stats.possession_away == 100
        assert stats.on_target_home >= outcome.home_goals
        assert stats.shots_away >= stats.on_target_away >= outcome.away_goals
