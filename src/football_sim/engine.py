from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Any

from .config import (
    AWAY_DIFF_SCALE,
    BASE_EXPECTED_GOALS,
    DEFAULT_CLUB_RATING,
    HOME_ADVANTAGE,
    HOME_DIFF_SCALE,
    MAX_EXPECTED_GOALS,
    MAX_GOALS,
    MIN_EXPECTED_GOALS,
    NON_USER_NOISE,
    STAFF_CATALOG,
    TACTIC_EFFECTS,
)


@dataclass(slots=True)
class Modifiers:
    attack: float = 1.0
    defense: float = 1.0
    chaos: float = 0.0
    training_boost: float = 0.0
    form_multiplier: float = 1.0


@dataclass(slots=True)
class MatchContext:
    """Everything a match needs besides the two club ids.

    ``ratings`` maps club id to base rating. ``squad_form`` is the form of every
    player in the user's squad and only matters for ``user_club_id``.
    """

    ratings: dict[str, float]
    rng: random.Random
    user_club_id: str | None = None
    squad_form: list[float] = field(default_factory=list)
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass(slots=True)
class MatchOutcome:
    home_goals: int
    away_goals: int
    home_xg: float
    away_xg: float


@dataclass(slots=True)
class MatchStats:
    possession_home: int
    possession_away: int
    shots_home: int
    shots_away: int
    on_target_home: int
    on_target_away: int
    fouls_home: int
    fouls_away: int
    corners_home: int
    corners_away: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "possession": [self.possession_home, self.possession_away],
            "shots": [self.shots_home, self.shots_away],
            "on_target": [self.on_target_home, self.on_target_away],
            "fouls": [self.fouls_home, self.fouls_away],
            "corners": [self.corners_home, self.corners_away],
        }


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def build_modifiers(tactic: str, staff_ids: list[str] | None = None) -> Modifiers:
    if tactic not in TACTIC_EFFECTS:
        raise ValueError(f"Unknown tactic style: {tactic}")
    effect = TACTIC_EFFECTS[tactic]
    mods = Modifiers(attack=effect["attack"], defense=effect["defense"], chaos=effect["chaos"])
    hired = set(staff_ids or [])
    for staff in STAFF_CATALOG:
        if staff["id"] not in hired:
            continue
        staff_effect: dict[str, float] = staff["effect"]  # type: ignore[assignment]
        mods.attack *= staff_effect.get("attack", 1.0)
        mods.defense *= staff_effect.get("defense", 1.0)
        mods.chaos += staff_effect.get("chaos", 0.0)
        mods.training_boost += staff_effect.get("training_boost", 0.0)
        mods.form_multiplier *= staff_effect.get("form_multiplier", 1.0)
    mods.chaos = max(0.0, mods.chaos)
    return mods


def base_strength(club_id: str, ctx: MatchContext) -> float:
    return float(ctx.ratings.get(club_id, DEFAULT_CLUB_RATING))


def team_strength(club_id: str, ctx: MatchContext) -> float:
    base = base_strength(club_id, ctx)
    if ctx.user_club_id is not None and club_id == ctx.user_club_id:
        if not ctx.squad_form:
            return base
        return base + sum(ctx.squad_form) / len(ctx.squad_form)
    return base + ctx.rng.uniform(-NON_USER_NOISE, NON_USER_NOISE)


def expected_goals(home_strength: float, away_strength: float) -> tuple[float, float]:
    diff = home_strength + HOME_ADVANTAGE - away_strength
    home = _clamp(BASE_EXPECTED_GOALS + diff / HOME_DIFF_SCALE, MIN_EXPECTED_GOALS, MAX_EXPECTED_GOALS)
    away = _clamp(BASE_EXPECTED_GOALS - diff / AWAY_DIFF_SCALE, MIN_EXPECTED_GOALS, MAX_EXPECTED_GOALS)
    return (home, away)


def sample_goals(lam: float, rng: random.Random) -> int:
    # Knuth's Poisson sampler; lam stays small so the loop is short.
    limit = math.exp(-lam)
    k = 0
    p = 1.0
    while p > limit:
        k += 1
        p *= rng.random()
    return int(_clamp(k - 1, 0, MAX_GOALS))


def simulate_match(home_id: str, away_id: str, ctx: MatchContext) -> MatchOutcome:
    home_xg, away_xg = expected_goals(team_strength(home_id, ctx), team_strength(away_id, ctx))

    user = ctx.user_club_id
    if user is not None and user in (home_id, away_id):
        mods = ctx.modifiers
        if home_id == user:
            home_xg *= mods.attack
            away_xg /= max(0.01, mods.defense)
        else:
            away_xg *= mods.attack
            home_xg /= max(0.01, mods.defense)
        if mods.chaos > 0:
            home_xg *= 1.0 + ctx.rng.uniform(-mods.chaos, mods.chaos)
            away_xg *= 1.0 + ctx.rng.uniform(-mods.chaos, mods.chaos)
        home_xg = _clamp(home_xg, MIN_EXPECTED_GOALS, MAX_EXPECTED_GOALS)
        away_xg = _clamp(away_xg, MIN_EXPECTED_GOALS, MAX_EXPECTED_GOALS)

    return MatchOutcome(
        home_goals=sample_goals(home_xg, ctx.rng),
        away_goals=sample_goals(away_xg, ctx.rng),
        home_xg=round(home_xg, 3),
        away_xg=round(away_xg, 3),
    )


def _side_stats(xg: float, goals: int, rng: random.Random) -> tuple[int, int, int, int]:
    shots = int(_clamp(round(xg * 9 + rng.uniform(3, 7)), 4, 22))
    shots = max(shots, goals)
    on_target = int(_clamp(round(shots * rng.uniform(0.32, 0.55)), goals, shots))
    fouls = int(_clamp(round(rng.uniform(8, 17)), 5, 24))
    corners = int(_clamp(round(shots * rng.uniform(0.12, 0.25)), 1, 11))
    return (shots, on_target, fouls, corners)


def build_match_stats(home_id: str, away_id: str, outcome: MatchOutcome, ctx: MatchContext) -> MatchStats:
    """Display statistics consistent with an already decided scoreline."""
    home_base = base_strength(home_id, ctx)
    away_base = base_strength(away_id, ctx)
    total = home_base + away_base
    tilt = (home_base - away_base) / total if total > 0 else 0.0
    possession = int(_clamp(round(50 + tilt * 14 + ctx.rng.uniform(-4, 4)), 35, 65))

    shots_h, on_target_h, fouls_h, corners_h = _side_stats(outcome.home_xg, outcome.home_goals, ctx.rng)
    shots_a, on_target_a, fouls_a, corners_a = _side_stats(outcome.away_xg, outcome.away_goals, ctx.rng)
    return MatchStats(
        possession_home=possession,
        possession_away=100 - possession,
        shots_home=shots_h,
        shots_away=shots_a,
        on_target_home=on_target_h,
        on_target_away=on_target_a,
        fouls_home=fouls_h,
        fouls_away=fouls_a,
        corners_home=corners_h,
        corners_away=corners_a,
    )
