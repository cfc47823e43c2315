"""Static simulation configuration constants."""

from __future__ import annotations

from dataclasses import dataclass

# Goal model. Expected goals come from a clamped linear map of the strength gap.
HOME_ADVANTAGE = 1.6
BASE_EXPECTED_GOALS = 1.25
HOME_DIFF_SCALE = 18.0
AWAY_DIFF_SCALE = 22.0
MIN_EXPECTED_GOALS = 0.2
MAX_EXPECTED_GOALS = 3.6
MAX_GOALS = 7
DEFAULT_CLUB_RATING = 60.0
NON_USER_NOISE = 1.0

FORM_MIN = -5.0
FORM_MAX = 5.0

# Transfer windows by domestic round index (inclusive).
TRANSFER_WINDOWS: tuple[tuple[str, int, int], ...] = (
    ("Pre-season window", 0, 5),
    ("Mid-season window", 18, 23),
)
OFFER_LIFETIME_ROUNDS = 3
MAX_INCOMING_OFFERS_PER_ROUND = 2
TRANSFER_HISTORY_LIMIT = 200

# Live continental matchdays: first after domestic round index 1, then every 2 rounds.
CONTINENTAL_FIRST_ROUND_INDEX = 1
CONTINENTAL_ROUND_INTERVAL = 2
LEAGUE_PHASE_PAIRING_ATTEMPTS = 200

DEFAULT_STARTING_CASH = 50_000_000
DEFAULT_CURRENCY = "BRL"
DEFAULT_WEEKLY_COSTS: dict[str, int] = {"staff": 250_000, "maintenance": 150_000}
DEFAULT_CONTINENTAL_PRIZES: dict[str, int] = {"win": 2_800_000, "draw": 900_000}
DEFAULT_PROMOTION_SLOTS = 4
DEFAULT_SEASON_ID = "2025_2026"

# Career score deltas awarded at season completion.
SCORE_LEAGUE_TITLE = 15
SCORE_OBJECTIVE_MET = 6
SCORE_OBJECTIVE_MISSED = -4
SCORE_CONTINENTAL_TITLE = 20

GROUPS_KO = "GROUPS_KO"
LEAGUE_KO = "LEAGUE_KO"
KO = "KO"
TOURNAMENT_FORMATS = (GROUPS_KO, LEAGUE_KO, KO)


@dataclass(frozen=True, slots=True)
class CompetitionSpec:
    tournament_id: str
    name: str
    confederation: str
    zone_key: str
    format: str
    size: int = 32
    group_count: int = 8
    league_rounds: int = 8
    knockout_size: int = 16
    overflow_into: str | None = None


CONTINENTAL_COMPETITIONS: tuple[CompetitionSpec, ...] = (
    CompetitionSpec(
        tournament_id="UEFA_CL",
        name="Champions Cup",
        confederation="uefa",
        zone_key="champions",
        format=GROUPS_KO,
        size=32,
        overflow_into="UEFA_EL",
    ),
    CompetitionSpec(
        tournament_id="UEFA_EL",
        name="Europa Cup",
        confederation="uefa",
        zone_key="europa",
        format=LEAGUE_KO,
        size=24,
        league_rounds=8,
        knockout_size=8,
    ),
    CompetitionSpec(
        tournament_id="CONMEBOL_LIB",
        name="Libertadores",
        confederation="conmebol",
        zone_key="libertadores",
        format=GROUPS_KO,
        size=32,
        overflow_into="CONMEBOL_SUD",
    ),
    CompetitionSpec(
        tournament_id="CONMEBOL_SUD",
        name="Sudamericana",
        confederation="conmebol",
        zone_key="sudamericana",
        format=KO,
        size=16,
    ),
)

TACTIC_EFFECTS: dict[str, dict[str, float]] = {
    "balanced": {"attack": 1.00, "defense": 1.00, "chaos": 0.00},
    "attacking": {"attack": 1.12, "defense": 0.92, "chaos": 0.10},
    "defensive": {"attack": 0.90, "defense": 1.12, "chaos": 0.04},
    "counter": {"attack": 1.04, "defense": 1.04, "chaos": 0.14},
    "possession": {"attack": 1.05, "defense": 1.03, "chaos": 0.02},
}

TRAINING_PLANS: dict[str, float] = {
    "rest": 0.10,
    "balanced": 0.35,
    "intense": 0.70,
}

SPONSOR_CATALOG: tuple[dict[str, object], ...] = (
    {"id": "mining", "name": "Mining Group", "cash_upfront": 10_000_000, "weekly": 500_000},
    {"id": "regional_bank", "name": "Regional Bank", "cash_upfront": 5_000_000, "weekly": 300_000},
    {"id": "energy_drink", "name": "Energy Drink", "cash_upfront": 2_000_000, "weekly": 100_000},
)

STAFF_CATALOG: tuple[dict[str, object], ...] = (
    {"id": "fitness_coach", "name": "Fitness Coach", "salary": 60_000, "effect": {"training_boost": 0.10}},
    {"id": "analyst", "name": "Performance Analyst", "salary": 80_000, "effect": {"attack": 1.03, "chaos": -0.02}},
    {"id": "assistant", "name": "Assistant Manager", "salary": 120_000, "effect": {"defense": 1.04, "form_multiplier": 1.10}},
)
