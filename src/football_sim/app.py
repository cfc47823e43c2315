from __future__ import annotations

import random

from .catalog import EconomyRules, PromotionLink, ReferenceData, generate_squad
from .models import Club, League, Player
from .names import NameGenerator

# league_id, name, country, confederation, level, clubs, rating centre
LEAGUE_PLAN: tuple[tuple[str, str, str, str, int, int, float], ...] = (
    ("ENG_PREMIER", "Premier Division", "ENG", "uefa", 1, 12, 76.0),
    ("ESP_LALIGA", "Primera Liga", "ESP", "uefa", 1, 12, 75.0),
    ("ITA_SERIE_A", "Serie A Italia", "ITA", "uefa", 1, 12, 74.0),
    ("GER_BUNDES", "Bundesliga", "GER", "uefa", 1, 12, 74.0),
    ("FRA_LIGUE_1", "Ligue 1", "FRA", "uefa", 1, 12, 72.0),
    ("POR_LIGA", "Liga Portugal", "POR", "uefa", 1, 12, 70.0),
    ("BRA_SERIE_A", "Serie A Brasil", "BRA", "conmebol", 1, 20, 70.0),
    ("BRA_SERIE_B", "Serie B Brasil", "BRA", "conmebol", 2, 20, 65.0),
    ("ARG_PRIMERA", "Primera Division", "ARG", "conmebol", 1, 12, 68.0),
    ("URU_PRIMERA", "Primera Uruguay", "URU", "conmebol", 1, 10, 64.0),
    ("CHI_PRIMERA", "Primera Chile", "CHI", "conmebol", 1, 10, 64.0),
    ("COL_PRIMERA", "Liga Colombia", "COL", "conmebol", 1, 10, 65.0),
)

UEFA_ZONES = {"champions": (1, 6), "europa": (7, 10)}
SMALL_CONMEBOL_ZONES = {"libertadores": (1, 6), "sudamericana": (7, 8)}
DEFAULT_ZONES: dict[str, dict[str, tuple[int, int]]] = {
    "ENG_PREMIER": dict(UEFA_ZONES),
    "ESP_LALIGA": dict(UEFA_ZONES),
    "ITA_SERIE_A": dict(UEFA_ZONES),
    "GER_BUNDES": dict(UEFA_ZONES),
    "FRA_LIGUE_1": dict(UEFA_ZONES),
    "POR_LIGA": dict(UEFA_ZONES),
    "BRA_SERIE_A": {"libertadores": (1, 8), "sudamericana": (9, 14), "relegation": (17, 20)},
    "BRA_SERIE_B": {"promotion": (1, 4), "relegation": (17, 20)},
    "ARG_PRIMERA": {"libertadores": (1, 6), "sudamericana": (7, 10)},
    "URU_PRIMERA": dict(SMALL_CONMEBOL_ZONES),
    "CHI_PRIMERA": dict(SMALL_CONMEBOL_ZONES),
    "COL_PRIMERA": dict(SMALL_CONMEBOL_ZONES),
}
DEFAULT_ASSOCIATION_SLOTS: dict[str, dict[str, int]] = {
    "UEFA_CL": {"ENG": 5, "ESP": 5, "ITA": 5, "GER": 5, "FRA": 5, "POR": 5},
}


def _club_code(name: str) -> str:
    letters = [ch for ch in name.upper() if ch.isalpha()]
    return "".join(letters[:3]) or "CLB"


def build_default_reference(seed: int = 7) -> ReferenceData:
    """Deterministic synthetic world used when no data pack is available."""
    name_gen = NameGenerator(seed=seed)
    clubs: dict[str, Club] = {}
    leagues: dict[str, League] = {}
    players: dict[str, list[Player]] = {}
    for league_id, league_name, country, confederation, level, count, centre in LEAGUE_PLAN:
        leagues[league_id] = League(
            league_id=league_id,
            name=league_name,
            country=country,
            confederation=confederation,
            level=level,
        )
        for idx, club_name in enumerate(name_gen.club_names(country, count), start=1):
            club_rng = random.Random(f"{league_id}:{idx}:{seed}")
            club = Club(
                club_id=f"{league_id}_{idx:02d}",
                name=club_name,
                short_name=_club_code(club_name.split()[-1]),
                country=country,
                league_id=league_id,
                overall=round(centre + club_rng.uniform(-6.0, 6.0), 1),
                budget=club_rng.randint(20, 400) * 1_000_000,
            )
            clubs[club.club_id] = club
            players[club.club_id] = generate_squad(club, name_gen, random.Random(f"squad:{club.club_id}:{seed}"))

    return ReferenceData(
        clubs=clubs,
        leagues=leagues,
        players=players,
        zones={lid: dict(z) for lid, z in DEFAULT_ZONES.items()},
        association_slots={tid: dict(s) for tid, s in DEFAULT_ASSOCIATION_SLOTS.items()},
        promotion_links=[PromotionLink(upper="BRA_SERIE_A", lower="BRA_SERIE_B")],
        economy=EconomyRules(),
    )
