import random

import pytest

from football_sim.catalog import EconomyRules, PromotionLink, ReferenceData, generate_squad
from football_sim.models import Club, League
from football_sim.names import NameGenerator


def build_small_reference(clubs_per_league: int = 8) -> ReferenceData:
    leagues = {
        "BRA_SERIE_A": League("BRA_SERIE_A", "Serie A Brasil", "BRA", "conmebol", 1),
        "BRA_SERIE_B": League("BRA_SERIE_B", "Serie B Brasil", "BRA", "conmebol", 2),
        "ARG_PRIMERA": League("ARG_PRIMERA", "Primera Division", "ARG", "conmebol", 1),
    }
    names = NameGenerator(seed=3)
    clubs: dict[str, Club] = {}
    players = {}
    for league_id, league in leagues.items():
        centre = 70 if league.level == 1 else 64
        for idx in range(1, clubs_per_league + 1):
            club = Club(
                club_id=f"{league_id}_{idx:02d}",
                name=f"{league.country} Club {league_id[-1]}{idx}",
                country=league.country,
                league_id=league_id,
                overall=float(centre + clubs_per_league - idx),
                budget=50_000_000,
            )
            clubs[club.club_id] = club
            players[club.club_id] = generate_squad(club, names, random.Random(club.club_id))
    return ReferenceData(
        clubs=clubs,
        leagues=leagues,
        players=players,
        zones={
            "BRA_SERIE_A": {"libertadores": (1, 3), "sudamericana": (4, 5), "relegation": (5, 8)},
            "BRA_SERIE_B": {"promotion": (1, 4), "relegation": (7, 8)},
            "ARG_PRIMERA": {"libertadores": (1, 3), "sudamericana": (4, 5)},
        },
        promotion_links=[PromotionLink(upper="BRA_SERIE_A", lower="BRA_SERIE_B", slots=4)],
        economy=EconomyRules(),
    )


@pytest.fixture
def small_reference() -> ReferenceData:
    return build_small_reference()
