from __future__ import annotations

from typing import Iterable

from .models import Club, StandingsRow


def build_empty_table(clubs: Iterable[Club]) -> dict[str, StandingsRow]:
    return {club.club_id: StandingsRow(club_id=club.club_id, name=club.name) for club in clubs}


def apply_result(
    table: dict[str, StandingsRow],
    home_id: str,
    away_id: str,
    home_goals: int,
    away_goals: int,
) -> None:
    """Register one result. Rows missing from the table are left alone."""
    home = table.get(home_id)
    away = table.get(away_id)
    if home is not None:
        home.register_result(home_goals, away_goals)
    if away is not None:
        away.register_result(away_goals, home_goals)


def _sort_key(row: StandingsRow) -> tuple[int, int, int, str]:
    return (-row.points, -row.goal_diff, -row.goals_for, row.name.casefold())


def sort_standings(rows: Iterable[StandingsRow]) -> list[StandingsRow]:
    return sorted(rows, key=lambda row: (*_sort_key(row), row.club_id))


def position_of(rows: list[StandingsRow], club_id: str) -> int | None:
    for idx, row in enumerate(rows, start=1):
        if row.club_id == club_id:
            return idx
    return None
