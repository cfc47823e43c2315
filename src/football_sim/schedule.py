from __future__ import annotations

from typing import Iterable, Iterator

from .models import Match

BYE = "__BYE__"


def _circle_orders(slots: list[str]) -> Iterator[list[str]]:
    """Yield the slot order for each round: first slot pinned, the rest turning one step."""
    pinned, *rest = slots
    for _ in range(len(slots) - 1):
        yield [pinned, *rest]
        rest = [rest[-1], *rest[:-1]]


def _single_round_pairings(club_ids: list[str]) -> list[list[tuple[str, str]]]:
    if len(club_ids) < 2:
        return []
    slots = list(club_ids) + ([BYE] if len(club_ids) % 2 else [])
    half = len(slots) // 2
    pairings: list[list[tuple[str, str]]] = []
    for round_idx, order in enumerate(_circle_orders(slots)):
        pairs = [(order[i], order[-1 - i]) for i in range(half)]
        # Odd rounds swap venues.
        if round_idx % 2:
            pairs = [(away, home) for home, away in pairs]
        pairings.append([pair for pair in pairs if BYE not in pair])
    return pairings


def single_round_robin(club_ids: Iterable[str]) -> list[list[Match]]:
    ids = list(dict.fromkeys(club_ids))
    return [[Match(home_id=h, away_id=a) for h, a in fixtures] for fixtures in _single_round_pairings(ids)]


def generate_double_round_robin(club_ids: Iterable[str]) -> list[list[Match]]:
    """First leg of ``n-1`` rounds followed by the mirrored second leg."""
    ids = list(dict.fromkeys(club_ids))
    first_leg = _single_round_pairings(ids)
    second_leg = [[(away, home) for home, away in fixtures] for fixtures in first_leg]
    return [
        [Match(home_id=h, away_id=a) for h, a in fixtures]
        for fixtures in (*first_leg, *second_leg)
    ]


def validate_rounds(rounds: list[list[Match]]) -> None:
    for idx, fixtures in enumerate(rounds):
        seen: set[str] = set()
        for match in fixtures:
            if match.home_id == match.away_id:
                raise ValueError(f"Round {idx + 1} pairs {match.home_id} with itself.")
            for club_id in (match.home_id, match.away_id):
                if club_id in seen:
                    raise ValueError(f"Round {idx + 1} schedules {club_id} twice.")
                seen.add(club_id)
