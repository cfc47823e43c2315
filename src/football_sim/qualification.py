from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .catalog import ReferenceData
from .config import CONTINENTAL_COMPETITIONS, CompetitionSpec

_log = logging.getLogger("football_sim.qualification")

ZONE_LABELS: dict[str, str] = {
    "libertadores": "LIB",
    "sudamericana": "SULA",
    "champions": "UCL",
    "europa": "UEL",
    "promotion": "UP",
    "relegation": "Z4",
}
# Continental zones win over promotion/relegation when ranges overlap.
ZONE_PRIORITY = ("libertadores", "sudamericana", "champions", "europa", "promotion", "relegation")


@dataclass(slots=True)
class AllocationResult:
    selected: list[str]
    overflow: list[str]


def _rank(club_ids: Iterable[str], strength_of: Callable[[str], float]) -> list[str]:
    # sorted() is stable, so equal strengths keep their candidate order.
    return sorted(club_ids, key=lambda cid: -strength_of(cid))


def select_with_allocation(
    candidates: Iterable[str],
    assoc_slots: dict[str, int],
    total_size: int,
    association_of: Callable[[str], str],
    strength_of: Callable[[str], float],
) -> AllocationResult:
    """Pick ``total_size`` clubs honouring per-association guaranteed slots.

    Each association with a slot entry first gets its best clubs up to the slot
    count. Everyone else goes into a shared leftover pool, ranked by strength,
    that backfills the remaining places. Leftovers not picked are the overflow.
    """
    unique = list(dict.fromkeys(candidates))
    by_assoc: dict[str, list[str]] = {}
    for club_id in unique:
        by_assoc.setdefault(association_of(club_id), []).append(club_id)

    guaranteed: list[str] = []
    leftovers: list[str] = []
    for assoc, group in by_assoc.items():
        ranked = _rank(group, strength_of)
        slots = assoc_slots.get(assoc)
        if slots is None:
            leftovers.extend(ranked)
            continue
        guaranteed.extend(ranked[:slots])
        leftovers.extend(ranked[slots:])

    size = max(0, total_size)
    if len(guaranteed) > size:
        ranked_guaranteed = _rank(guaranteed, strength_of)
        guaranteed = ranked_guaranteed[:size]
        leftovers.extend(ranked_guaranteed[size:])

    ranked_leftovers = _rank(leftovers, strength_of)
    free = size - len(guaranteed)
    selected = guaranteed + ranked_leftovers[:free]
    overflow = ranked_leftovers[free:]
    return AllocationResult(selected=selected, overflow=overflow)


def zone_for_position(zones: dict[str, tuple[int, int]], position: int) -> str | None:
    for key in ZONE_PRIORITY:
        bounds = zones.get(key)
        if bounds is not None and bounds[0] <= position <= bounds[1]:
            return key
    return None


def zone_label(reference: ReferenceData, league_id: str, position: int) -> str | None:
    key = zone_for_position(reference.zones.get(league_id, {}), position)
    return ZONE_LABELS.get(key) if key else None


def ranked_league_clubs(
    reference: ReferenceData,
    league_id: str,
    previous_tables: dict[str, list[dict[str, Any]]],
    strength_of: Callable[[str], float],
) -> list[str]:
    """Final order of a league: last season's snapshot, else clubs by strength."""
    snapshot = previous_tables.get(league_id)
    if snapshot:
        return [str(row["club_id"]) for row in snapshot if isinstance(row, dict) and row.get("club_id")]
    return _rank([club.club_id for club in reference.clubs_in_league(league_id)], strength_of)


def build_candidate_pools(
    reference: ReferenceData,
    previous_tables: dict[str, list[dict[str, Any]]],
    strength_of: Callable[[str], float],
    competitions: tuple[CompetitionSpec, ...] = CONTINENTAL_COMPETITIONS,
) -> dict[str, list[str]]:
    pools: dict[str, list[str]] = {spec.tournament_id: [] for spec in competitions}
    for spec in competitions:
        for league in reference.first_divisions(spec.confederation):
            bounds = reference.zones.get(league.league_id, {}).get(spec.zone_key)
            if bounds is None:
                continue
            order = ranked_league_clubs(reference, league.league_id, previous_tables, strength_of)
            pools[spec.tournament_id].extend(order[bounds[0] - 1 : bounds[1]])
    return pools


def strength_fallback(
    reference: ReferenceData,
    spec: CompetitionSpec,
    strength_of: Callable[[str], float],
    exclude: set[str],
) -> list[str]:
    """Top clubs of every first division in the confederation, spread evenly."""
    leagues = reference.first_divisions(spec.confederation)
    if not leagues:
        return []
    per_league = max(1, math.ceil(spec.size / len(leagues)))
    picked: list[str] = []
    for league in leagues:
        ranked = _rank(
            [c.club_id for c in reference.clubs_in_league(league.league_id) if c.club_id not in exclude],
            strength_of,
        )
        picked.extend(ranked[:per_league])
    return picked


def allocate_competitions(
    reference: ReferenceData,
    previous_tables: dict[str, list[dict[str, Any]]],
    strength_of: Callable[[str], float],
    competitions: tuple[CompetitionSpec, ...] = CONTINENTAL_COMPETITIONS,
) -> dict[str, list[str]]:
    """Participants of every continental competition for the coming season.

    Competitions are processed in order; the overflow of one is put in front of
    the candidate pool of its ``overflow_into`` target, and a club is never
    placed in two competitions.
    """

    def association_of(club_id: str) -> str:
        club = reference.clubs.get(club_id)
        return club.country if club is not None else "??"

    pools = build_candidate_pools(reference, previous_tables, strength_of, competitions)
    carried: dict[str, list[str]] = {}
    taken: set[str] = set()
    participants: dict[str, list[str]] = {}

    for spec in competitions:
        candidates = [
            cid
            for cid in carried.get(spec.tournament_id, []) + pools.get(spec.tournament_id, [])
            if cid not in taken and cid in reference.clubs
        ]
        if not candidates:
            candidates = strength_fallback(reference, spec, strength_of, taken)
            if candidates:
                _log.info(f"{spec.tournament_id}: no qualifiers from zones, using strength fallback")

        result = select_with_allocation(
            candidates,
            reference.association_slots.get(spec.tournament_id, {}),
            spec.size,
            association_of,
            strength_of,
        )
        participants[spec.tournament_id] = result.selected
        taken.update(result.selected)
        if spec.overflow_into:
            carried[spec.overflow_into] = result.overflow + carried.get(spec.overflow_into, [])
    return participants
