"""Continental tournaments: group stage, league phase and knockout brackets.

A tournament moves through its stages one step at a time. A step is one group
matchday, one league-phase round or one knockout round. The same step function
drives both the batch run at season end and the live matchday state machine.
"""

from __future__ import annotations

import copy
import logging
import random
from typing import Any, Callable

from .config import GROUPS_KO, KO, LEAGUE_KO, LEAGUE_PHASE_PAIRING_ATTEMPTS, CompetitionSpec
from .models import (
    STAGE_DONE,
    STAGE_GROUPS,
    STAGE_KO,
    STAGE_LEAGUE,
    STAGE_PLACEHOLDER,
    ContinentalLive,
    ContinentalTournament,
    Group,
    Knockout,
    KnockoutRound,
    KnockoutTie,
    LeaguePhase,
    Match,
    StandingsRow,
)
from .schedule import single_round_robin
from .standings import apply_result, sort_standings

_log = logging.getLogger("football_sim.continental")

PlayFn = Callable[[str, str], tuple[int, int]]
GROUP_LETTERS = "ABCDEFGHIJKLMNOP"
MIN_GROUP_SIZE = 3
MIN_LEAGUE_PHASE_SIZE = 4


def largest_power_of_two(n: int) -> int:
    size = 1
    while size * 2 <= n:
        size *= 2
    return size


def knockout_size_for(qualifiers: int) -> int:
    if qualifiers >= 16:
        return 16
    if qualifiers >= 8:
        return 8
    return largest_power_of_two(qualifiers) if qualifiers >= 2 else 0


def bracket_order(size: int) -> list[int]:
    """Seed numbers in bracket position order.

    Every first-round tie is seed ``i`` against seed ``size + 1 - i`` and the
    top two seeds can only meet in the final.
    """
    if size < 2:
        return [1] if size == 1 else []
    order = [1, 2]
    while len(order) < size:
        span = len(order) * 2
        order = [seed for s in order for seed in (s, span + 1 - s)]
    return order


def round_name(clubs_left: int) -> str:
    return {2: "Final", 4: "Semi-finals", 8: "Quarter-finals"}.get(clubs_left, f"Round of {clubs_left}")


def _empty_table(club_ids: list[str], name_of: Callable[[str], str]) -> dict[str, StandingsRow]:
    return {cid: StandingsRow(club_id=cid, name=name_of(cid)) for cid in club_ids}


def _draw_groups(
    ranked: list[str],
    group_count: int,
    rng: random.Random,
    name_of: Callable[[str], str],
) -> list[Group]:
    # Pot draw: pot k holds seeds k*group_count .. (k+1)*group_count-1.
    members: list[list[str]] = [[] for _ in range(group_count)]
    for start in range(0, len(ranked), group_count):
        pot = ranked[start : start + group_count]
        rng.shuffle(pot)
        for idx, club_id in enumerate(pot):
            members[idx].append(club_id)
    groups: list[Group] = []
    for idx, club_ids in enumerate(members):
        groups.append(
            Group(
                name=f"Group {GROUP_LETTERS[idx % len(GROUP_LETTERS)]}",
                club_ids=club_ids,
                matchdays=single_round_robin(club_ids),
                table=_empty_table(club_ids, name_of),
            )
        )
    return groups


def _pair_round(
    club_ids: list[str],
    met: set[frozenset[str]],
    rng: random.Random,
) -> tuple[list[tuple[str, str]], bool]:
    """Random pairing avoiding previous opponents. Returns (pairs, has_repeats)."""
    pairs: list[tuple[str, str]] = []
    for _attempt in range(LEAGUE_PHASE_PAIRING_ATTEMPTS):
        pool = list(club_ids)
        rng.shuffle(pool)
        if len(pool) % 2 == 1:
            pool.pop()
        pairs = []
        stuck = False
        while pool:
            first = pool.pop()
            partner_idx = next((i for i, other in enumerate(pool) if frozenset((first, other)) not in met), None)
            if partner_idx is None:
                stuck = True
                break
            second = pool.pop(partner_idx)
            pairs.append((first, second) if rng.random() < 0.5 else (second, first))
        if not stuck:
            return pairs, False

    pool = list(club_ids)
    rng.shuffle(pool)
    if len(pool) % 2 == 1:
        pool.pop()
    pairs = [(pool[i], pool[i + 1]) for i in range(0, len(pool), 2)]
    return pairs, True


def _build_league_phase(
    ranked: list[str],
    rounds: int,
    rng: random.Random,
    name_of: Callable[[str], str],
    tournament_id: str,
) -> LeaguePhase:
    met: set[frozenset[str]] = set()
    phase = LeaguePhase(club_ids=list(ranked), table=_empty_table(ranked, name_of))
    for round_idx in range(rounds):
        pairs, repeats = _pair_round(ranked, met, rng)
        if repeats:
            phase.repeat_pairings += 1
            _log.warning(f"{tournament_id}: league round {round_idx + 1} accepted with repeated opponents")
        for home, away in pairs:
            met.add(frozenset((home, away)))
        phase.rounds.append([Match(home_id=h, away_id=a) for h, a in pairs])
    return phase


def _build_knockout(seeds: list[str]) -> Knockout:
    size = largest_power_of_two(len(seeds))
    seeds = seeds[:size]
    order = bracket_order(size)
    ties = [
        KnockoutTie(home_id=seeds[order[i] - 1], away_id=seeds[order[i + 1] - 1])
        for i in range(0, len(order), 2)
    ]
    return Knockout(seeds=seeds, rounds=[KnockoutRound(name=round_name(size), ties=ties)])


def build_tournament(
    spec: CompetitionSpec,
    participants: list[str],
    strength_of: Callable[[str], float],
    rng: random.Random,
    name_of: Callable[[str], str] | None = None,
) -> ContinentalTournament:
    name_of = name_of or (lambda cid: cid)
    unique = list(dict.fromkeys(participants))
    ranked = sorted(unique, key=lambda cid: -strength_of(cid))
    tournament = ContinentalTournament(
        tournament_id=spec.tournament_id,
        name=spec.name,
        confederation=spec.confederation,
        format=spec.format,
        participants=ranked,
        stage=STAGE_PLACEHOLDER,
    )
    n = len(ranked)
    if n < 2:
        _log.info(f"{spec.tournament_id}: {n} participant(s), tournament left as placeholder")
        return tournament

    fmt = spec.format
    group_count = min(spec.group_count, n // MIN_GROUP_SIZE)
    if fmt == GROUPS_KO and group_count < 2:
        fmt = KO
    if fmt == LEAGUE_KO and n < MIN_LEAGUE_PHASE_SIZE:
        fmt = KO
    tournament.format = fmt

    if fmt == GROUPS_KO:
        tournament.groups = _draw_groups(ranked, group_count, rng, name_of)
        tournament.knockout_size = knockout_size_for(group_count * 2)
        tournament.stage = STAGE_GROUPS
    elif fmt == LEAGUE_KO:
        rounds = min(spec.league_rounds, n - 1)
        tournament.league_phase = _build_league_phase(ranked, rounds, rng, name_of, spec.tournament_id)
        tournament.knockout_size = largest_power_of_two(min(spec.knockout_size, n))
        tournament.stage = STAGE_LEAGUE
    else:
        tournament.knockout_size = largest_power_of_two(min(spec.size, n))
        tournament.knockout = _build_knockout(ranked[: tournament.knockout_size])
        tournament.stage = STAGE_KO
    return tournament


def _play_matches(
    matches: list[Match],
    table: dict[str, StandingsRow],
    play: PlayFn,
    tournament_id: str,
    stage_label: str,
) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for match in matches:
        if match.played:
            continue
        hg, ag = play(match.home_id, match.away_id)
        match.home_goals = hg
        match.away_goals = ag
        match.played = True
        apply_result(table, match.home_id, match.away_id, hg, ag)
        results.append(
            {
                "tournament_id": tournament_id,
                "stage": stage_label,
                "home_id": match.home_id,
                "away_id": match.away_id,
                "home_goals": hg,
                "away_goals": ag,
            }
        )
    return results


def group_qualifiers(groups: list[Group]) -> list[str]:
    """Group winners ranked against each other, then the runners-up."""
    winners: list[StandingsRow] = []
    runners_up: list[StandingsRow] = []
    for group in groups:
        rows = sort_standings(group.table.values())
        if rows:
            winners.append(rows[0])
        if len(rows) > 1:
            runners_up.append(rows[1])
    return [row.club_id for row in sort_standings(winners)] + [row.club_id for row in sort_standings(runners_up)]


def _step_groups(t: ContinentalTournament, play: PlayFn) -> list[dict[str, Any]]:
    idx = t.matchday_index
    results: list[dict[str, Any]] = []
    for group in t.groups:
        if idx < len(group.matchdays):
            results.extend(_play_matches(group.matchdays[idx], group.table, play, t.tournament_id, group.name))
    t.matchday_index += 1
    if t.matchday_index >= max((len(g.matchdays) for g in t.groups), default=0):
        seeds = group_qualifiers(t.groups)[: t.knockout_size]
        _enter_knockout(t, seeds)
    return results


def _step_league(t: ContinentalTournament, play: PlayFn) -> list[dict[str, Any]]:
    phase = t.league_phase
    if phase is None:
        t.stage = STAGE_DONE
        return []
    idx = t.matchday_index
    results: list[dict[str, Any]] = []
    if idx < len(phase.rounds):
        results = _play_matches(phase.rounds[idx], phase.table, play, t.tournament_id, f"League round {idx + 1}")
    t.matchday_index += 1
    if t.matchday_index >= len(phase.rounds):
        seeds = [row.club_id for row in sort_standings(phase.table.values())][: t.knockout_size]
        _enter_knockout(t, seeds)
    return results


def _enter_knockout(t: ContinentalTournament, seeds: list[str]) -> None:
    if len(seeds) < 2:
        t.champion_id = t.champion_id or (seeds[0] if seeds else None)
        t.stage = STAGE_DONE
        return
    t.knockout = _build_knockout(seeds)
    t.round_index = 0
    t.stage = STAGE_KO


def _step_knockout(t: ContinentalTournament, play: PlayFn, rng: random.Random) -> list[dict[str, Any]]:
    ko = t.knockout
    if ko is None or t.round_index >= len(ko.rounds):
        t.stage = STAGE_DONE
        return []
    current = ko.rounds[t.round_index]
    seed_rank = {cid: idx for idx, cid in enumerate(ko.seeds)}
    results: list[dict[str, Any]] = []
    for tie in current.ties:
        if tie.played:
            continue
        hg, ag = play(tie.home_id, tie.away_id)
        tie.home_goals = hg
        tie.away_goals = ag
        tie.played = True
        if hg > ag:
            tie.winner_id = tie.home_id
        elif ag > hg:
            tie.winner_id = tie.away_id
        else:
            tie.penalties = True
            tie.winner_id = tie.home_id if rng.random() < 0.5 else tie.away_id
        results.append(
            {
                "tournament_id": t.tournament_id,
                "stage": current.name,
                "home_id": tie.home_id,
                "away_id": tie.away_id,
                "home_goals": hg,
                "away_goals": ag,
                "penalties": tie.penalties,
                "winner_id": tie.winner_id,
            }
        )

    winners = current.winners()
    t.round_index += 1
    if len(winners) == 1:
        if ko.champion_id is None:
            ko.champion_id = winners[0]
        if t.champion_id is None:
            t.champion_id = ko.champion_id
        t.stage = STAGE_DONE
        return results

    next_ties: list[KnockoutTie] = []
    for i in range(0, len(winners) - 1, 2):
        a, b = winners[i], winners[i + 1]
        if seed_rank.get(b, 0) < seed_rank.get(a, 0):
            a, b = b, a
        next_ties.append(KnockoutTie(home_id=a, away_id=b))
    ko.rounds.append(KnockoutRound(name=round_name(len(winners)), ties=next_ties))
    return results


def play_step(
    tournament: ContinentalTournament,
    play: PlayFn,
    rng: random.Random,
) -> list[dict[str, Any]]:
    """Resolve exactly one matchday of ``tournament`` in place."""
    if tournament.stage == STAGE_GROUPS:
        return _step_groups(tournament, play)
    if tournament.stage == STAGE_LEAGUE:
        return _step_league(tournament, play)
    if tournament.stage == STAGE_KO:
        return _step_knockout(tournament, play, rng)
    return []


def run_to_completion(
    tournament: ContinentalTournament,
    play: PlayFn,
    rng: random.Random,
) -> ContinentalTournament:
    while tournament.active:
        play_step(tournament, play, rng)
    return tournament


def advance_matchday(
    live: ContinentalLive,
    play: PlayFn,
    rng: random.Random,
) -> tuple[ContinentalLive, dict[str, Any]]:
    """Play one step of every active tournament on a copy of ``live``."""
    new_live = copy.deepcopy(live)
    results: list[dict[str, Any]] = []
    for tournament in new_live.tournaments.values():
        if tournament.active:
            results.extend(play_step(tournament, play, rng))
    if results or not new_live.finished:
        new_live.matchdays_played += 1
    summary = {
        "matchday": new_live.matchdays_played,
        "results": results,
        "stages": {tid: t.stage for tid, t in new_live.tournaments.items()},
        "champions": {tid: t.champion_id for tid, t in new_live.tournaments.items() if t.champion_id},
        "finished": new_live.finished,
    }
    new_live.last_summary = summary
    return new_live, summary
