from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
COUNTERED = "COUNTERED"
REJECTED = "REJECTED"
EXPIRED = "EXPIRED"
CANCELLED = "CANCELLED"
LIVE_OFFER_STATUSES = {PENDING, COUNTERED}
TERMINAL_OFFER_STATUSES = {ACCEPTED, REJECTED, EXPIRED, CANCELLED}

OUTGOING = "OUT"
INCOMING = "IN"

NOT_STARTED = "NOT_STARTED"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"

STAGE_GROUPS = "GROUPS"
STAGE_LEAGUE = "LEAGUE"
STAGE_KO = "KO"
STAGE_DONE = "DONE"
STAGE_PLACEHOLDER = "PLACEHOLDER"


@dataclass(slots=True)
class Club:
    club_id: str
    name: str
    country: str = "??"
    league_id: str = ""
    overall: float = 60.0
    budget: int = 0
    short_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "club_id": self.club_id,
            "name": self.name,
            "country": self.country,
            "league_id": self.league_id,
            "overall": self.overall,
            "budget": self.budget,
            "short_name": self.short_name,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Club:
        return cls(
            club_id=str(raw["club_id"]),
            name=str(raw.get("name", raw["club_id"])),
            country=str(raw.get("country", "??")),
            league_id=str(raw.get("league_id", "")),
            overall=float(raw.get("overall", 60.0)),
            budget=int(raw.get("budget", 0) or 0),
            short_name=str(raw.get("short_name", "")),
        )


@dataclass(frozen=True, slots=True)
class League:
    league_id: str
    name: str
    country: str
    confederation: str
    level: int = 1


@dataclass(slots=True)
class Player:
    player_id: str
    name: str
    club_id: str
    position: str = "CM"
    age: int = 24
    overall: int = 60
    value: int = 0
    wage: int = 0
    form: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "club_id": self.club_id,
            "position": self.position,
            "age": self.age,
            "overall": self.overall,
            "value": self.value,
            "wage": self.wage,
            "form": self.form,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Player:
        return cls(
            player_id=str(raw["player_id"]),
            name=str(raw.get("name", raw["player_id"])),
            club_id=str(raw.get("club_id", "")),
            position=str(raw.get("position", "CM")),
            age=int(raw.get("age", 24)),
            overall=int(raw.get("overall", 60)),
            value=int(raw.get("value", 0) or 0),
            wage=int(raw.get("wage", 0) or 0),
            form=float(raw.get("form", 0.0) or 0.0),
        )


@dataclass(slots=True)
class Match:
    home_id: str
    away_id: str
    played: bool = False
    home_goals: int = 0
    away_goals: int = 0
    home_xg: float | None = None
    away_xg: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_id": self.home_id,
            "away_id": self.away_id,
            "played": self.played,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "home_xg": self.home_xg,
            "away_xg": self.away_xg,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Match:
        home_xg = raw.get("home_xg")
        away_xg = raw.get("away_xg")
        return cls(
            home_id=str(raw["home_id"]),
            away_id=str(raw["away_id"]),
            played=bool(raw.get("played", False)),
            home_goals=int(raw.get("home_goals", 0)),
            away_goals=int(raw.get("away_goals", 0)),
            home_xg=float(home_xg) if home_xg is not None else None,
            away_xg=float(away_xg) if away_xg is not None else None,
        )


@dataclass(slots=True)
class StandingsRow:
    club_id: str
    name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def points(self) -> int:
        return self.won * 3 + self.drawn

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    def register_result(self, goals_for: int, goals_against: int) -> None:
        self.played += 1
        self.goals_for += goals_for
        self.goals_against += goals_against
        if goals_for > goals_against:
            self.won += 1
        elif goals_for < goals_against:
            self.lost += 1
        else:
            self.drawn += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "club_id": self.club_id,
            "name": self.name,
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_diff": self.goal_diff,
            "points": self.points,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> StandingsRow:
        return cls(
            club_id=str(raw["club_id"]),
            name=str(raw.get("name", raw["club_id"])),
            played=int(raw.get("played", 0)),
            won=int(raw.get("won", 0)),
            drawn=int(raw.get("drawn", 0)),
            lost=int(raw.get("lost", 0)),
            goals_for=int(raw.get("goals_for", 0)),
            goals_against=int(raw.get("goals_against", 0)),
        )


def rounds_to_dict(rounds: list[list[Match]]) -> list[list[dict[str, Any]]]:
    return [[m.to_dict() for m in round_matches] for round_matches in rounds]


def rounds_from_dict(raw: Any) -> list[list[Match]]:
    if not isinstance(raw, list):
        return []
    return [
        [Match.from_dict(m) for m in round_matches if isinstance(m, dict)]
        for round_matches in raw
        if isinstance(round_matches, list)
    ]


def table_to_dict(table: dict[str, StandingsRow]) -> dict[str, dict[str, Any]]:
    return {club_id: row.to_dict() for club_id, row in table.items()}


def table_from_dict(raw: Any) -> dict[str, StandingsRow]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): StandingsRow.from_dict(v) for k, v in raw.items() if isinstance(v, dict)}


@dataclass(slots=True)
class Season:
    season_id: str
    year_start: int
    year_end: int
    league_id: str
    rounds: list[list[Match]] = field(default_factory=list)
    table: dict[str, StandingsRow] = field(default_factory=dict)
    current_round: int = 0
    completed: bool = False
    summary: dict[str, Any] | None = None
    last_results: list[dict[str, Any]] = field(default_factory=list)
    last_trained_round: int = -1

    @property
    def total_rounds(self) -> int:
        return len(self.rounds)

    @property
    def status(self) -> str:
        if self.completed:
            return COMPLETED
        if self.current_round <= 0:
            return NOT_STARTED
        return IN_PROGRESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "season_id": self.season_id,
            "year_start": self.year_start,
            "year_end": self.year_end,
            "league_id": self.league_id,
            "rounds": rounds_to_dict(self.rounds),
            "table": table_to_dict(self.table),
            "current_round": self.current_round,
            "completed": self.completed,
            "summary": self.summary,
            "last_results": list(self.last_results),
            "last_trained_round": self.last_trained_round,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Season:
        summary = raw.get("summary")
        last_results = raw.get("last_results", [])
        return cls(
            season_id=str(raw["season_id"]),
            year_start=int(raw.get("year_start", 2025)),
            year_end=int(raw.get("year_end", 2026)),
            league_id=str(raw.get("league_id", "")),
            rounds=rounds_from_dict(raw.get("rounds", [])),
            table=table_from_dict(raw.get("table", {})),
            current_round=int(raw.get("current_round", 0)),
            completed=bool(raw.get("completed", False)),
            summary=summary if isinstance(summary, dict) else None,
            last_results=[r for r in last_results if isinstance(r, dict)] if isinstance(last_results, list) else [],
            last_trained_round=int(raw.get("last_trained_round", -1)),
        )


@dataclass(slots=True)
class ParallelLeague:
    """A league other than the user's, simulated round by round alongside it."""

    league_id: str
    rounds: list[list[Match]] = field(default_factory=list)
    table: dict[str, StandingsRow] = field(default_factory=dict)
    current_round: int = 0
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "league_id": self.league_id,
            "rounds": rounds_to_dict(self.rounds),
            "table": table_to_dict(self.table),
            "current_round": self.current_round,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ParallelLeague:
        return cls(
            league_id=str(raw["league_id"]),
            rounds=rounds_from_dict(raw.get("rounds", [])),
            table=table_from_dict(raw.get("table", {})),
            current_round=int(raw.get("current_round", 0)),
            completed=bool(raw.get("completed", False)),
        )


@dataclass(slots=True)
class TransferOffer:
    offer_id: str
    direction: str
    player_id: str
    player_name: str
    from_club: str
    to_club: str
    fee: int
    wage: int
    created_round: int
    expires_round: int
    status: str = PENDING
    counter_fee: int | None = None
    counter_wage: int | None = None
    reason: str = ""
    closed_round: int | None = None

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_OFFER_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_OFFER_STATUSES

    @property
    def agreed_fee(self) -> int:
        return self.counter_fee if self.counter_fee is not None else self.fee

    @property
    def agreed_wage(self) -> int:
        return self.counter_wage if self.counter_wage is not None else self.wage

    def to_dict(self) -> dict[str, Any]:
        return {
            "offer_id": self.offer_id,
            "direction": self.direction,
            "player_id": self.player_id,
            "player_name": self.player_name,
            "from_club": self.from_club,
            "to_club": self.to_club,
            "fee": self.fee,
            "wage": self.wage,
            "status": self.status,
            "created_round": self.created_round,
            "expires_round": self.expires_round,
            "counter_fee": self.counter_fee,
            "counter_wage": self.counter_wage,
            "reason": self.reason,
            "closed_round": self.closed_round,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransferOffer:
        counter_fee = raw.get("counter_fee")
        counter_wage = raw.get("counter_wage")
        closed_round = raw.get("closed_round")
        return cls(
            offer_id=str(raw["offer_id"]),
            direction=str(raw.get("direction", OUTGOING)),
            player_id=str(raw.get("player_id", "")),
            player_name=str(raw.get("player_name", "")),
            from_club=str(raw.get("from_club", "")),
            to_club=str(raw.get("to_club", "")),
            fee=int(raw.get("fee", 0) or 0),
            wage=int(raw.get("wage", 0) or 0),
            status=str(raw.get("status", PENDING)),
            created_round=int(raw.get("created_round", 0)),
            expires_round=int(raw.get("expires_round", 0)),
            counter_fee=int(counter_fee) if counter_fee is not None else None,
            counter_wage=int(counter_wage) if counter_wage is not None else None,
            reason=str(raw.get("reason", "")),
            closed_round=int(closed_round) if closed_round is not None else None,
        )


@dataclass(slots=True)
class TransferState:
    outbox: list[TransferOffer] = field(default_factory=list)
    inbox: list[TransferOffer] = field(default_factory=list)
    log: list[dict[str, Any]] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    finalized_offer_ids: list[str] = field(default_factory=list)
    last_processed_round: int = -1
    next_offer_no: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "outbox": [o.to_dict() for o in self.outbox],
            "inbox": [o.to_dict() for o in self.inbox],
            "log": list(self.log),
            "history": list(self.history),
            "finalized_offer_ids": list(self.finalized_offer_ids),
            "last_processed_round": self.last_processed_round,
            "next_offer_no": self.next_offer_no,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TransferState:
        def _offers(key: str) -> list[TransferOffer]:
            rows = raw.get(key, [])
            if not isinstance(rows, list):
                return []
            return [TransferOffer.from_dict(row) for row in rows if isinstance(row, dict) and "offer_id" in row]

        log = raw.get("log", [])
        history = raw.get("history", [])
        finalized = raw.get("finalized_offer_ids", [])
        return cls(
            outbox=_offers("outbox"),
            inbox=_offers("inbox"),
            log=[r for r in log if isinstance(r, dict)] if isinstance(log, list) else [],
            history=[r for r in history if isinstance(r, dict)] if isinstance(history, list) else [],
            finalized_offer_ids=[str(x) for x in finalized] if isinstance(finalized, list) else [],
            last_processed_round=int(raw.get("last_processed_round", -1)),
            next_offer_no=max(1, int(raw.get("next_offer_no", 1))),
        )


@dataclass(slots=True)
class Group:
    name: str
    club_ids: list[str]
    matchdays: list[list[Match]] = field(default_factory=list)
    table: dict[str, StandingsRow] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "club_ids": list(self.club_ids),
            "matchdays": rounds_to_dict(self.matchdays),
            "table": table_to_dict(self.table),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Group:
        return cls(
            name=str(raw.get("name", "")),
            club_ids=[str(x) for x in raw.get("club_ids", [])],
            matchdays=rounds_from_dict(raw.get("matchdays", [])),
            table=table_from_dict(raw.get("table", {})),
        )


@dataclass(slots=True)
class LeaguePhase:
    club_ids: list[str]
    rounds: list[list[Match]] = field(default_factory=list)
    table: dict[str, StandingsRow] = field(default_factory=dict)
    repeat_pairings: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "club_ids": list(self.club_ids),
            "rounds": rounds_to_dict(self.rounds),
            "table": table_to_dict(self.table),
            "repeat_pairings": self.repeat_pairings,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LeaguePhase:
        return cls(
            club_ids=[str(x) for x in raw.get("club_ids", [])],
            rounds=rounds_from_dict(raw.get("rounds", [])),
            table=table_from_dict(raw.get("table", {})),
            repeat_pairings=int(raw.get("repeat_pairings", 0)),
        )


@dataclass(slots=True)
class KnockoutTie:
    home_id: str
    away_id: str
    played: bool = False
    home_goals: int = 0
    away_goals: int = 0
    penalties: bool = False
    winner_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_id": self.home_id,
            "away_id": self.away_id,
            "played": self.played,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "penalties": self.penalties,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> KnockoutTie:
        winner = raw.get("winner_id")
        return cls(
            home_id=str(raw["home_id"]),
            away_id=str(raw["away_id"]),
            played=bool(raw.get("played", False)),
            home_goals=int(raw.get("home_goals", 0)),
            away_goals=int(raw.get("away_goals", 0)),
            penalties=bool(raw.get("penalties", False)),
            winner_id=str(winner) if winner else None,
        )


@dataclass(slots=True)
class KnockoutRound:
    name: str
    ties: list[KnockoutTie] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return all(tie.played for tie in self.ties)

    def winners(self) -> list[str]:
        return [tie.winner_id for tie in self.ties if tie.winner_id]


@dataclass(slots=True)
class Knockout:
    seeds: list[str]
    rounds: list[KnockoutRound] = field(default_factory=list)
    champion_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "seeds": list(self.seeds),
            "rounds": [
                {"name": rnd.name, "ties": [tie.to_dict() for tie in rnd.ties]}
                for rnd in self.rounds
            ],
            "champion_id": self.champion_id,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Knockout:
        rounds: list[KnockoutRound] = []
        for rnd in raw.get("rounds", []):
            if not isinstance(rnd, dict):
                continue
            ties = [KnockoutTie.from_dict(t) for t in rnd.get("ties", []) if isinstance(t, dict)]
            rounds.append(KnockoutRound(name=str(rnd.get("name", "")), ties=ties))
        champion = raw.get("champion_id")
        return cls(
            seeds=[str(x) for x in raw.get("seeds", [])],
            rounds=rounds,
            champion_id=str(champion) if champion else None,
        )


@dataclass(slots=True)
class ContinentalTournament:
    tournament_id: str
    name: str
    confederation: str
    format: str
    participants: list[str]
    stage: str
    groups: list[Group] = field(default_factory=list)
    league_phase: LeaguePhase | None = None
    knockout: Knockout | None = None
    knockout_size: int = 16
    champion_id: str | None = None
    matchday_index: int = 0
    round_index: int = 0

    @property
    def finished(self) -> bool:
        return self.stage == STAGE_DONE

    @property
    def active(self) -> bool:
        return self.stage in {STAGE_GROUPS, STAGE_LEAGUE, STAGE_KO}

    def to_dict(self) -> dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "name": self.name,
            "confederation": self.confederation,
            "format": self.format,
            "participants": list(self.participants),
            "stage": self.stage,
            "groups": [g.to_dict() for g in self.groups],
            "league_phase": self.league_phase.to_dict() if self.league_phase is not None else None,
            "knockout": self.knockout.to_dict() if self.knockout is not None else None,
            "knockout_size": self.knockout_size,
            "champion_id": self.champion_id,
            "matchday_index": self.matchday_index,
            "round_index": self.round_index,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ContinentalTournament:
        league_phase = raw.get("league_phase")
        knockout = raw.get("knockout")
        champion = raw.get("champion_id")
        return cls(
            tournament_id=str(raw["tournament_id"]),
            name=str(raw.get("name", raw["tournament_id"])),
            confederation=str(raw.get("confederation", "")),
            format=str(raw.get("format", "KO")),
            participants=[str(x) for x in raw.get("participants", [])],
            stage=str(raw.get("stage", STAGE_PLACEHOLDER)),
            groups=[Group.from_dict(g) for g in raw.get("groups", []) if isinstance(g, dict)],
            league_phase=LeaguePhase.from_dict(league_phase) if isinstance(league_phase, dict) else None,
            knockout=Knockout.from_dict(knockout) if isinstance(knockout, dict) else None,
            knockout_size=int(raw.get("knockout_size", 16)),
            champion_id=str(champion) if champion else None,
            matchday_index=int(raw.get("matchday_index", 0)),
            round_index=int(raw.get("round_index", 0)),
        )


@dataclass(slots=True)
class ContinentalLive:
    season_id: str
    next_at_round_index: int
    tournaments: dict[str, ContinentalTournament] = field(default_factory=dict)
    matchdays_played: int = 0
    last_played_at_round_index: int | None = None
    last_summary: dict[str, Any] | None = None

    @property
    def finished(self) -> bool:
        return not any(t.active for t in self.tournaments.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "season_id": self.season_id,
            "next_at_round_index": self.next_at_round_index,
            "tournaments": {tid: t.to_dict() for tid, t in self.tournaments.items()},
            "matchdays_played": self.matchdays_played,
            "last_played_at_round_index": self.last_played_at_round_index,
            "last_summary": self.last_summary,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ContinentalLive:
        tournaments = raw.get("tournaments", {})
        last_played = raw.get("last_played_at_round_index")
        last_summary = raw.get("last_summary")
        return cls(
            season_id=str(raw["season_id"]),
            next_at_round_index=int(raw.get("next_at_round_index", 1)),
            tournaments=(
                {str(k): ContinentalTournament.from_dict(v) for k, v in tournaments.items() if isinstance(v, dict)}
                if isinstance(tournaments, dict)
                else {}
            ),
            matchdays_played=int(raw.get("matchdays_played", 0)),
            last_played_at_round_index=int(last_played) if last_played is not None else None,
            last_summary=last_summary if isinstance(last_summary, dict) else None,
        )


@dataclass(slots=True)
class CareerProfile:
    club_id: str
    score: int = 0
    trophies: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"club_id": self.club_id, "score": self.score, "trophies": list(self.trophies)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CareerProfile:
        trophies = raw.get("trophies", [])
        return cls(
            club_id=str(raw["club_id"]),
            score=int(raw.get("score", 0)),
            trophies=[t for t in trophies if isinstance(t, dict)] if isinstance(trophies, list) else [],
        )
