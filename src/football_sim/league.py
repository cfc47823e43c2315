from __future__ import annotations

import logging
import random
import re
from pathlib import Path
from typing import Any

from .catalog import ReferenceData, generate_squad, merge_club_registry
from .config import (
    CONTINENTAL_COMPETITIONS,
    CONTINENTAL_FIRST_ROUND_INDEX,
    CONTINENTAL_ROUND_INTERVAL,
    DEFAULT_CLUB_RATING,
    DEFAULT_SEASON_ID,
    FORM_MAX,
    FORM_MIN,
    SCORE_CONTINENTAL_TITLE,
    SCORE_LEAGUE_TITLE,
    SCORE_OBJECTIVE_MET,
    SCORE_OBJECTIVE_MISSED,
    SPONSOR_CATALOG,
    STAFF_CATALOG,
    TACTIC_EFFECTS,
    TRAINING_PLANS,
)
from .continental import advance_matchday, build_tournament, run_to_completion
from .engine import MatchContext, build_match_stats, build_modifiers, simulate_match
from .models import CareerProfile, Club, ContinentalLive, Match, ParallelLeague, Player, Season, StandingsRow
from .names import NameGenerator
from .persistence import SAVE_VERSION, CareerSave, load_save, write_json_with_backup
from .qualification import allocate_competitions, zone_label
from .schedule import generate_double_round_robin, validate_rounds
from .standings import apply_result, build_empty_table, position_of, sort_standings
from . import transfers as tx

_log = logging.getLogger("football_sim.league")

_SEASON_ID_RE = re.compile(r"^(\d{4})[-_](\d{4})$")


def parse_season_id(season_id: str, fallback_start: int = 2025) -> tuple[int, int]:
    match = _SEASON_ID_RE.match(str(season_id or ""))
    if match:
        return int(match.group(1)), int(match.group(2))
    return fallback_start, fallback_start + 1


def next_season_id(season_id: str, fallback_start: int = 2025) -> tuple[str, int, int]:
    match = _SEASON_ID_RE.match(str(season_id or ""))
    if match:
        start, end = int(match.group(1)) + 1, int(match.group(2)) + 1
    else:
        start = fallback_start + 1
        end = start + 1
    return f"{start}_{end}", start, end


class CareerSimulator:
    """One career: the user's club, its season and the world simulated around it.

    The simulator owns the save document, the reference data and the random
    generator. Every mutating action writes the save to ``save_path``.
    """

    SAVE_VERSION = SAVE_VERSION
    TACTICS = tuple(TACTIC_EFFECTS)
    TRAINING_PLANS = tuple(TRAINING_PLANS)

    def __init__(
        self,
        reference: ReferenceData,
        user_club_id: str | None = None,
        seed: int | None = None,
        save_path: str | None = None,
    ) -> None:
        self._rng = random.Random(seed)
        self.save_path = Path(save_path or "career_save.json")
        self.last_load_error: str = ""
        loaded, error = load_save(self.save_path)
        self.last_load_error = error
        if loaded is not None and loaded.career.club_id not in reference.clubs and not any(
            row.get("club_id") == loaded.career.club_id for row in loaded.world_clubs
        ):
            self.last_load_error = f"Career club {loaded.career.club_id} is unknown; starting a new career."
            loaded = None

        # Registry merged once: league moves from the save override the reference pack.
        self.clubs: dict[str, Club] = merge_club_registry(reference.clubs, loaded.world_clubs if loaded else None)
        self.reference = reference.with_clubs(self.clubs)
        self.save: CareerSave = loaded if loaded is not None else self._new_career(user_club_id)
        if self.last_load_error:
            _log.warning(self.last_load_error)
        self.ensure_season()
        self._save_state()

    # ------------------------------------------------------------------
    # Setup

    def _default_club_id(self) -> str:
        preferred = sorted(c.club_id for c in self.reference.clubs_in_league("BRA_SERIE_A"))
        if preferred:
            return preferred[0]
        if not self.clubs:
            raise ValueError("Reference data has no clubs.")
        return sorted(self.clubs)[0]

    def _new_career(self, user_club_id: str | None) -> CareerSave:
        club_id = user_club_id if user_club_id in self.clubs else self._default_club_id()
        club = self.clubs[club_id]
        squad = self.reference.squad_for(club_id)
        if not squad:
            squad = generate_squad(club, NameGenerator(seed=f"squad:{club_id}"), random.Random(f"{club_id}:squad"))
        economy = self.reference.economy
        _log.info(f"New career with {club.name} ({club.league_id})")
        return CareerSave(
            career=CareerProfile(club_id=club_id),
            squad=[Player.from_dict(p.to_dict()) for p in squad],
            cash=economy.starting_cash,
            currency=economy.currency,
        )

    # ------------------------------------------------------------------
    # Accessors

    @property
    def user_club_id(self) -> str:
        return self.save.career.club_id

    @property
    def user_club(self) -> Club:
        return self.clubs[self.user_club_id]

    @property
    def season(self) -> Season:
        return self.ensure_season()

    def club_name(self, club_id: str) -> str:
        club = self.clubs.get(club_id)
        return club.name if club is not None else club_id

    def _ratings(self) -> dict[str, float]:
        return {club_id: club.overall for club_id, club in self.clubs.items()}

    def _match_context(self) -> MatchContext:
        return MatchContext(
            ratings=self._ratings(),
            rng=self._rng,
            user_club_id=self.user_club_id,
            squad_form=[p.form for p in self.save.squad],
            modifiers=build_modifiers(self.save.tactic, self.save.hired_staff),
        )

    def _strength_of(self, club_id: str) -> float:
        club = self.clubs.get(club_id)
        return float(club.overall) if club is not None else DEFAULT_CLUB_RATING

    def get_standings(self, league_id: str | None = None) -> list[StandingsRow]:
        season = self.ensure_season()
        if league_id is None or league_id == season.league_id:
            return sort_standings(season.table.values())
        parallel = self.save.parallel_leagues.get(league_id)
        if parallel is None:
            return []
        return sort_standings(parallel.table.values())

    def standings_view(self, league_id: str | None = None) -> list[dict[str, Any]]:
        lid = league_id or self.ensure_season().league_id
        rows = []
        for pos, row in enumerate(self.get_standings(lid), start=1):
            entry = row.to_dict()
            entry["position"] = pos
            entry["zone"] = zone_label(self.reference, lid, pos)
            entry["is_user"] = row.club_id == self.user_club_id
            rows.append(entry)
        return rows

    def objective_position(self, league_id: str | None = None) -> int:
        """Board target: the club's rating rank within its league."""
        lid = league_id or self.user_club.league_id
        ranked = sorted(
            self.reference.clubs_in_league(lid),
            key=lambda c: (-c.overall, c.name.casefold()),
        )
        for idx, club in enumerate(ranked, start=1):
            if club.club_id == self.user_club_id:
                return idx
        return max(1, len(ranked))

    # ------------------------------------------------------------------
    # Season lifecycle

    def _build_season(self, season_id: str, year_start: int, year_end: int, league_id: str) -> Season:
        clubs = sorted(self.reference.clubs_in_league(league_id), key=lambda c: c.club_id)
        rounds = generate_double_round_robin([c.club_id for c in clubs])
        validate_rounds(rounds)
        return Season(
            season_id=season_id,
            year_start=year_start,
            year_end=year_end,
            league_id=league_id,
            rounds=rounds,
            table=build_empty_table(clubs),
        )

    def _parallel_league(self, league_id: str) -> ParallelLeague | None:
        clubs = sorted(self.reference.clubs_in_league(league_id), key=lambda c: c.club_id)
        if len(clubs) < 2:
            return None
        return ParallelLeague(
            league_id=league_id,
            rounds=generate_double_round_robin([c.club_id for c in clubs]),
            table=build_empty_table(clubs),
        )

    def _init_parallel_leagues(self, user_league_id: str) -> None:
        self.save.parallel_leagues = {}
        for league_id in sorted(self.reference.leagues):
            if league_id == user_league_id:
                continue
            league = self._parallel_league(league_id)
            if league is not None:
                self.save.parallel_leagues[league_id] = league

    def _repair_season_state(self, season: Season) -> None:
        """Rebuild world state an older save never stored, caught up to the user's round."""
        if season.completed:
            return
        ctx: MatchContext | None = None
        for league_id in sorted(self.reference.leagues):
            if league_id == season.league_id or league_id in self.save.parallel_leagues:
                continue
            league = self._parallel_league(league_id)
            if league is None:
                continue
            if ctx is None:
                ctx = self._match_context()
            while league.current_round < min(season.current_round, len(league.rounds)):
                self._play_parallel_round(league, ctx)
            self.save.parallel_leagues[league_id] = league
            _log.info(f"Rebuilt {league_id} for season {season.season_id} at round {league.current_round}")

        if self.save.continental_live is None:
            previous_id = f"{season.year_start - 1}_{season.year_end - 1}"
            if previous_id not in self.save.league_tables:
                previous_id = None
            self.save.continental_live = self._build_continental_live(season.season_id, previous_id)
            _log.info(f"Rebuilt continental competitions for season {season.season_id}")

    def _build_continental_live(self, season_id: str, previous_season_id: str | None) -> ContinentalLive:
        previous_tables = self.save.league_tables.get(previous_season_id, {}) if previous_season_id else {}
        participants = allocate_competitions(self.reference, previous_tables, self._strength_of)
        live = ContinentalLive(season_id=season_id, next_at_round_index=CONTINENTAL_FIRST_ROUND_INDEX)
        for spec in CONTINENTAL_COMPETITIONS:
            live.tournaments[spec.tournament_id] = build_tournament(
                spec,
                participants.get(spec.tournament_id, []),
                self._strength_of,
                self._rng,
                self.club_name,
            )
        return live

    def ensure_season(self) -> Season:
        season = self.save.season
        if season is not None and season.season_id and season.rounds:
            self._repair_season_state(season)
            return season
        year_start, year_end = parse_season_id(DEFAULT_SEASON_ID)
        league_id = self.user_club.league_id
        season = self._build_season(DEFAULT_SEASON_ID, year_start, year_end, league_id)
        self.save.season = season
        self._init_parallel_leagues(league_id)
        self.save.continental_live = self._build_continental_live(season.season_id, None)
        self._run_transfer_pipeline()
        _log.info(f"Season {season.season_id} created for {league_id} ({season.total_rounds} rounds)")
        return season

    def _record_match(self, match: Match, table: dict[str, StandingsRow], ctx: MatchContext) -> dict[str, Any]:
        outcome = simulate_match(match.home_id, match.away_id, ctx)
        match.home_goals = outcome.home_goals
        match.away_goals = outcome.away_goals
        match.home_xg = outcome.home_xg
        match.away_xg = outcome.away_xg
        match.played = True
        apply_result(table, match.home_id, match.away_id, outcome.home_goals, outcome.away_goals)
        result: dict[str, Any] = {
            "home_id": match.home_id,
            "away_id": match.away_id,
            "home_name": self.club_name(match.home_id),
            "away_name": self.club_name(match.away_id),
            "home_goals": outcome.home_goals,
            "away_goals": outcome.away_goals,
        }
        if self.user_club_id in (match.home_id, match.away_id):
            result["stats"] = build_match_stats(match.home_id, match.away_id, outcome, ctx).to_dict()
        return result

    def _play_parallel_round(self, league: ParallelLeague, ctx: MatchContext) -> None:
        if league.completed or league.current_round >= len(league.rounds):
            league.completed = True
            return
        for match in league.rounds[league.current_round]:
            if not match.played:
                self._record_match(match, league.table, ctx)
        league.current_round += 1
        league.completed = league.current_round >= len(league.rounds)

    def advance_round(self) -> None:
        """Play the current round everywhere, then run the per-round systems."""
        season = self.ensure_season()
        if season.completed or season.current_round >= season.total_rounds:
            self.finalize_season_if_needed()
            return

        ctx = self._match_context()
        round_idx = season.current_round
        results = [self._record_match(m, season.table, ctx) for m in season.rounds[round_idx] if not m.played]
        season.last_results = results
        for league in self.save.parallel_leagues.values():
            self._play_parallel_round(league, ctx)

        live = self.save.continental_live
        if live is not None and not live.finished and round_idx >= live.next_at_round_index:
            self._advance_continental(round_idx)

        self._apply_weekly_economy()
        season.current_round += 1
        self._run_transfer_pipeline()
        self.finalize_season_if_needed()
        self._save_state()

    def finalize_season_if_needed(self) -> bool:
        season = self.ensure_season()
        if season.completed:
            return False
        if season.current_round < season.total_rounds:
            return False

        rows = sort_standings(season.table.values())
        champion_id = rows[0].club_id if rows else None
        user_pos = position_of(rows, self.user_club_id)
        user_row = season.table.get(self.user_club_id)
        objective = self.objective_position(season.league_id)
        objective_met = user_pos is not None and user_pos <= objective
        league = self.reference.leagues.get(season.league_id)
        league_name = league.name if league is not None else season.league_id

        season.completed = True
        score_delta = SCORE_OBJECTIVE_MET if objective_met else SCORE_OBJECTIVE_MISSED
        career = self.save.career
        if champion_id == self.user_club_id:
            score_delta += SCORE_LEAGUE_TITLE
            career.trophies.append({"season_id": season.season_id, "competition": league_name, "kind": "league"})

        store = self.save.league_tables.setdefault(season.season_id, {})
        store[season.league_id] = [row.to_dict() for row in rows]
        self._finalize_parallel_leagues(store)
        movements = self._apply_promotion_relegation(store)
        self.save.movements[season.season_id] = movements

        continental_champions: dict[str, str | None] = {}
        live = self.save.continental_live
        if live is not None:
            for tournament in live.tournaments.values():
                run_to_completion(tournament, self._continental_play, self._rng)
                continental_champions[tournament.tournament_id] = tournament.champion_id
                if tournament.champion_id and tournament.champion_id == self.user_club_id:
                    score_delta += SCORE_CONTINENTAL_TITLE
                    career.trophies.append(
                        {"season_id": season.season_id, "competition": tournament.name, "kind": "continental"}
                    )
            self.save.continentals[season.season_id] = {
                tid: t.to_dict() for tid, t in live.tournaments.items()
            }
        career.score += score_delta

        season.summary = {
            "champion_id": champion_id,
            "champion_name": self.club_name(champion_id) if champion_id else None,
            "user_position": user_pos,
            "user_points": user_row.points if user_row is not None else None,
            "total_rounds": season.total_rounds,
            "objective_position": objective,
            "objective_met": objective_met,
            "score_delta": score_delta,
            "continental_champions": continental_champions,
            "movements": movements,
        }
        self.save.history.append(
            {
                "season_id": season.season_id,
                "league_id": season.league_id,
                "champion_id": champion_id,
                "user_club_id": self.user_club_id,
                "user_position": user_pos,
                "score": career.score,
            }
        )
        _log.info(f"Season {season.season_id} complete: champion {champion_id}, user finished {user_pos}")
        self._save_state()
        return True

    def _finalize_parallel_leagues(self, store: dict[str, list[dict[str, Any]]]) -> None:
        ctx = self._match_context()
        for league in self.save.parallel_leagues.values():
            while not league.completed:
                self._play_parallel_round(league, ctx)
            store[league.league_id] = [row.to_dict() for row in sort_standings(league.table.values())]

    def _apply_promotion_relegation(self, store: dict[str, list[dict[str, Any]]]) -> list[dict[str, Any]]:
        movements: list[dict[str, Any]] = []
        for link in self.reference.promotion_links:
            upper_rows = store.get(link.upper) or []
            lower_rows = store.get(link.lower) or []
            n = link.slots
            if n <= 0 or len(upper_rows) <= n or len(lower_rows) <= n:
                _log.warning(f"Skipping promotion between {link.upper} and {link.lower}: tables too small")
                continue
            relegated = [str(r["club_id"]) for r in upper_rows[-n:]]
            promoted = [str(r["club_id"]) for r in lower_rows[:n]]
            valid = all(self.clubs.get(c) is not None and self.clubs[c].league_id == link.upper for c in relegated) and all(
                self.clubs.get(c) is not None and self.clubs[c].league_id == link.lower for c in promoted
            )
            if not valid or len(set(relegated)) != n or len(set(promoted)) != n:
                _log.warning(f"Skipping promotion between {link.upper} and {link.lower}: registry mismatch")
                continue
            for club_id in relegated:
                self.clubs[club_id].league_id = link.lower
            for club_id in promoted:
                self.clubs[club_id].league_id = link.upper
            movements.append({"upper": link.upper, "lower": link.lower, "promoted": promoted, "relegated": relegated})
            _log.info(f"{link.lower} -> {link.upper}: promoted {promoted}, relegated {relegated}")
        return movements

    def start_new_season(self) -> dict[str, Any]:
        season = self.ensure_season()
        if not season.completed:
            return {"started": False, "reason": "season_not_complete"}
        new_id, year_start, year_end = next_season_id(season.season_id, season.year_start)
        league_id = self.user_club.league_id
        self.save.season = self._build_season(new_id, year_start, year_end, league_id)
        self._init_parallel_leagues(league_id)
        self.save.continental_live = self._build_continental_live(new_id, season.season_id)
        state = self.save.transfers
        state.outbox = []
        state.inbox = []
        state.last_processed_round = -1
        self._run_transfer_pipeline()
        self._save_state()
        _log.info(f"Season {new_id} started in {league_id}")
        return {"started": True, "season_id": new_id, "league_id": league_id}

    # ------------------------------------------------------------------
    # Continental

    def _continental_play(self, home_id: str, away_id: str) -> tuple[int, int]:
        outcome = simulate_match(home_id, away_id, self._match_context())
        user = self.user_club_id
        if user in (home_id, away_id):
            prizes = self.reference.economy.continental_prizes
            own, other = (
                (outcome.home_goals, outcome.away_goals) if home_id == user else (outcome.away_goals, outcome.home_goals)
            )
            if own > other:
                self.save.cash += int(prizes.get("win", 0))
            elif own == other:
                self.save.cash += int(prizes.get("draw", 0))
        return outcome.home_goals, outcome.away_goals

    def _advance_continental(self, round_idx: int, manual: bool = False) -> dict[str, Any]:
        live = self.save.continental_live
        if live is None:
            return {"advanced": False, "reason": "no_continental_season"}
        if live.finished:
            return {"advanced": False, "reason": "continental_finished"}
        new_live, summary = advance_matchday(live, self._continental_play, self._rng)
        new_live.last_played_at_round_index = round_idx
        if not manual:
            new_live.next_at_round_index = round_idx + CONTINENTAL_ROUND_INTERVAL
        self.save.continental_live = new_live
        return {"advanced": True, "manual": manual, **summary}

    def advance_continental_matchday(self, manual: bool = True) -> dict[str, Any]:
        season = self.ensure_season()
        if season.completed:
            return {"advanced": False, "reason": "season_complete"}
        result = self._advance_continental(season.current_round, manual=manual)
        if result["advanced"]:
            self._save_state()
        return result

    def continental_view(self) -> dict[str, Any]:
        live = self.save.continental_live
        return {
            "live": live.to_dict() if live is not None else None,
            "archive": {season_id: sorted(per.keys()) for season_id, per in self.save.continentals.items()},
        }

    # ------------------------------------------------------------------
    # Club management

    def set_tactics(self, style: str) -> dict[str, Any]:
        if style not in TACTIC_EFFECTS:
            raise ValueError(f"Unknown tactic style: {style}")
        self.save.tactic = style
        self._save_state()
        return {"ok": True, "style": style}

    def apply_training(self, plan: str) -> dict[str, Any]:
        if plan not in TRAINING_PLANS:
            raise ValueError(f"Unknown training plan: {plan}")
        season = self.ensure_season()
        if season.last_trained_round == season.current_round:
            return {"ok": False, "reason": "already_trained"}
        mods = build_modifiers(self.save.tactic, self.save.hired_staff)
        boost = (TRAINING_PLANS[plan] + mods.training_boost) * mods.form_multiplier
        for player in self.save.squad:
            delta = self._rng.random() * boost
            player.form = round(max(FORM_MIN, min(FORM_MAX, player.form + delta)), 1)
        season.last_trained_round = season.current_round
        self.save.training_plan = plan
        self._save_state()
        return {"ok": True, "plan": plan, "boost": round(boost, 3)}

    def _staff_salary_total(self) -> int:
        hired = set(self.save.hired_staff)
        return sum(int(s["salary"]) for s in STAFF_CATALOG if s["id"] in hired)

    def weekly_costs(self) -> int:
        return sum(self.reference.economy.weekly_costs.values()) + self._staff_salary_total()

    def sponsor_weekly(self) -> int:
        sponsor = next((s for s in SPONSOR_CATALOG if s["id"] == self.save.sponsor_id), None)
        return int(sponsor["weekly"]) if sponsor is not None else 0

    def _apply_weekly_economy(self) -> None:
        self.save.cash = max(0, self.save.cash + self.sponsor_weekly() - self.weekly_costs())

    def hire_staff(self, staff_id: str) -> dict[str, Any]:
        if not any(s["id"] == staff_id for s in STAFF_CATALOG):
            return {"ok": False, "reason": "unknown_staff"}
        if staff_id in self.save.hired_staff:
            return {"ok": False, "reason": "already_hired"}
        self.save.hired_staff.append(staff_id)
        self._save_state()
        return {"ok": True, "hired_staff": list(self.save.hired_staff)}

    def fire_staff(self, staff_id: str) -> dict[str, Any]:
        if staff_id not in self.save.hired_staff:
            return {"ok": False, "reason": "not_hired"}
        self.save.hired_staff.remove(staff_id)
        self._save_state()
        return {"ok": True, "hired_staff": list(self.save.hired_staff)}

    def sign_sponsor(self, sponsor_id: str) -> dict[str, Any]:
        sponsor = next((s for s in SPONSOR_CATALOG if s["id"] == sponsor_id), None)
        if sponsor is None:
            return {"ok": False, "reason": "unknown_sponsor"}
        if self.save.sponsor_id == sponsor_id:
            return {"ok": False, "reason": "already_signed"}
        self.save.sponsor_id = sponsor_id
        self.save.cash += int(sponsor["cash_upfront"])
        self._save_state()
        return {"ok": True, "sponsor_id": sponsor_id, "cash": self.save.cash}

    # ------------------------------------------------------------------
    # Transfers

    def market_players(self) -> dict[str, Player]:
        """Every player the user could bid for, keyed by id."""
        own = {p.player_id for p in self.save.squad}
        sold = {row["player_id"] for row in self.save.transfers.log if row.get("type") == "SELL"}
        market: dict[str, Player] = {}
        for club_id, squad in self.reference.players.items():
            if club_id == self.user_club_id:
                continue
            for player in squad:
                if player.player_id not in own and player.player_id not in sold:
                    market[player.player_id] = player
        return market

    def transfer_window(self) -> str | None:
        season = self.ensure_season()
        if season.completed:
            return None
        return tx.window_for_round(season.current_round)

    def _run_transfer_pipeline(self) -> dict[str, Any]:
        season = self.save.season
        if season is None:
            return {"processed": False, "reason": "no_season"}
        buyers = sorted(cid for cid in self.clubs if cid != self.user_club_id)
        return tx.process_round(
            self.save.transfers,
            season.current_round,
            squad=self.save.squad,
            players_by_id=self.market_players(),
            buyer_ids=buyers,
            rng=self._rng,
            season_completed=season.completed,
        )

    def make_offer(self, player_id: str, fee: int, wage: int | None = None) -> dict[str, Any]:
        season = self.ensure_season()
        player = self.market_players().get(player_id)
        if player is None:
            return {"ok": False, "reason": "player_not_found"}
        result = tx.make_offer(
            self.save.transfers,
            player,
            self.user_club_id,
            fee,
            season.current_round,
            wage=wage,
            season_completed=season.completed,
        )
        if result["ok"]:
            self._save_state()
        return result

    def accept_counter(self, offer_id: str) -> dict[str, Any]:
        season = self.ensure_season()
        result = tx.accept_counter(
            self.save.transfers, offer_id, season.current_round, season_completed=season.completed
        )
        if result["ok"]:
            self._save_state()
        return result

    def cancel_offer(self, offer_id: str) -> dict[str, Any]:
        result = tx.cancel_offer(self.save.transfers, offer_id, self.ensure_season().current_round)
        if result["ok"]:
            self._save_state()
        return result

    def reject_incoming(self, offer_id: str) -> dict[str, Any]:
        result = tx.reject_incoming(self.save.transfers, offer_id, self.ensure_season().current_round)
        if result["ok"]:
            self._save_state()
        return result

    def finalize_buy(self, offer_id: str) -> dict[str, Any]:
        season = self.ensure_season()
        offer = tx.find_offer(self.save.transfers, offer_id)
        player = self.market_players().get(offer.player_id) if offer is not None else None
        ledger = tx.CashLedger(self.save.cash)
        result = tx.finalize_buy(
            self.save.transfers,
            offer_id,
            ledger,
            self.save.squad,
            player,
            season.current_round,
            season_completed=season.completed,
        )
        if result["ok"]:
            self.save.cash = ledger.cash
            self._save_state()
        return result

    def finalize_sell(self, offer_id: str) -> dict[str, Any]:
        season = self.ensure_season()
        ledger = tx.CashLedger(self.save.cash)
        result = tx.finalize_sell(
            self.save.transfers,
            offer_id,
            ledger,
            self.save.squad,
            season.current_round,
            season_completed=season.completed,
        )
        if result["ok"]:
            self.save.cash = ledger.cash
            self._save_state()
        return result

    # ------------------------------------------------------------------
    # Persistence

    def _save_state(self) -> None:
        self.save.world_clubs = [club.to_dict() for club in self.clubs.values()]
        write_json_with_backup(self.save_path, self.save.to_dict())
