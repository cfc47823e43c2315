from __future__ import annotations

import logging
import os
from pathlib import Path
from threading import Lock
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .app import build_default_reference
from .catalog import ReferenceData, load_reference_data
from .config import SPONSOR_CATALOG, STAFF_CATALOG
from .league import CareerSimulator
from .transfers import window_for_round

_log = logging.getLogger("football_sim.api")

NOT_FOUND_REASONS = {"offer_not_found", "player_not_found", "unknown_staff", "unknown_sponsor"}


class TacticsSelection(BaseModel):
    style: str = "balanced"


class TrainingSelection(BaseModel):
    plan: str = "balanced"


class AdvanceSelection(BaseModel):
    rounds: int = 1


class OfferSelection(BaseModel):
    player_id: str
    fee: int
    wage: int | None = None


class NewCareerSelection(BaseModel):
    club_id: str | None = None


def _raise_for(result: dict[str, Any]) -> dict[str, Any]:
    """Turn a failed action result into an HTTP error; pass successes through."""
    if result.get("ok", True) and result.get("advanced", True) and result.get("started", True):
        return result
    reason = str(result.get("reason", "request_failed"))
    status = 404 if reason in NOT_FOUND_REASONS else 400
    raise HTTPException(status_code=status, detail=reason)


def _offer_payload(result: dict[str, Any]) -> dict[str, Any]:
    payload = dict(result)
    offer = payload.get("offer")
    if offer is not None:
        payload["offer"] = offer.to_dict()
    player = payload.get("player")
    if player is not None:
        payload["player"] = player.to_dict()
    return payload


class SimService:
    def __init__(
        self,
        data_root: Path | None = None,
        data_dir: Path | None = None,
        seed: int | None = None,
    ) -> None:
        env_root = os.environ.get("FOOTBALL_SIM_DATA")
        self.data_root = data_root or (Path(env_root) if env_root else Path(__file__).resolve().parents[2])
        self.data_dir = data_dir or (self.data_root / "data")
        self.seed = seed
        self.save_path = self.data_root / "career_save.json"
        self._reference: ReferenceData | None = None
        self._simulator: CareerSimulator | None = None
        self._lock = Lock()

    @property
    def reference(self) -> ReferenceData:
        if self._reference is None:
            self._reference = load_reference_data(self.data_dir, build_default_reference())
        return self._reference

    @property
    def simulator(self) -> CareerSimulator:
        if self._simulator is None:
            self._simulator = CareerSimulator(
                reference=self.reference,
                seed=self.seed,
                save_path=str(self.save_path),
            )
        return self._simulator

    def meta(self) -> dict[str, Any]:
        sim = self.simulator
        season = sim.season
        league = sim.reference.leagues.get(season.league_id)
        return {
            "club": sim.user_club.to_dict(),
            "league": {"league_id": season.league_id, "name": league.name if league else season.league_id},
            "season_id": season.season_id,
            "cash": sim.save.cash,
            "currency": sim.save.currency,
            "tactic": sim.save.tactic,
            "tactics": list(sim.TACTICS),
            "training_plans": list(sim.TRAINING_PLANS),
            "sponsors": [dict(s) for s in SPONSOR_CATALOG],
            "sponsor_id": sim.save.sponsor_id,
            "staff": [dict(s) for s in STAFF_CATALOG],
            "hired_staff": list(sim.save.hired_staff),
            "career": sim.save.career.to_dict(),
            "objective_position": sim.objective_position(),
            "transfer_window": sim.transfer_window(),
            "leagues": [
                {"league_id": lg.league_id, "name": lg.name, "country": lg.country, "level": lg.level}
                for lg in sim.reference.leagues.values()
            ],
            "last_load_error": sim.last_load_error,
        }

    def season_view(self) -> dict[str, Any]:
        season = self.simulator.season
        return {
            "season_id": season.season_id,
            "league_id": season.league_id,
            "status": season.status,
            "current_round": season.current_round,
            "total_rounds": season.total_rounds,
            "completed": season.completed,
            "last_results": season.last_results,
            "summary": season.summary,
            "next_fixture": self._next_fixture(),
        }

    def _next_fixture(self) -> dict[str, Any] | None:
        sim = self.simulator
        season = sim.season
        if season.completed or season.current_round >= season.total_rounds:
            return None
        for match in season.rounds[season.current_round]:
            if sim.user_club_id in (match.home_id, match.away_id):
                return {
                    "home_id": match.home_id,
                    "away_id": match.away_id,
                    "home_name": sim.club_name(match.home_id),
                    "away_name": sim.club_name(match.away_id),
                }
        return None

    def advance(self, rounds: int) -> dict[str, Any]:
        sim = self.simulator
        for _ in range(max(1, min(rounds, sim.season.total_rounds))):
            if sim.season.completed:
                break
            sim.advance_round()
        return self.season_view()

    def transfers_view(self) -> dict[str, Any]:
        sim = self.simulator
        state = sim.save.transfers
        season = sim.season
        return {
            "window": None if season.completed else window_for_round(season.current_round),
            "cash": sim.save.cash,
            "outbox": [o.to_dict() for o in state.outbox],
            "inbox": [o.to_dict() for o in state.inbox],
            "log": list(state.log[-50:]),
            "history": list(state.history[-50:]),
            "squad": [p.to_dict() for p in sim.save.squad],
        }

    def market(self, club_id: str | None, position: str | None, limit: int) -> list[dict[str, Any]]:
        players = sorted(self.simulator.market_players().values(), key=lambda p: (-p.overall, p.name))
        rows = []
        for player in players:
            if club_id and player.club_id != club_id:
                continue
            if position and player.position != position.upper():
                continue
            rows.append(player.to_dict())
            if len(rows) >= max(1, limit):
                break
        return rows

    def reset(self, club_id: str | None = None) -> dict[str, Any]:
        for path in (self.save_path, self.save_path.with_suffix(self.save_path.suffix + ".bak")):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                _log.warning(f"Could not remove {path.name}: {exc}")
        self._simulator = CareerSimulator(
            reference=self.reference,
            user_club_id=club_id,
            seed=self.seed,
            save_path=str(self.save_path),
        )
        return self.meta()


service = SimService()
app = FastAPI(title="Football Career Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/meta")
def meta() -> dict[str, Any]:
    with service._lock:
        return service.meta()


@app.get("/api/season")
def season() -> dict[str, Any]:
    with service._lock:
        return service.season_view()


@app.get("/api/standings")
def standings(league_id: str | None = None) -> list[dict[str, Any]]:
    with service._lock:
        if league_id and league_id not in service.simulator.reference.leagues:
            raise HTTPException(status_code=404, detail="League not found")
        return service.simulator.standings_view(league_id)


@app.post("/api/advance")
def advance(payload: AdvanceSelection | None = None) -> dict[str, Any]:
    with service._lock:
        return service.advance(payload.rounds if payload is not None else 1)


@app.get("/api/continental")
def continental() -> dict[str, Any]:
    with service._lock:
        return service.simulator.continental_view()


@app.post("/api/continental/advance")
def continental_advance() -> dict[str, Any]:
    with service._lock:
        return _raise_for(service.simulator.advance_continental_matchday(manual=True))


@app.post("/api/season/finalize")
def season_finalize() -> dict[str, Any]:
    with service._lock:
        finalized = service.simulator.finalize_season_if_needed()
        return {"finalized": finalized, "season": service.season_view()}


@app.post("/api/season/new")
def season_new() -> dict[str, Any]:
    with service._lock:
        return _raise_for(service.simulator.start_new_season())


@app.post("/api/tactics")
def set_tactics(payload: TacticsSelection) -> dict[str, Any]:
    with service._lock:
        try:
            return service.simulator.set_tactics(payload.style.lower().strip())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/training")
def training(payload: TrainingSelection) -> dict[str, Any]:
    with service._lock:
        try:
            return _raise_for(service.simulator.apply_training(payload.plan.lower().strip()))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/staff/{staff_id}/hire")
def hire_staff(staff_id: str) -> dict[str, Any]:
    with service._lock:
        return _raise_for(service.simulator.hire_staff(staff_id))


@app.post("/api/staff/{staff_id}/fire")
def fire_staff(staff_id: str) -> dict[str, Any]:
    with service._lock:
        return _raise_for(service.simulator.fire_staff(staff_id))


@app.post("/api/sponsor/{sponsor_id}")
def sign_sponsor(sponsor_id: str) -> dict[str, Any]:
    with service._lock:
        return _raise_for(service.simulator.sign_sponsor(sponsor_id))


@app.get("/api/market")
def market(club_id: str | None = None, position: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
    with service._lock:
        return service.market(club_id, position, limit)


@app.get("/api/transfers")
def transfers() -> dict[str, Any]:
    with service._lock:
        return service.transfers_view()


@app.post("/api/transfers/offer")
def make_offer(payload: OfferSelection) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.make_offer(payload.player_id, payload.fee, payload.wage)))


@app.post("/api/transfers/incoming/{offer_id}/accept")
def accept_incoming(offer_id: str) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.finalize_sell(offer_id)))


@app.post("/api/transfers/incoming/{offer_id}/reject")
def reject_incoming(offer_id: str) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.reject_incoming(offer_id)))


@app.post("/api/transfers/{offer_id}/accept-counter")
def accept_counter(offer_id: str) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.accept_counter(offer_id)))


@app.post("/api/transfers/{offer_id}/cancel")
def cancel_offer(offer_id: str) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.cancel_offer(offer_id)))


@app.post("/api/transfers/{offer_id}/finalize")
def finalize_offer(offer_id: str) -> dict[str, Any]:
    with service._lock:
        return _offer_payload(_raise_for(service.simulator.finalize_buy(offer_id)))


@app.post("/api/reset")
def reset(payload: NewCareerSelection | None = None) -> dict[str, Any]:
    with service._lock:
        return service.reset(payload.club_id if payload is not None else None)
