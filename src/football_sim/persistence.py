"""Versioned career save document.

Every save carries ``save_version``. Older documents go through
:func:`migrate_save`, which upgrades one version at a time until the document
matches :data:`SAVE_VERSION`. Documents newer than the running code are refused.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import DEFAULT_CURRENCY
from .models import (
    CareerProfile,
    ContinentalLive,
    ParallelLeague,
    Player,
    Season,
    TransferState,
)

_log = logging.getLogger("football_sim.persistence")

SAVE_VERSION = 3


class SaveVersionError(ValueError):
    pass


@dataclass(slots=True)
class CareerSave:
    career: CareerProfile
    season: Season | None = None
    squad: list[Player] = field(default_factory=list)
    cash: int = 0
    currency: str = DEFAULT_CURRENCY
    sponsor_id: str | None = None
    hired_staff: list[str] = field(default_factory=list)
    tactic: str = "balanced"
    training_plan: str = "balanced"
    world_clubs: list[dict[str, Any]] = field(default_factory=list)
    parallel_leagues: dict[str, ParallelLeague] = field(default_factory=dict)
    continental_live: ContinentalLive | None = None
    league_tables: dict[str, dict[str, list[dict[str, Any]]]] = field(default_factory=dict)
    continentals: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)
    movements: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    history: list[dict[str, Any]] = field(default_factory=list)
    transfers: TransferState = field(default_factory=TransferState)

    def to_dict(self) -> dict[str, Any]:
        return {
            "save_version": SAVE_VERSION,
            "career": self.career.to_dict(),
            "season": self.season.to_dict() if self.season is not None else None,
            "squad": [p.to_dict() for p in self.squad],
            "finance": {
                "cash": self.cash,
                "currency": self.currency,
                "sponsor_id": self.sponsor_id,
                "hired_staff": list(self.hired_staff),
            },
            "tactics": {"style": self.tactic},
            "training": {"plan": self.training_plan},
            "world_clubs": list(self.world_clubs),
            "parallel_leagues": {lid: pl.to_dict() for lid, pl in self.parallel_leagues.items()},
            "continental_live": self.continental_live.to_dict() if self.continental_live is not None else None,
            "league_tables": self.league_tables,
            "continentals": self.continentals,
            "movements": self.movements,
            "history": list(self.history),
            "transfers": self.transfers.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CareerSave:
        """Build from a document already at :data:`SAVE_VERSION`."""
        finance = raw.get("finance") if isinstance(raw.get("finance"), dict) else {}
        tactics = raw.get("tactics") if isinstance(raw.get("tactics"), dict) else {}
        training = raw.get("training") if isinstance(raw.get("training"), dict) else {}
        season = raw.get("season")
        live = raw.get("continental_live")
        parallel = raw.get("parallel_leagues", {})
        transfers = raw.get("transfers")

        def _dict_of(key: str) -> dict[str, Any]:
            value = raw.get(key, {})
            return value if isinstance(value, dict) else {}

        def _list_of(key: str) -> list[Any]:
            value = raw.get(key, [])
            return [row for row in value if isinstance(row, dict)] if isinstance(value, list) else []

        sponsor = finance.get("sponsor_id")
        return cls(
            career=CareerProfile.from_dict(raw["career"]),
            season=Season.from_dict(season) if isinstance(season, dict) else None,
            squad=[Player.from_dict(p) for p in _list_of("squad") if "player_id" in p],
            cash=int(finance.get("cash", 0) or 0),
            currency=str(finance.get("currency", DEFAULT_CURRENCY)),
            sponsor_id=str(sponsor) if sponsor else None,
            hired_staff=[str(x) for x in finance.get("hired_staff", []) if isinstance(x, str)],
            tactic=str(tactics.get("style", "balanced")),
            training_plan=str(training.get("plan", "balanced")),
            world_clubs=_list_of("world_clubs"),
            parallel_leagues=(
                {str(k): ParallelLeague.from_dict(v) for k, v in parallel.items() if isinstance(v, dict)}
                if isinstance(parallel, dict)
                else {}
            ),
            continental_live=ContinentalLive.from_dict(live) if isinstance(live, dict) else None,
            league_tables=_dict_of("league_tables"),
            continentals=_dict_of("continentals"),
            movements=_dict_of("movements"),
            history=_list_of("history"),
            transfers=TransferState.from_dict(transfers) if isinstance(transfers, dict) else TransferState(),
        )


def _detect_version(raw: dict[str, Any]) -> int:
    if "save_version" in raw:
        return int(raw.get("save_version") or 1)
    career = raw.get("career")
    if isinstance(career, dict) and "clubId" in career:
        return 1
    if "club_id" in raw:
        return 2
    return 1


def _legacy_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "club_id": str(row.get("id", "")),
        "name": str(row.get("name", row.get("id", ""))),
        "played": int(row.get("P", 0)),
        "won": int(row.get("W", 0)),
        "drawn": int(row.get("D", 0)),
        "lost": int(row.get("L", 0)),
        "goals_for": int(row.get("GF", 0)),
        "goals_against": int(row.get("GA", 0)),
    }


def _legacy_match(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "home_id": str(row.get("homeId", "")),
        "away_id": str(row.get("awayId", "")),
        "played": bool(row.get("played", False)),
        "home_goals": int(row.get("hg", 0) or 0),
        "away_goals": int(row.get("ag", 0) or 0),
    }


def _legacy_offer(row: dict[str, Any]) -> dict[str, Any]:
    counter = row.get("counter") if isinstance(row.get("counter"), dict) else {}
    src = row.get("from") if isinstance(row.get("from"), dict) else {}
    dst = row.get("to") if isinstance(row.get("to"), dict) else {}
    return {
        "offer_id": str(row.get("id", "")),
        "direction": "IN" if row.get("type") == "IN" else "OUT",
        "player_id": str(row.get("pid", "")),
        "player_name": str(row.get("playerName", "")),
        "from_club": str(src.get("clubId", "")),
        "to_club": str(dst.get("clubId", "")),
        "fee": int(row.get("fee", 0) or 0),
        "wage": int(row.get("wage", 0) or 0),
        "status": str(row.get("status", "PENDING")),
        "created_round": int(row.get("createdRound", 0) or 0),
        "expires_round": int(row.get("expiresRound", 0) or 0),
        "counter_fee": counter.get("fee"),
        "counter_wage": counter.get("wage"),
    }


def _migrate_v1(raw: dict[str, Any]) -> dict[str, Any]:
    """Legacy camelCase documents to the v2 snake_case layout."""
    career = raw.get("career") if isinstance(raw.get("career"), dict) else {}
    club_id = str(career.get("clubId", ""))
    doc: dict[str, Any] = {"save_version": 2, "club_id": club_id}

    season = raw.get("season")
    if isinstance(season, dict) and season.get("id") and isinstance(season.get("rounds"), list):
        table = season.get("table") if isinstance(season.get("table"), dict) else {}
        summary = season.get("summary") if isinstance(season.get("summary"), dict) else None
        doc["season"] = {
            "season_id": str(season["id"]),
            "year_start": int(season.get("yearStart", 2025)),
            "year_end": int(season.get("yearEnd", 2026)),
            "league_id": str(season.get("leagueId", "")),
            "current_round": int(season.get("currentRound", 0) or 0),
            "rounds": [
                [_legacy_match(m) for m in rnd if isinstance(m, dict)]
                for rnd in season["rounds"]
                if isinstance(rnd, list)
            ],
            "table": {str(k): _legacy_row(v) for k, v in table.items() if isinstance(v, dict)},
            "completed": bool(season.get("completed", False)),
            "summary": (
                {
                    "champion_id": summary.get("championId"),
                    "user_position": summary.get("userPos"),
                    "user_points": summary.get("userPts"),
                    "total_rounds": summary.get("totalRounds"),
                }
                if summary
                else None
            ),
        }

    squad = raw.get("squad") if isinstance(raw.get("squad"), dict) else {}
    doc["squad"] = [
        {
            "player_id": str(p["id"]),
            "name": str(p.get("name", p["id"])),
            "club_id": club_id,
            "position": str(p.get("pos", "MID")),
            "age": int(p.get("age", 24)),
            "overall": int(p.get("overall", 60)),
            "value": int(p.get("value", 0) or 0),
            "wage": int(p.get("wage", 0) or 0),
            "form": float(p.get("form", 0) or 0),
        }
        for p in squad.get("players", [])
        if isinstance(p, dict) and p.get("id")
    ]

    finance = raw.get("finance") if isinstance(raw.get("finance"), dict) else {}
    staff = raw.get("staff") if isinstance(raw.get("staff"), dict) else {}
    sponsor = raw.get("sponsor") if isinstance(raw.get("sponsor"), dict) else {}
    doc["finance"] = {
        "cash": int(finance.get("cash", 0) or 0),
        "currency": str(finance.get("currency", DEFAULT_CURRENCY)),
        "sponsor_id": sponsor.get("id"),
        "hired_staff": [str(s) for s in staff.get("hired", []) if isinstance(s, str)],
    }

    world = raw.get("world") if isinstance(raw.get("world"), dict) else {}
    doc["world_clubs"] = [
        {
            "club_id": str(c["id"]),
            "name": str(c.get("name", c["id"])),
            "country": str(c.get("country", "??")),
            "league_id": str(c.get("leagueId", "")),
            "overall": float(c.get("overall", 60) or 60),
            "budget": int(c.get("budget", 0) or 0),
        }
        for c in world.get("clubs", [])
        if isinstance(c, dict) and c.get("id")
    ]

    progress = raw.get("progress") if isinstance(raw.get("progress"), dict) else {}
    tables = progress.get("leagueTables") if isinstance(progress.get("leagueTables"), dict) else {}
    doc["league_tables"] = {
        str(season_id): {
            str(league_id): [_legacy_row(r) for r in rows if isinstance(r, dict)]
            for league_id, rows in per_league.items()
            if isinstance(rows, list)
        }
        for season_id, per_league in tables.items()
        if isinstance(per_league, dict)
    }
    doc["history"] = [
        {
            "season_id": s.get("id"),
            "league_id": s.get("leagueId"),
            "champion_id": s.get("championId"),
            "user_position": s.get("userPos"),
        }
        for s in progress.get("seasons", [])
        if isinstance(s, dict)
    ]

    transfers = raw.get("transfers") if isinstance(raw.get("transfers"), dict) else {}
    doc["transfers"] = {
        "outbox": [_legacy_offer(o) for o in transfers.get("outbox", []) if isinstance(o, dict) and o.get("id")],
        "inbox": [_legacy_offer(o) for o in transfers.get("inbox", []) if isinstance(o, dict) and o.get("id")],
        "log": [row for row in transfers.get("log", []) if isinstance(row, dict)],
        "last_processed_round": int(transfers.get("lastProcessedRound", -1)),
    }
    tactics = raw.get("tactics") if isinstance(raw.get("tactics"), dict) else {}
    if isinstance(tactics.get("style"), str):
        doc["tactics"] = {"style": tactics["style"]}
    return doc


def _migrate_v2(raw: dict[str, Any]) -> dict[str, Any]:
    """v2 kept the club id at the top level and had no career profile or offer history."""
    doc = dict(raw)
    club_id = str(doc.pop("club_id", ""))
    career = doc.get("career") if isinstance(doc.get("career"), dict) else {}
    doc["career"] = {
        "club_id": str(career.get("club_id", club_id)),
        "score": int(career.get("score", 0) or 0),
        "trophies": career.get("trophies", []) if isinstance(career.get("trophies"), list) else [],
    }
    transfers = dict(doc.get("transfers") or {})
    transfers.setdefault("history", [])
    transfers.setdefault("finalized_offer_ids", [])
    doc["transfers"] = transfers
    doc.setdefault("continental_live", None)
    doc.setdefault("continentals", {})
    doc.setdefault("movements", {})
    doc.setdefault("parallel_leagues", {})
    doc["save_version"] = 3
    return doc


_MIGRATIONS = {1: _migrate_v1, 2: _migrate_v2}


def migrate_save(raw: dict[str, Any]) -> dict[str, Any]:
    """Upgrade ``raw`` to :data:`SAVE_VERSION`. Raises :class:`SaveVersionError` for future versions."""
    version = _detect_version(raw)
    if version > SAVE_VERSION:
        raise SaveVersionError(f"Unsupported career save version {version}; app supports up to {SAVE_VERSION}.")
    doc = raw
    while version < SAVE_VERSION:
        doc = _MIGRATIONS[version](doc)
        _log.info(f"Migrated career save from version {version} to {version + 1}")
        version += 1
    career = doc.get("career")
    if not isinstance(career, dict) or not career.get("club_id"):
        raise ValueError("Career save has no club id.")
    return doc


def load_save(path: Path) -> tuple[CareerSave | None, str]:
    """Read and migrate ``path``. Returns ``(save, error)``; a missing file is not an error."""
    if not path.exists():
        return None, ""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        return None, f"Failed to load career save ({exc}); starting a new career."
    if not isinstance(raw, dict):
        return None, "Career save file has invalid format; starting a new career."
    try:
        return CareerSave.from_dict(migrate_save(raw)), ""
    except SaveVersionError as exc:
        return None, str(exc)
    except (KeyError, TypeError, ValueError) as exc:
        return None, f"Career save is invalid ({exc}); starting a new career."


def write_json_with_backup(path: Path, payload: Any, *, with_backup: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if with_backup and path.exists():
        backup = path.with_suffix(path.suffix + ".bak")
        try:
            shutil.copy2(path, backup)
        except OSError as exc:
            _log.warning(f"Could not back up {path.name}: {exc}")
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
