"""Reference data: clubs, players, competitions, qualification zones and rules.

Documents are plain JSON files in a data directory. Each document is loaded on
its own; a missing or malformed file falls back to the matching part of the
generated default world so a broken data pack never blocks a career.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .config import (
    DEFAULT_CONTINENTAL_PRIZES,
    DEFAULT_CURRENCY,
    DEFAULT_PROMOTION_SLOTS,
    DEFAULT_STARTING_CASH,
    DEFAULT_WEEKLY_COSTS,
)
from .models import Club, League, Player
from .names import NameGenerator

_log = logging.getLogger("football_sim.catalog")

DOCUMENT_FILES = {
    "clubs": "clubs.json",
    "players": "players.json",
    "competitions": "competitions.json",
    "qualifications": "qualifications.json",
    "rules": "rules.json",
}

LEAGUE_BASE_RATINGS: tuple[tuple[str, float], ...] = (
    ("BRA_SERIE_A", 70.0),
    ("BRA_SERIE_B", 66.0),
    ("ENG_", 75.0),
    ("ESP_", 74.0),
    ("ITA_", 73.0),
    ("GER_", 73.0),
    ("FRA_", 72.0),
)
FALLBACK_BASE_RATING = 65.0


@dataclass(frozen=True, slots=True)
class PromotionLink:
    upper: str
    lower: str
    slots: int = DEFAULT_PROMOTION_SLOTS


@dataclass(slots=True)
class EconomyRules:
    starting_cash: int = DEFAULT_STARTING_CASH
    currency: str = DEFAULT_CURRENCY
    weekly_costs: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_WEEKLY_COSTS))
    continental_prizes: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CONTINENTAL_PRIZES))


@dataclass(slots=True)
class ReferenceData:
    clubs: dict[str, Club]
    leagues: dict[str, League]
    players: dict[str, list[Player]] = field(default_factory=dict)
    zones: dict[str, dict[str, tuple[int, int]]] = field(default_factory=dict)
    association_slots: dict[str, dict[str, int]] = field(default_factory=dict)
    promotion_links: list[PromotionLink] = field(default_factory=list)
    economy: EconomyRules = field(default_factory=EconomyRules)

    def clubs_in_league(self, league_id: str) -> list[Club]:
        return [club for club in self.clubs.values() if club.league_id == league_id]

    def squad_for(self, club_id: str) -> list[Player]:
        return list(self.players.get(club_id, []))

    def first_divisions(self, confederation: str | None = None) -> list[League]:
        return [
            league
            for league in self.leagues.values()
            if league.level == 1 and (confederation is None or league.confederation == confederation)
        ]

    def with_clubs(self, clubs: dict[str, Club]) -> ReferenceData:
        return replace(self, clubs=clubs)


def default_rating_for_league(league_id: str) -> float:
    for prefix, rating in LEAGUE_BASE_RATINGS:
        if league_id.startswith(prefix):
            return rating
    return FALLBACK_BASE_RATING


def _read_document(path: Path) -> Any | None:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        _log.warning(f"Ignoring unreadable reference document {path.name}: {exc}")
        return None


def parse_clubs(raw: Any) -> dict[str, Club]:
    rows = raw.get("clubs") if isinstance(raw, dict) else None
    if not isinstance(rows, list):
        raise ValueError("clubs document must contain a 'clubs' list")
    clubs: dict[str, Club] = {}
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        club_id = str(row["id"])
        league_id = str(row.get("leagueId", ""))
        overall = row.get("overall")
        clubs[club_id] = Club(
            club_id=club_id,
            name=str(row.get("name", club_id)),
            short_name=str(row.get("shortName", "")),
            country=str(row.get("country", "??")),
            league_id=league_id,
            overall=float(overall) if overall is not None else default_rating_for_league(league_id),
            budget=int(row.get("budget", 0) or 0),
        )
    if not clubs:
        raise ValueError("clubs document has no usable clubs")
    return clubs


def parse_players(raw: Any) -> dict[str, list[Player]]:
    rows = raw.get("players") if isinstance(raw, dict) else None
    if not isinstance(rows, list):
        raise ValueError("players document must contain a 'players' list")
    squads: dict[str, list[Player]] = {}
    for row in rows:
        if not isinstance(row, dict) or not row.get("id") or not row.get("clubId"):
            continue
        player = Player(
            player_id=str(row["id"]),
            name=str(row.get("name", row["id"])),
            club_id=str(row["clubId"]),
            position=str(row.get("pos", row.get("position", "MID"))),
            age=int(row.get("age", 24)),
            overall=int(row.get("overall", 60)),
            value=int(row.get("value", 0) or 0),
            wage=int(row.get("wage", 0) or 0),
        )
        squads.setdefault(player.club_id, []).append(player)
    return squads


def parse_competitions(raw: Any) -> dict[str, League]:
    rows = raw.get("leagues") if isinstance(raw, dict) else None
    if not isinstance(rows, list):
        raise ValueError("competitions document must contain a 'leagues' list")
    leagues: dict[str, League] = {}
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        league_id = str(row["id"])
        leagues[league_id] = League(
            league_id=league_id,
            name=str(row.get("name", league_id)),
            country=str(row.get("country", "??")),
            confederation=str(row.get("confederation", "")).lower(),
            level=int(row.get("level", 1)),
        )
    if not leagues:
        raise ValueError("competitions document has no leagues")
    return leagues


def _parse_range(raw: Any) -> tuple[int, int] | None:
    if not isinstance(raw, dict):
        return None
    try:
        low = int(raw["from"])
        high = int(raw["to"])
    except (KeyError, TypeError, ValueError):
        return None
    if low < 1 or high < low:
        return None
    return (low, high)


def _parse_zone_block(block: Any) -> dict[str, tuple[int, int]]:
    zones: dict[str, tuple[int, int]] = {}
    if not isinstance(block, dict):
        return zones
    nested = block.get("continental")
    sources = [block, nested] if isinstance(nested, dict) else [block]
    for source in sources:
        for key, value in source.items():
            parsed = _parse_range(value)
            if parsed is not None:
                zones[str(key)] = parsed
    return zones


def parse_qualifications(
    raw: Any,
) -> tuple[dict[str, dict[str, tuple[int, int]]], dict[str, dict[str, int]], list[PromotionLink]]:
    """Split the qualifications document into zones, association slots and promotion links.

    The Brazilian block (``brazil.serieA`` / ``brazil.serieB``) is read as two
    ordinary league entries; every other league lives under ``world``.
    """
    if not isinstance(raw, dict):
        raise ValueError("qualifications document must be an object")

    zones: dict[str, dict[str, tuple[int, int]]] = {}
    brazil = raw.get("brazil")
    if isinstance(brazil, dict):
        for key, league_id in (("serieA", "BRA_SERIE_A"), ("serieB", "BRA_SERIE_B")):
            parsed = _parse_zone_block(brazil.get(key))
            if parsed:
                zones[league_id] = parsed
    world = raw.get("world")
    if isinstance(world, dict):
        for league_id, block in world.items():
            parsed = _parse_zone_block(block)
            if parsed:
                zones[str(league_id)] = parsed

    slots: dict[str, dict[str, int]] = {}
    raw_slots = raw.get("associationSlots")
    if isinstance(raw_slots, dict):
        for tournament_id, per_country in raw_slots.items():
            if not isinstance(per_country, dict):
                continue
            slots[str(tournament_id)] = {
                str(country): max(0, int(count)) for country, count in per_country.items() if isinstance(count, (int, float))
            }

    links: list[PromotionLink] = []
    raw_links = raw.get("promotion")
    if isinstance(raw_links, list):
        for row in raw_links:
            if not isinstance(row, dict) or not row.get("upper") or not row.get("lower"):
                continue
            links.append(
                PromotionLink(
                    upper=str(row["upper"]),
                    lower=str(row["lower"]),
                    slots=max(0, int(row.get("slots", DEFAULT_PROMOTION_SLOTS))),
                )
            )
    elif "BRA_SERIE_A" in zones and "BRA_SERIE_B" in zones:
        links.append(PromotionLink(upper="BRA_SERIE_A", lower="BRA_SERIE_B"))
    return zones, slots, links


def parse_rules(raw: Any) -> EconomyRules:
    if not isinstance(raw, dict):
        raise ValueError("rules document must be an object")
    economy = raw.get("economy", {})
    if not isinstance(economy, dict):
        economy = {}
    rules = EconomyRules()
    if isinstance(economy.get("startingCash"), (int, float)):
        rules.starting_cash = int(economy["startingCash"])
    if isinstance(economy.get("currency"), str):
        rules.currency = economy["currency"]
    weekly = economy.get("weeklyCosts")
    if isinstance(weekly, dict):
        rules.weekly_costs = {str(k): int(v) for k, v in weekly.items() if isinstance(v, (int, float))}
    prizes = economy.get("continentalPrizes")
    if isinstance(prizes, dict):
        rules.continental_prizes.update({str(k): int(v) for k, v in prizes.items() if isinstance(v, (int, float))})
    return rules


def load_reference_data(data_dir: Path | None, fallback: ReferenceData) -> ReferenceData:
    """Load every document found in ``data_dir``, keeping ``fallback`` parts for the rest."""
    if data_dir is None or not data_dir.is_dir():
        return fallback

    data = replace(fallback)
    parsers = (
        ("clubs", parse_clubs, "clubs"),
        ("players", parse_players, "players"),
        ("competitions", parse_competitions, "leagues"),
        ("rules", parse_rules, "economy"),
    )
    for doc_key, parser, attr in parsers:
        raw = _read_document(data_dir / DOCUMENT_FILES[doc_key])
        if raw is None:
            continue
        try:
            setattr(data, attr, parser(raw))
        except (TypeError, ValueError) as exc:
            _log.warning(f"Falling back to default {doc_key}: {exc}")

    raw_qual = _read_document(data_dir / DOCUMENT_FILES["qualifications"])
    if raw_qual is not None:
        try:
            data.zones, data.association_slots, data.promotion_links = parse_qualifications(raw_qual)
        except (TypeError, ValueError) as exc:
            _log.warning(f"Falling back to default qualifications: {exc}")

    unknown = sorted({c.league_id for c in data.clubs.values() if c.league_id not in data.leagues})
    if unknown:
        _log.warning(f"Clubs reference leagues missing from competitions: {', '.join(unknown)}")
    return data


def merge_club_registry(reference: dict[str, Club], saved: list[dict[str, Any]] | None) -> dict[str, Club]:
    """Canonical club registry: saved world entries override the reference pack.

    Saved entries carry league moves from promotion and relegation, so they win
    on ``league_id``; clubs only present in the save are kept as well.
    """
    merged = {club_id: replace(club) for club_id, club in reference.items()}
    for row in saved or []:
        if not isinstance(row, dict) or "club_id" not in row:
            continue
        club = Club.from_dict(row)
        base = merged.get(club.club_id)
        if base is None:
            merged[club.club_id] = club
            continue
        base.league_id = club.league_id or base.league_id
        base.overall = club.overall
        base.budget = club.budget
    return merged


SQUAD_SHAPE: tuple[tuple[str, int], ...] = (("GK", 3), ("DEF", 8), ("MID", 9), ("ATT", 5))


def generate_squad(club: Club, names: NameGenerator, rng: random.Random) -> list[Player]:
    """Synthetic 25-man squad around the club's rating."""
    base = int(round(club.overall))
    squad: list[Player] = []
    positions = [pos for pos, count in SQUAD_SHAPE for _ in range(count)]
    for idx, pos in enumerate(positions, start=1):
        age = rng.randint(17, 35)
        overall = min(90, max(50, base + rng.randint(-3, 7)))
        value = round((overall - 40) ** 2 * 12_000 * (1.2 if age <= 23 else 1.0))
        squad.append(
            Player(
                player_id=f"{club.club_id}_p{idx}",
                name=names.next_name(),
                club_id=club.club_id,
                position=pos,
                age=age,
                overall=overall,
                value=value,
                wage=overall * 2_500,
                form=float(rng.randint(-2, 2)),
            )
        )
    return squad
