from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Any

from .config import (
    MAX_INCOMING_OFFERS_PER_ROUND,
    OFFER_LIFETIME_ROUNDS,
    TRANSFER_HISTORY_LIMIT,
    TRANSFER_WINDOWS,
)
from .models import (
    ACCEPTED,
    CANCELLED,
    COUNTERED,
    EXPIRED,
    INCOMING,
    OUTGOING,
    PENDING,
    REJECTED,
    Player,
    TransferOffer,
    TransferState,
)

_log = logging.getLogger("football_sim.transfers")

ACCEPT_RATIO = 0.90
COUNTER_RATIO = 0.70
COUNTER_FEE_RATIO = 0.95
COUNTER_WAGE_RATIO = 1.05


@dataclass(slots=True)
class CashLedger:
    cash: int

    def can_afford(self, amount: int) -> bool:
        return self.cash >= amount

    def debit(self, amount: int) -> None:
        self.cash -= amount

    def credit(self, amount: int) -> None:
        self.cash += amount


def window_for_round(round_index: int) -> str | None:
    for name, first, last in TRANSFER_WINDOWS:
        if first <= round_index <= last:
            return name
    return None


def is_window_open(round_index: int, season_completed: bool = False) -> bool:
    if season_completed:
        return False
    return window_for_round(round_index) is not None


def evaluate_buy_offer(value: int, fee: int, wage: int) -> dict[str, Any]:
    """Selling club's answer to a bid of ``fee`` for a player worth ``value``."""
    if value <= 0:
        return {"status": REJECTED, "reason": "player_not_for_sale"}
    if fee >= value * ACCEPT_RATIO:
        return {"status": ACCEPTED, "reason": "fee_accepted"}
    if fee >= value * COUNTER_RATIO:
        return {
            "status": COUNTERED,
            "reason": "counter_proposal",
            "counter_fee": round(value * COUNTER_FEE_RATIO),
            "counter_wage": round(wage * COUNTER_WAGE_RATIO),
        }
    return {"status": REJECTED, "reason": "fee_too_low"}


def _next_offer_id(state: TransferState, direction: str) -> str:
    offer_id = f"{direction}-{state.next_offer_no:05d}"
    state.next_offer_no += 1
    return offer_id


def _trim(rows: list[dict[str, Any]]) -> None:
    if len(rows) > TRANSFER_HISTORY_LIMIT:
        del rows[: len(rows) - TRANSFER_HISTORY_LIMIT]


def _close(state: TransferState, offer: TransferOffer, status: str, round_index: int, reason: str = "") -> None:
    offer.status = status
    offer.closed_round = round_index
    if reason:
        offer.reason = reason
    state.history.append(offer.to_dict())
    _trim(state.history)


def _record(state: TransferState, kind: str, offer: TransferOffer, round_index: int) -> None:
    state.log.append(
        {
            "type": kind,
            "offer_id": offer.offer_id,
            "player_id": offer.player_id,
            "player_name": offer.player_name,
            "from_club": offer.from_club,
            "to_club": offer.to_club,
            "fee": offer.agreed_fee,
            "wage": offer.agreed_wage,
            "round": round_index,
        }
    )
    _trim(state.log)


def find_offer(state: TransferState, offer_id: str) -> TransferOffer | None:
    for offer in (*state.outbox, *state.inbox):
        if offer.offer_id == offer_id:
            return offer
    return None


def make_offer(
    state: TransferState,
    player: Player,
    buyer_club_id: str,
    fee: int,
    round_index: int,
    wage: int | None = None,
    season_completed: bool = False,
) -> dict[str, Any]:
    if not is_window_open(round_index, season_completed):
        return {"ok": False, "reason": "window_closed"}
    if fee <= 0:
        return {"ok": False, "reason": "invalid_fee"}
    if player.club_id == buyer_club_id:
        return {"ok": False, "reason": "own_player"}
    if any(o.player_id == player.player_id and o.is_live for o in state.outbox):
        return {"ok": False, "reason": "duplicate_offer"}

    offer = TransferOffer(
        offer_id=_next_offer_id(state, OUTGOING),
        direction=OUTGOING,
        player_id=player.player_id,
        player_name=player.name,
        from_club=player.club_id,
        to_club=buyer_club_id,
        fee=int(fee),
        wage=int(wage if wage is not None else player.wage),
        created_round=round_index,
        expires_round=round_index + OFFER_LIFETIME_ROUNDS,
    )
    state.outbox.append(offer)
    _log.info(f"Offer {offer.offer_id}: {fee} for {player.name} ({player.club_id})")
    return {"ok": True, "offer": offer}


def expire_offers(state: TransferState, round_index: int) -> list[TransferOffer]:
    expired: list[TransferOffer] = []
    for offer in (*state.outbox, *state.inbox):
        if offer.is_live and round_index > offer.expires_round:
            _close(state, offer, EXPIRED, round_index, "offer_expired")
            expired.append(offer)
    return expired


def resolve_outgoing(
    state: TransferState,
    round_index: int,
    players_by_id: dict[str, Player],
) -> list[TransferOffer]:
    resolved: list[TransferOffer] = []
    for offer in state.outbox:
        if offer.status != PENDING or offer.created_round >= round_index:
            continue
        player = players_by_id.get(offer.player_id)
        if player is None or player.club_id != offer.from_club:
            _close(state, offer, REJECTED, round_index, "player_unavailable")
            resolved.append(offer)
            continue
        verdict = evaluate_buy_offer(player.value, offer.fee, offer.wage)
        if verdict["status"] == COUNTERED:
            offer.status = COUNTERED
            offer.counter_fee = verdict["counter_fee"]
            offer.counter_wage = verdict["counter_wage"]
            offer.reason = verdict["reason"]
        else:
            _close(state, offer, verdict["status"], round_index, verdict["reason"])
        resolved.append(offer)
    return resolved


def _incoming_count(rng: random.Random) -> int:
    roll = rng.random()
    if roll < 0.35:
        return 0
    if roll < 0.80:
        return 1
    return MAX_INCOMING_OFFERS_PER_ROUND


def generate_incoming(
    state: TransferState,
    squad: list[Player],
    round_index: int,
    buyer_ids: list[str],
    rng: random.Random,
) -> list[TransferOffer]:
    count = _incoming_count(rng)
    if count == 0 or not buyer_ids:
        return []
    busy = {o.player_id for o in state.inbox if o.is_live}
    eligible = [p for p in squad if p.value > 0 and p.player_id not in busy]
    created: list[TransferOffer] = []
    for _ in range(count):
        if not eligible:
            break
        player = eligible.pop(rng.randrange(len(eligible)))
        offer = TransferOffer(
            offer_id=_next_offer_id(state, INCOMING),
            direction=INCOMING,
            player_id=player.player_id,
            player_name=player.name,
            from_club=player.club_id,
            to_club=rng.choice(buyer_ids),
            fee=round(player.value * (0.80 + rng.random() * 0.50)),
            wage=round(player.wage * (0.90 + rng.random() * 0.35)),
            created_round=round_index,
            expires_round=round_index + OFFER_LIFETIME_ROUNDS,
        )
        state.inbox.append(offer)
        created.append(offer)
    return created


def process_round(
    state: TransferState,
    round_index: int,
    *,
    squad: list[Player],
    players_by_id: dict[str, Player],
    buyer_ids: list[str],
    rng: random.Random,
    season_completed: bool = False,
) -> dict[str, Any]:
    """Run the per-round pipeline once: expiry, resolution, new incoming offers."""
    if state.last_processed_round == round_index:
        return {"processed": False, "reason": "already_processed"}

    expired = expire_offers(state, round_index)
    resolved = resolve_outgoing(state, round_index, players_by_id)
    incoming: list[TransferOffer] = []
    if is_window_open(round_index, season_completed):
        incoming = generate_incoming(state, squad, round_index, buyer_ids, rng)
    state.last_processed_round = round_index
    return {
        "processed": True,
        "expired": [o.offer_id for o in expired],
        "resolved": [{"offer_id": o.offer_id, "status": o.status} for o in resolved],
        "incoming": [o.offer_id for o in incoming],
    }


def accept_counter(
    state: TransferState,
    offer_id: str,
    round_index: int,
    season_completed: bool = False,
) -> dict[str, Any]:
    offer = find_offer(state, offer_id)
    if offer is None or offer.direction != OUTGOING:
        return {"ok": False, "reason": "offer_not_found"}
    if not is_window_open(round_index, season_completed):
        return {"ok": False, "reason": "window_closed"}
    if offer.status != COUNTERED:
        return {"ok": False, "reason": "no_counter_to_accept"}
    _close(state, offer, ACCEPTED, round_index, "counter_accepted")
    return {"ok": True, "offer": offer}


def cancel_offer(state: TransferState, offer_id: str, round_index: int) -> dict[str, Any]:
    offer = find_offer(state, offer_id)
    if offer is None or offer.direction != OUTGOING:
        return {"ok": False, "reason": "offer_not_found"}
    if not offer.is_live:
        return {"ok": False, "reason": "offer_closed"}
    _close(state, offer, CANCELLED, round_index, "cancelled_by_user")
    return {"ok": True, "offer": offer}


def reject_incoming(state: TransferState, offer_id: str, round_index: int) -> dict[str, Any]:
    offer = find_offer(state, offer_id)
    if offer is None or offer.direction != INCOMING:
        return {"ok": False, "reason": "offer_not_found"}
    if not offer.is_live:
        return {"ok": False, "reason": "offer_closed"}
    _close(state, offer, REJECTED, round_index, "rejected_by_user")
    return {"ok": True, "offer": offer}


def finalize_buy(
    state: TransferState,
    offer_id: str,
    ledger: CashLedger,
    squad: list[Player],
    player: Player | None,
    round_index: int,
    season_completed: bool = False,
) -> dict[str, Any]:
    """Complete an accepted outgoing offer: pay, then move the player into ``squad``."""
    offer = find_offer(state, offer_id)
    if offer is None or offer.direction != OUTGOING:
        return {"ok": False, "reason": "offer_not_found"}
    if offer_id in state.finalized_offer_ids:
        return {"ok": False, "reason": "already_finalized"}
    if not is_window_open(round_index, season_completed):
        return {"ok": False, "reason": "window_closed"}
    if offer.status != ACCEPTED:
        return {"ok": False, "reason": "offer_not_accepted"}
    if player is None:
        return {"ok": False, "reason": "player_unavailable"}
    fee = offer.agreed_fee
    if not ledger.can_afford(fee):
        return {"ok": False, "reason": "insufficient_funds", "cash": ledger.cash, "fee": fee}

    ledger.debit(fee)
    signed = replace(player, club_id=offer.to_club, wage=offer.agreed_wage, form=0.0)
    squad.append(signed)
    state.finalized_offer_ids.append(offer_id)
    _record(state, "BUY", offer, round_index)
    _log.info(f"Signed {signed.name} from {offer.from_club} for {fee}")
    return {"ok": True, "player": signed, "cash": ledger.cash}


def finalize_sell(
    state: TransferState,
    offer_id: str,
    ledger: CashLedger,
    squad: list[Player],
    round_index: int,
    season_completed: bool = False,
) -> dict[str, Any]:
    offer = find_offer(state, offer_id)
    if offer is None or offer.direction != INCOMING:
        return {"ok": False, "reason": "offer_not_found"}
    if offer_id in state.finalized_offer_ids:
        return {"ok": False, "reason": "already_finalized"}
    if not is_window_open(round_index, season_completed):
        return {"ok": False, "reason": "window_closed"}
    if offer.status not in (PENDING, COUNTERED):
        return {"ok": False, "reason": "offer_closed"}
    idx = next((i for i, p in enumerate(squad) if p.player_id == offer.player_id), None)
    if idx is None:
        return {"ok": False, "reason": "player_unavailable"}

    sold = squad.pop(idx)
    ledger.credit(offer.agreed_fee)
    _close(state, offer, ACCEPTED, round_index, "sold")
    state.finalized_offer_ids.append(offer_id)
    _record(state, "SELL", offer, round_index)
    _log.info(f"Sold {sold.name} to {offer.to_club} for {offer.agreed_fee}")
    return {"ok": True, "player": sold, "cash": ledger.cash}
