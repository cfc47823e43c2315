import random

import pytest

from football_sim.models import ACCEPTED, CANCELLED, COUNTERED, EXPIRED, PENDING, REJECTED, Player, TransferState
from football_sim import transfers as tx


def _player(pid: str = "p1", club: str = "other", value: int = 10_000_000) -> Player:
    return Player(player_id=pid, name=f"Player {pid}", club_id=club, value=value, wage=50_000)


@pytest.mark.parametrize(
    ("fee", "status"),
    [(9_500_000, ACCEPTED), (7_500_000, COUNTERED), (6_000_000, REJECTED)],
)
def test_evaluate_buy_offer_thresholds(fee, status) -> None:
    verdict = tx.evaluate_buy_offer(10_000_000, fee, 50_000)
    assert verdict["status"] == status
    if status == COUNTERED:
        assert verdict["counter_fee"] == 9_500_000
        assert verdict["counter_wage"] == 52_500


def test_windows() -> None:
    assert tx.window_for_round(0) == "Pre-season window"
    assert tx.window_for_round(20) == "Mid-season window"
    assert tx.window_for_round(10) is None
    assert not tx.is_window_open(3, season_completed=True)


def test_make_offer_guards() -> None:
    state = TransferState()
    player = _player()
    assert tx.make_offer(state, player, "mine", 1_000, round_index=10)["reason"] == "window_closed"
    assert tx.make_offer(state, player, "mine", 0, round_index=1)["reason"] == "invalid_fee"
    assert tx.make_offer(state, _player(club="mine"), "mine", 5, round_index=1)["reason"] == "own_player"
    first = tx.make_offer(state, player, "mine", 1_000, round_index=1)
    assert first["ok"] and first["offer"].offer_id == "OUT-00001"
    assert tx.make_offer(state, player, "mine", 2_000, round_index=1)["reason"] == "duplicate_offer"


def test_offers_resolve_only_in_a_later_round() -> None:
    state = TransferState()
    player = _player()
    offer = tx.make_offer(state, player, "mine", 9_500_000, round_index=1)["offer"]
    players = {player.player_id: player}
    kwargs = dict(squad=[], players_by_id=players, buyer_ids=[], rng=random.Random(0))

    tx.process_round(state, 1, **kwargs)
    assert offer.status == PENDING
    tx.process_round(state, 2, **kwargs)
    assert offer.status == ACCEPTED
    assert state.history[-1]["offer_id"] == offer.offer_id
    assert tx.process_round(state, 2, **kwargs) == {"processed": False, "reason": "already_processed"}


def test_counter_then_accept_and_finalize() -> None:
    state = TransferState()
    player = _player()
    offer = tx.make_offer(state, player, "mine", 7_500_000, round_index=0)["offer"]
    tx.resolve_outgoing(state, 1, {player.player_id: player})
    assert offer.status == COUNTERED
    assert tx.accept_counter(state, offer.offer_id, 1)["ok"]

    squad: list[Player] = []
    poor = tx.CashLedger(1_000_000)
    result = tx.finalize_buy(state, offer.offer_id, poor, squad, player, 1)
    assert result == {"ok": False, "reason": "insufficient_funds", "cash": 1_000_000, "fee": 9_500_000}
    assert squad == []

    ledger = tx.CashLedger(20_000_000)
    result = tx.finalize_buy(state, offer.offer_id, ledger, squad, player, 1)
    assert result["ok"]
    assert ledger.cash == 10_500_000
    assert [p.club_id for p in squad] == ["mine"]
    assert squad[0].wage == 52_500
    assert tx.finalize_buy(state, offer.offer_id, ledger, squad, player, 1)["reason"] == "already_finalized"
    assert state.log[-1]["type"] == "BUY"


def test_offers_expire() -> None:
    state = TransferState()
    offer = tx.make_offer(state, _player(), "mine", 100, round_index=0)["offer"]
    tx.expire_offers(state, offer.expires_round)
    assert offer.status == PENDING
    tx.expire_offers(state, offer.expires_round + 1)
    assert offer.status == EXPIRED


def test_cancel_only_live_offers() -> None:
    state = TransferState()
    offer = tx.make_offer(state, _player(), "mine", 100, round_index=0)["offer"]
    assert tx.cancel_offer(state, offer.offer_id, 0)["ok"]
    assert offer.status == CANCELLED
    assert tx.cancel_offer(state, offer.offer_id, 0)["reason"] == "offer_closed"
    assert tx.cancel_offer(state, "OUT-99999", 0)["reason"] == "offer_not_found"


def test_incoming_offers_and_sale() -> None:
    state = TransferState()
    squad = [_player(f"s{i}", club="mine", value=5_000_000) for i in range(4)]
    rng = random.Random(0)
    created = []
    for round_index in range(6):
        created.extend(tx.generate_incoming(state, squad, round_index, ["buyer"], rng))
    assert created
    live_targets = [o.player_id for o in state.inbox if o.is_live]
    assert len(live_targets) == len(set(live_targets))
    for offer in created:
        assert 4_000_000 <= offer.fee <= 6_500_000

    offer = created[0]
    ledger = tx.CashLedger(0)
    assert tx.finalize_sell(state, offer.offer_id, ledger, squad, 6)["reason"] == "window_closed"
    assert tx.finalize_sell(state, offer.offer_id, ledger, squad, 5, season_completed=True)["reason"] == "window_closed"
    assert ledger.cash == 0
    result = tx.finalize_sell(state, offer.offer_id, ledger, squad, 5)
    assert result["ok"]
    assert ledger.cash == offer.fee
    assert offer.player_id not in {p.player_id for p in squad}
    assert offer.status == ACCEPTED
    assert state.log[-1]["type"] == "SELL"


def test_reject_incoming() -> None:
    state = TransferState()
    squad = [_player("s1", club="mine")]
    offers = []
    rng = random.Random(1)
    while not offers:
        offers = tx.generate_incoming(state, squad, 0, ["buyer"], rng)
    assert tx.reject_incoming(state, offers[0].offer_id, 0)["ok"]
    assert offers[0].status == REJECTED
    assert tx.finalize_sell(state, offers[0].offer_id, tx.CashLedger(0), squad, 0)["reason"] == "offer_closed"


def test_accepting_is_refused_outside_the_window() -> None:
    state = TransferState()
    player = _player()
    offer = tx.make_offer(state, player, "mine", 7_500_000, round_index=5)["offer"]
    tx.resolve_outgoing(state, 6, {player.player_id: player})
    assert offer.status == COUNTERED

    assert tx.accept_counter(state, offer.offer_id, 10) == {"ok": False, "reason": "window_closed"}
    assert offer.status == COUNTERED
    assert tx.accept_counter(state, offer.offer_id, 18)["ok"]

    squad: list[Player] = []
    ledger = tx.CashLedger(20_000_000)
    assert tx.finalize_buy(state, offer.offer_id, ledger, squad, player, 24)["reason"] == "window_closed"
    assert tx.finalize_buy(state, offer.offer_id, ledger, squad, player, 20, season_completed=True)["reason"] == (
        "window_closed"
    )
    assert squad == [] and ledger.cash == 20_000_000
    assert tx.finalize_buy(state, offer.offer_id, ledger, squad, player, 23)["ok"]
