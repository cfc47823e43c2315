import random

import pytest

from football_sim.config import FORM_MAX, FORM_MIN
from football_sim.league import CareerSimulator
from football_sim import transfers as tx
from football_sim.models import ACCEPTED, PENDING


@pytest.fixture
def sim(tmp_path, small_reference) -> CareerSimulator:
    return CareerSimulator(reference=small_reference, seed=13, save_path=str(tmp_path / "career_save.json"))


def test_training_once_per_round(sim) -> None:
    before = [p.form for p in sim.save.squad]
    result = sim.apply_training("intense")
    assert result["ok"] is True
    after = [p.form for p in sim.save.squad]
    assert all(FORM_MIN <= f <= FORM_MAX for f in after)
    assert all(new >= old or new == FORM_MAX for old, new in zip(before, after))
    assert sim.apply_training("rest") == {"ok": False, "reason": "already_trained"}

    sim.advance_round()
    assert sim.apply_training("rest")["ok"] is True
    with pytest.raises(ValueError):
        sim.apply_training("double_sessions")


def test_tactics(sim) -> None:
    assert sim.set_tactics("attacking") == {"ok": True, "style": "attacking"}
    assert sim.save.tactic == "attacking"
    with pytest.raises(ValueError):
        sim.set_tactics("catenaccio")


def test_staff_and_sponsor_change_the_books(sim) -> None:
    base_costs = sim.weekly_costs()
    assert sim.hire_staff("fitness_coach")["ok"] is True
    assert sim.hire_staff("fitness_coach")["reason"] == "already_hired"
    assert sim.hire_staff("wizard")["reason"] == "unknown_staff"
    assert sim.weekly_costs() == base_costs + 60_000

    cash = sim.save.cash
    assert sim.sign_sponsor("mining")["cash"] == cash + 10_000_000
    assert sim.sign_sponsor("mining")["reason"] == "already_signed"
    assert sim.sponsor_weekly() == 500_000

    cash = sim.save.cash
    sim.advance_round()
    # Continental prizes are only paid from round index 1 onwards.
    assert sim.save.cash == cash + 500_000 - sim.weekly_costs()

    assert sim.fire_staff("fitness_coach")["ok"] is True
    assert sim.fire_staff("fitness_coach")["reason"] == "not_hired"


def test_buying_a_player_through_the_pipeline(sim) -> None:
    market = sim.market_players()
    assert market
    assert not any(p.club_id == sim.user_club_id for p in market.values())
    target = max(market.values(), key=lambda p: p.value)
    sim.save.cash = 1_000_000_000

    made = sim.make_offer(target.player_id, target.value)
    assert made["ok"] is True
    offer_id = made["offer"].offer_id
    assert sim.make_offer("nobody", 1)["reason"] == "player_not_found"

    sim.advance_round()
    offer = next(o for o in sim.save.transfers.outbox if o.offer_id == offer_id)
    assert offer.status == ACCEPTED

    cash = sim.save.cash
    result = sim.finalize_buy(offer_id)
    assert result["ok"] is True
    assert sim.save.cash == cash - target.value
    assert target.player_id in {p.player_id for p in sim.save.squad}
    assert target.player_id not in sim.market_players()
    assert sim.finalize_buy(offer_id)["reason"] == "already_finalized"


def test_insufficient_funds_is_reported(sim) -> None:
    target = max(sim.market_players().values(), key=lambda p: p.value)
    offer_id = sim.make_offer(target.player_id, target.value)["offer"].offer_id
    sim.advance_round()
    sim.save.cash = 0
    result = sim.finalize_buy(offer_id)
    assert result["ok"] is False
    assert result["reason"] == "insufficient_funds"
    assert target.player_id not in {p.player_id for p in sim.save.squad}


def test_selling_a_player(sim) -> None:
    for _ in range(5):
        if any(o.is_live for o in sim.save.transfers.inbox):
            break
        sim.advance_round()
    live = [o for o in sim.save.transfers.inbox if o.is_live]
    if not live:
        pytest.skip("no incoming offer generated for this seed")
    offer = live[0]
    cash = sim.save.cash
    squad_size = len(sim.save.squad)
    assert sim.finalize_sell(offer.offer_id)["ok"] is True
    assert sim.save.cash == cash + offer.agreed_fee
    assert len(sim.save.squad) == squad_size - 1
    assert offer.player_id not in sim.market_players()


def test_no_sale_once_the_window_shuts(sim) -> None:
    for _ in range(6):
        sim.advance_round()
    assert sim.transfer_window() is None
    seed = 0
    offers: list = []
    while not offers:
        offers = tx.generate_incoming(sim.save.transfers, sim.save.squad, 6, ["BRA_SERIE_A_02"], random.Random(seed))
        seed += 1
    offer = offers[0]
    cash = sim.save.cash
    squad_size = len(sim.save.squad)

    assert sim.finalize_sell(offer.offer_id) == {"ok": False, "reason": "window_closed"}
    assert offer.status == PENDING
    assert sim.save.cash == cash
    assert len(sim.save.squad) == squad_size
