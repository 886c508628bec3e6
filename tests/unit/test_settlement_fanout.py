"""Who owes whom after resolution."""

import itertools

import pytest

from src.gb_bet.domain.models import BetParticipant
from src.gb_settlement.domain.fanout import designated_payee, plan_obligations
from tests.unit.fakes import T0, make_bet


def _resolved_bet(members: list[tuple[str, str]], winner: str, amount_cents: int = 5000):
    bet = make_bet(status="resolved", winner=winner, amount_cents=amount_cents)
    bet.participants = [
        BetParticipant(user_id=uid, display_name=uid, side=side) for uid, side in members
    ]
    return bet


def _ids():
    counter = itertools.count(1)
    return lambda: f"PAY-{next(counter)}"


def test_each_loser_owes_full_stake_to_first_winner() -> None:
    bet = _resolved_bet(
        [("w1", "Home"), ("l1", "Away"), ("w2", "Home"), ("l2", "Away"), ("l3", "Away")],
        winner="Home",
    )
    planned = plan_obligations(bet, T0, _ids())

    assert [(o.from_user_id, o.to_user_id, o.amount_cents) for o in planned] == [
        ("l1", "w1", 5000),
        ("l2", "w1", 5000),
        ("l3", "w1", 5000),
    ]
    assert all(o.status == "pending" for o in planned)
    assert all(o.bet_id == bet.id for o in planned)
    assert planned[0].description == f"Payment for bet: {bet.title}"
    assert [o.id for o in planned] == ["PAY-1", "PAY-2", "PAY-3"]


def test_everyone_on_winning_side_owes_nothing() -> None:
    bet = _resolved_bet([("a", "Home"), ("b", "Home")], winner="Home")
    assert plan_obligations(bet, T0, _ids()) == []


def test_nobody_on_winning_side_owes_nothing() -> None:
    bet = _resolved_bet([("a", "Home"), ("b", "Home")], winner="Away")
    assert designated_payee(bet) is None
    assert plan_obligations(bet, T0, _ids()) == []


def test_fee_is_not_an_obligation() -> None:
    bet = _resolved_bet([("a", "Home"), ("b", "Away")], winner="Away", amount_cents=100_000)
    bet.facilitation_fee_cents = 1000
    [ob] = plan_obligations(bet, T0, _ids())
    assert ob.amount_cents == 100_000


def test_unresolved_bet_raises() -> None:
    bet = make_bet(status="awaiting_resolution")
    with pytest.raises(ValueError):
        plan_obligations(bet, T0, _ids())
