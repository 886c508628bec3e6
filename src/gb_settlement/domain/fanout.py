"""Settlement fan-out planning: who owes whom once a bet is resolved.

Rules:
  1. Partition participants by side == winner.
  2. Either partition empty → nothing owed.
  3. The payee is the first winner in join order; winnings are not split.
  4. Every loser owes the payee the full stake (bet.amount_cents), not a share.

The facilitation fee is a platform charge and never becomes an obligation.
"""

from collections.abc import Callable
from datetime import datetime

from src.gb_bet.domain.ledger import losers_of, winners_of
from src.gb_bet.domain.models import Bet
from src.gb_common.enums import PaymentStatus
from src.gb_settlement.domain.models import PaymentObligation


def designated_payee(bet: Bet) -> str | None:
    if bet.winner is None:
        return None
    winners = winners_of(bet, bet.winner)
    return winners[0].user_id if winners else None


def plan_obligations(
    bet: Bet, now: datetime, new_id: Callable[[], str]
) -> list[PaymentObligation]:
    """One pending obligation per loser. Raises ValueError on an unresolved bet."""
    if bet.winner is None:
        raise ValueError(f"Bet {bet.id} has no winner; nothing to settle")

    losers = losers_of(bet, bet.winner)
    payee = designated_payee(bet)
    if not losers or payee is None:
        return []

    return [
        PaymentObligation(
            id=new_id(),
            bet_id=bet.id,
            from_user_id=loser.user_id,
            to_user_id=payee,
            amount_cents=bet.amount_cents,
            description=f"Payment for bet: {bet.title}",
            status=PaymentStatus.PENDING.value,
            created_at=now,
        )
        for loser in losers
    ]
