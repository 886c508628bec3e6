"""SettlementService: payment obligations that follow a resolved bet.

fan_out() is called exactly once per bet, by the caller whose committed write
moved the bet into `resolved`. It runs after that commit: a failing sink or
notifier is logged and swallowed, never reported as a failed resolution.
reconcile() replays the plan for a resolved bet and inserts whatever is
missing; inserts are idempotent per (bet_id, from_user_id).
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gb_bet.application.commands import execute_bet_command
from src.gb_bet.domain.events import BetEvent, bet_event
from src.gb_bet.domain.ledger import find_participant
from src.gb_bet.domain.models import Bet
from src.gb_bet.domain.repository import BetRepositoryProtocol
from src.gb_bet.domain.state_machine import record_payment
from src.gb_bet.infrastructure.persistence import BetRepository
from src.gb_common.cents import cents_to_display
from src.gb_common.datetime_utils import utc_now
from src.gb_common.enums import BetStatus, NotificationEventType, PaymentStatus
from src.gb_common.errors import (
    BetNotFoundError,
    DownstreamFailureError,
    IllegalTransitionError,
    PaymentNotAllowedError,
    PaymentObligationNotFoundError,
)
from src.gb_common.id_generator import generate_id
from src.gb_notify.gateway import (
    NotificationGatewayProtocol,
    dispatch_events,
    get_notification_gateway,
)
from src.gb_settlement.application.schemas import (
    MarkCompletedResponse,
    ObligationDirection,
    ObligationListResponse,
    PaymentObligationOut,
    ReconcileResponse,
)
from src.gb_settlement.domain.fanout import plan_obligations
from src.gb_settlement.domain.models import PaymentObligation
from src.gb_settlement.domain.repository import ObligationRepositoryProtocol
from src.gb_settlement.infrastructure.persistence import ObligationRepository

logger = logging.getLogger(__name__)

_SETTLED_STATUSES = (BetStatus.RESOLVED.value, BetStatus.COMPLETED.value)


def _new_obligation_id() -> str:
    return generate_id("PAY-")


def _payment_required_events(bet: Bet, created: list[PaymentObligation]) -> list[BetEvent]:
    return [
        bet_event(
            NotificationEventType.PAYMENT_REQUIRED,
            [ob.from_user_id],
            bet.id,
            bet.title,
            obligation_id=ob.id,
            to_user_id=ob.to_user_id,
            amount_cents=ob.amount_cents,
            facilitation_fee_cents=bet.facilitation_fee_cents,
        )
        for ob in created
    ]


class SettlementService:
    def __init__(
        self,
        obligation_repo: ObligationRepositoryProtocol | None = None,
        bet_repo: BetRepositoryProtocol | None = None,
        notifier: NotificationGatewayProtocol | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._obligations: ObligationRepositoryProtocol = obligation_repo or ObligationRepository()
        self._bets: BetRepositoryProtocol = bet_repo or BetRepository()
        self._notifier = notifier
        self._max_attempts = max_attempts or settings.BET_WRITE_MAX_RETRIES

    @property
    def notifier(self) -> NotificationGatewayProtocol:
        return self._notifier or get_notification_gateway()

    async def fan_out(self, db: AsyncSession, bet: Bet) -> list[PaymentObligation]:
        """Persist one obligation per loser, then notify. Never raises."""
        created: list[PaymentObligation] = []
        try:
            planned = plan_obligations(bet, utc_now(), _new_obligation_id)
            if planned:
                created = await self._obligations.create_obligations(db, planned)
                await db.commit()
        except Exception as e:
            await db.rollback()
            failure = DownstreamFailureError("obligation sink", str(e))
            logger.exception(
                "Settlement fan-out for bet %s not persisted (%s); run reconcile",
                bet.id,
                failure.message,
            )
            created = []

        events = _payment_required_events(bet, created)
        events.append(
            bet_event(
                NotificationEventType.BET_RESOLVED,
                bet.participant_ids,
                bet.id,
                bet.title,
                winner=bet.winner,
            )
        )
        dispatch_events(self.notifier, events)
        logger.info(
            "Bet %s resolved for %r by %s: %d obligation(s)",
            bet.id,
            bet.winner,
            bet.resolved_by,
            len(created),
        )
        return created

    async def reconcile(
        self, db: AsyncSession, bet_id: str, actor_id: str
    ) -> ReconcileResponse:
        bet = await self._bets.get_bet(db, bet_id)
        if bet is None:
            raise BetNotFoundError(bet_id)
        if find_participant(bet, actor_id) is None and actor_id != bet.neutral_party_id:
            raise PaymentNotAllowedError(f"User {actor_id} has no stake in bet {bet_id}")
        if bet.status not in _SETTLED_STATUSES:
            raise IllegalTransitionError(
                "reconcile", bet.status, required_status=" | ".join(_SETTLED_STATUSES)
            )

        planned = plan_obligations(bet, utc_now(), _new_obligation_id)
        try:
            created = await self._obligations.create_obligations(db, planned)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if created:
            logger.warning("Reconcile for bet %s created %d missing obligation(s)", bet_id, len(created))
            dispatch_events(self.notifier, _payment_required_events(bet, created))
        return ReconcileResponse(
            bet_id=bet_id,
            created=[PaymentObligationOut.from_domain(ob) for ob in created],
        )

    async def list_obligations(
        self,
        db: AsyncSession,
        user_id: str,
        direction: ObligationDirection,
        status: str | None,
    ) -> ObligationListResponse:
        obligations = await self._obligations.list_for_user(db, user_id, direction, status)
        pending = sum(
            ob.amount_cents for ob in obligations if ob.status == PaymentStatus.PENDING.value
        )
        return ObligationListResponse(
            direction=direction,
            items=[PaymentObligationOut.from_domain(ob) for ob in obligations],
            total_pending_cents=pending,
            total_pending_display=cents_to_display(pending),
        )

    async def mark_payment_completed(
        self, db: AsyncSession, obligation_id: str, actor_id: str
    ) -> MarkCompletedResponse:
        """Payer or payee confirms a pending obligation was paid outside the app.

        The obligation update and the payer's has_paid flag on the bet commit
        together; the bet moves to `completed` once every loser has paid.
        """
        existing = await self._obligations.get_obligation(db, obligation_id)
        if existing is None:
            raise PaymentObligationNotFoundError(obligation_id)
        if actor_id not in (existing.from_user_id, existing.to_user_id):
            raise PaymentNotAllowedError("Only the payer or the payee can confirm a payment")
        if existing.status == PaymentStatus.COMPLETED.value:
            bet = await self._bets.get_bet(db, existing.bet_id)
            return MarkCompletedResponse(
                obligation=PaymentObligationOut.from_domain(existing),
                bet_status=bet.status if bet else BetStatus.COMPLETED.value,
            )
        if existing.status != PaymentStatus.PENDING.value:
            raise PaymentNotAllowedError(
                f"Payment obligation {obligation_id} is {existing.status}"
            )

        async def _command(bet: Bet) -> PaymentObligation:
            now = utc_now()
            updated = await self._obligations.mark_completed(db, obligation_id, now)
            if updated is None:
                raise PaymentNotAllowedError(
                    f"Payment obligation {obligation_id} is no longer pending"
                )
            if bet.status == BetStatus.RESOLVED.value:
                record_payment(bet, updated.from_user_id, now)
            return updated

        bet, updated = await execute_bet_command(
            self._bets, db, existing.bet_id, _command, self._max_attempts
        )
        if bet.status == BetStatus.COMPLETED.value:
            logger.info("Bet %s completed: all losers paid", bet.id)

        dispatch_events(
            self.notifier,
            [
                bet_event(
                    NotificationEventType.PAYMENT_RECEIVED,
                    [updated.to_user_id],
                    bet.id,
                    bet.title,
                    amount_cents=updated.amount_cents,
                    from_user_id=updated.from_user_id,
                )
            ],
        )
        return MarkCompletedResponse(
            obligation=PaymentObligationOut.from_domain(updated),
            bet_status=bet.status,
        )
