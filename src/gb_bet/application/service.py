"""BetApplicationService: command and query surface of the bet engine.

Per-bet mutual exclusion happens at two levels: an in-process asyncio.Lock
per bet id serializes this process's callers, and the versioned write in
execute_bet_command serializes everyone else. Notifications are dispatched
only after the commit and never affect the result returned to the caller.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gb_bet.application.commands import execute_bet_command
from src.gb_bet.application.schemas import (
    AgreeRequest,
    AgreeResponse,
    BetDetail,
    BetListItem,
    BetListResponse,
    CreateBetRequest,
    CreateBetResponse,
    EvidenceOut,
    FeeQuoteResponse,
    JoinBetRequest,
    ResolveBetRequest,
    SubmitEvidenceRequest,
    cursor_decode,
    cursor_encode,
)
from src.gb_bet.domain import state_machine
from src.gb_bet.domain.events import BetEvent
from src.gb_bet.domain.models import Bet, Evidence
from src.gb_bet.domain.repository import BetRepositoryProtocol
from src.gb_bet.infrastructure.persistence import BetRepository
from src.gb_common.cents import cents_to_display
from src.gb_common.datetime_utils import utc_now
from src.gb_common.enums import BetStatus
from src.gb_common.errors import BetNotFoundError
from src.gb_common.id_generator import generate_id
from src.gb_notify.gateway import (
    NotificationGatewayProtocol,
    dispatch_events,
    get_notification_gateway,
)
from src.gb_settlement.application.service import SettlementService

logger = logging.getLogger(__name__)

OPEN_STATUSES = [
    BetStatus.PENDING.value,
    BetStatus.ACTIVE.value,
    BetStatus.AWAITING_RESOLUTION.value,
]


class BetApplicationService:
    def __init__(
        self,
        repo: BetRepositoryProtocol | None = None,
        settlement: SettlementService | None = None,
        notifier: NotificationGatewayProtocol | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self._repo: BetRepositoryProtocol = repo or BetRepository()
        self._notifier = notifier
        self._settlement = settlement or SettlementService(bet_repo=self._repo, notifier=notifier)
        self._max_attempts = max_attempts or settings.BET_WRITE_MAX_RETRIES
        self._bet_locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    @property
    def notifier(self) -> NotificationGatewayProtocol:
        return self._notifier or get_notification_gateway()

    @asynccontextmanager
    async def _bet_lock(self, bet_id: str) -> AsyncIterator[None]:
        """Hold the per-bet lock; the entry is dropped when its last holder leaves."""
        lock = self._bet_locks.setdefault(bet_id, asyncio.Lock())
        self._lock_holders[bet_id] = self._lock_holders.get(bet_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[bet_id] -= 1
            if self._lock_holders[bet_id] == 0:
                del self._lock_holders[bet_id]
                del self._bet_locks[bet_id]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_bet(
        self, db: AsyncSession, user_id: str, req: CreateBetRequest
    ) -> CreateBetResponse:
        bet, events = state_machine.create_bet(
            bet_id=generate_id("BET-"),
            title=req.title,
            description=req.description,
            amount_cents=req.amount_cents,
            sides=req.sides,
            resolution_type=req.resolution_type,
            creator_id=user_id,
            creator_display_name=req.display_name,
            now=utc_now(),
            neutral_party_id=req.neutral_party_id,
            invited_user_ids=req.invited_user_ids,
            resolution_deadline=req.resolution_deadline,
        )
        try:
            await self._repo.insert_bet(db, bet)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Bet %s created by %s (%s, fee=%d cents)",
            bet.id,
            user_id,
            bet.resolution_type,
            bet.facilitation_fee_cents,
        )
        dispatch_events(self.notifier, events)
        return CreateBetResponse(
            bet_id=bet.id,
            status=bet.status,
            facilitation_fee_cents=bet.facilitation_fee_cents,
            facilitation_fee_display=cents_to_display(bet.facilitation_fee_cents),
        )

    async def join_bet(
        self, db: AsyncSession, bet_id: str, user_id: str, req: JoinBetRequest
    ) -> BetDetail:
        async def _command(bet: Bet) -> list[BetEvent]:
            return state_machine.join_bet(bet, user_id, req.display_name, req.side, utc_now())

        async with self._bet_lock(bet_id):
            bet, events = await execute_bet_command(
                self._repo, db, bet_id, _command, self._max_attempts
            )
        logger.info("User %s joined bet %s on %r -> %s", user_id, bet_id, req.side, bet.status)
        dispatch_events(self.notifier, events)
        return BetDetail.from_domain(bet)

    async def resolve_bet(
        self, db: AsyncSession, bet_id: str, user_id: str, req: ResolveBetRequest
    ) -> BetDetail:
        async def _command(bet: Bet) -> None:
            state_machine.resolve_bet(bet, req.winning_side, user_id, utc_now())

        async with self._bet_lock(bet_id):
            bet, _ = await execute_bet_command(
                self._repo, db, bet_id, _command, self._max_attempts
            )
        # Only the committing resolver reaches this point.
        await self._settlement.fan_out(db, bet)
        return BetDetail.from_domain(bet)

    async def agree_to_resolution(
        self, db: AsyncSession, bet_id: str, user_id: str, req: AgreeRequest
    ) -> AgreeResponse:
        async def _command(bet: Bet) -> bool:
            return state_machine.agree_to_resolution(bet, user_id, req.winning_side, utc_now())

        async with self._bet_lock(bet_id):
            bet, resolved = await execute_bet_command(
                self._repo, db, bet_id, _command, self._max_attempts
            )
        if resolved:
            await self._settlement.fan_out(db, bet)
        else:
            logger.info("User %s agreed on bet %s", user_id, bet_id)
        return AgreeResponse(bet=BetDetail.from_domain(bet), resolved=resolved)

    async def submit_evidence(
        self, db: AsyncSession, bet_id: str, user_id: str, req: SubmitEvidenceRequest
    ) -> EvidenceOut:
        async def _command(bet: Bet) -> Evidence:
            return state_machine.submit_evidence(
                bet,
                evidence_id=generate_id("EVD-"),
                user_id=user_id,
                evidence_type=req.type,
                content=req.content,
                description=req.description,
                now=utc_now(),
            )

        async with self._bet_lock(bet_id):
            _, evidence = await execute_bet_command(
                self._repo, db, bet_id, _command, self._max_attempts
            )
        return EvidenceOut.from_domain(evidence)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_bet(self, db: AsyncSession, bet_id: str) -> BetDetail:
        bet = await self._repo.get_bet(db, bet_id)
        if bet is None:
            raise BetNotFoundError(bet_id)
        return BetDetail.from_domain(bet)

    async def list_bets(
        self,
        db: AsyncSession,
        user_id: str,
        status: str | None,
        active_only: bool,
        cursor: str | None,
        limit: int,
    ) -> BetListResponse:
        statuses: list[str] | None
        if status is not None:
            statuses = [status]
        elif active_only:
            statuses = OPEN_STATUSES
        else:
            statuses = None
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        bets = await self._repo.list_bets_for_user(
            db, user_id, statuses, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(bets) > limit
        page = bets[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return BetListResponse(
            items=[BetListItem.from_domain(b) for b in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    @staticmethod
    def quote_fee(amount_cents: int) -> FeeQuoteResponse:
        return FeeQuoteResponse.for_amount(amount_cents)
