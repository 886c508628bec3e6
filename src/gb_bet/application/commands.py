"""Optimistic read-modify-write loop for Bet aggregates.

    load → command(bet) → save_bet(expected_version) → commit
                            └─ conflict → rollback, reload, re-apply

A command re-applied after a conflict sees the winner's state, so a second
resolving command fails with IllegalTransitionError instead of resolving twice.
Domain errors raised by the command abort the loop immediately.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_bet.domain.models import Bet
from src.gb_bet.domain.repository import BetRepositoryProtocol
from src.gb_common.errors import BetNotFoundError, ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def execute_bet_command(
    repo: BetRepositoryProtocol,
    db: AsyncSession,
    bet_id: str,
    command: Callable[[Bet], Awaitable[T]],
    max_attempts: int,
) -> tuple[Bet, T]:
    for attempt in range(1, max_attempts + 1):
        try:
            bet = await repo.get_bet(db, bet_id)
            if bet is None:
                raise BetNotFoundError(bet_id)
            expected_version = bet.version
            result = await command(bet)
            saved = await repo.save_bet(db, bet, expected_version)
            if saved:
                await db.commit()
                return bet, result
            await db.rollback()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Version conflict on bet %s (attempt %d/%d)", bet_id, attempt, max_attempts
        )
    raise ConcurrencyConflictError(bet_id)
