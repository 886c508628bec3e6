# src/gb_bet/domain/repository.py
"""Repository Protocol: the persistence gateway for Bet aggregates.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the PostgreSQL implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_bet.domain.models import Bet


class BetRepositoryProtocol(Protocol):
    async def insert_bet(self, db: AsyncSession, bet: Bet) -> None: ...

    async def get_bet(self, db: AsyncSession, bet_id: str) -> Bet | None: ...

    async def save_bet(
        self, db: AsyncSession, bet: Bet, expected_version: int
    ) -> bool:
        """Compare-and-swap write. False means another writer got there first."""
        ...

    async def list_bets_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        statuses: list[str] | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bet]: ...
