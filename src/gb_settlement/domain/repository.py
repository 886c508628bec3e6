"""Repository Protocol: the payment-obligation sink.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_settlement.domain.models import PaymentObligation


class ObligationRepositoryProtocol(Protocol):
    async def create_obligations(
        self, db: AsyncSession, obligations: list[PaymentObligation]
    ) -> list[PaymentObligation]:
        """Insert the batch; returns only rows that were newly created."""
        ...

    async def get_obligation(
        self, db: AsyncSession, obligation_id: str
    ) -> PaymentObligation | None: ...

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        direction: str,
        status: str | None,
    ) -> list[PaymentObligation]: ...

    async def mark_completed(
        self, db: AsyncSession, obligation_id: str, completed_at: datetime
    ) -> PaymentObligation | None:
        """pending → completed; None if the obligation was not pending."""
        ...
