"""Fixtures for unit tests: mock session plus in-memory repositories."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.unit.fakes import FakeBetRepository, FakeObligationRepository, RecordingNotifier


@pytest.fixture
def db():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def bet_repo() -> FakeBetRepository:
    return FakeBetRepository()


@pytest.fixture
def obligation_repo() -> FakeObligationRepository:
    return FakeObligationRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
