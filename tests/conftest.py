"""Shared fixtures."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest

from partyline.domain.repositories import PartyStore
from partyline.infrastructure.persistence import (
    DatabaseManager,
    InMemoryPartyStore,
    SQLitePartyStore,
)


class FakeClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    """Create a deterministic, strictly increasing clock."""
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
async def store(request: pytest.FixtureRequest) -> AsyncGenerator[PartyStore, None]:
    """Create each PartyStore implementation in turn."""
    if request.param == "memory":
        yield InMemoryPartyStore()
        return

    manager = DatabaseManager(":memory:")
    await manager.create_tables()
    yield SQLitePartyStore(manager.get_session)
    await manager.close()
