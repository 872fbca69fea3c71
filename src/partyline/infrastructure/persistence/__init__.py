"""Persistence infrastructure."""

from partyline.infrastructure.persistence.database import DatabaseManager
from partyline.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from partyline.infrastructure.persistence.memory_store import InMemoryPartyStore
from partyline.infrastructure.persistence.models import ConnectionModel, PartyModel
from partyline.infrastructure.persistence.party_store import (
    SQLitePartyStore,
    identity_key,
)

__all__ = [
    "ConnectionModel",
    "DatabaseError",
    "DatabaseManager",
    "InMemoryPartyStore",
    "PartyModel",
    "PersistenceError",
    "SQLitePartyStore",
    "identity_key",
]
