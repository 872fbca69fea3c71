"""Domain services."""

from partyline.domain.services.connection_broker import ConnectionBroker, utc_now
from partyline.domain.services.party_registry import PartyRegistry
from partyline.domain.services.protocols import MessagingService

__all__ = [
    "ConnectionBroker",
    "MessagingService",
    "PartyRegistry",
    "utc_now",
]
