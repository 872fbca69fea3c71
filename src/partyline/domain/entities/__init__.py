"""Domain entities."""

from partyline.domain.entities.party import (
    NOT_SET,
    ConnectionProfile,
    Party,
    PartyCategory,
)
from partyline.domain.entities.result import ErrorReason, ResultType, RouterResult

__all__ = [
    "NOT_SET",
    "ConnectionProfile",
    "ErrorReason",
    "Party",
    "PartyCategory",
    "ResultType",
    "RouterResult",
]
