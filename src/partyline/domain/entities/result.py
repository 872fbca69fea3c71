"""Router result entities."""

from dataclasses import dataclass
from enum import Enum

from partyline.domain.entities.party import Party


class ResultType(str, Enum):
    """Outcome of a registry, broker or routing operation."""

    REQUESTED = "requested"
    ALREADY_REQUESTED = "already_requested"
    NO_AGENTS_AVAILABLE = "no_agents_available"
    REJECTED = "rejected"
    CONNECTED = "connected"
    ALREADY_CONNECTED = "already_connected"
    DISCONNECTED = "disconnected"
    REMOVED = "removed"
    REQUEST_CANCELLED = "request_cancelled"
    NO_ACTION_TAKEN = "no_action_taken"
    FORWARDED = "forwarded"
    FAILED_TO_FORWARD = "failed_to_forward"
    ERROR = "error"


class ErrorReason(str, Enum):
    """Why an operation did not succeed."""

    NOT_FOUND = "not_found"
    MISSING_PARTY = "missing_party"
    ALREADY_CONNECTED = "already_connected"
    AGGREGATION_PARTY_CANNOT_REQUEST = "aggregation_party_cannot_request"
    BOT_NOT_FOUND = "bot_not_found"


@dataclass(frozen=True)
class RouterResult:
    """Result of an operation.

    Attributes:
        type: Result type.
        owner: Owner side of the affected connection (or the acting party).
        client: Client side of the affected connection (or the requestor).
        reason: Reason for a negative outcome.
        message: Human readable detail.
    """

    type: ResultType
    owner: Party | None = None
    client: Party | None = None
    reason: ErrorReason | None = None
    message: str = ""

    @property
    def is_error(self) -> bool:
        return self.type in (ResultType.ERROR, ResultType.FAILED_TO_FORWARD)

    @classmethod
    def no_action(cls) -> "RouterResult":
        return cls(type=ResultType.NO_ACTION_TAKEN)
