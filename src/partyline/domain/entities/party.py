"""Party entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

# Lifecycle timestamps are reset to this value instead of None
NOT_SET = datetime.min.replace(tzinfo=timezone.utc)


class PartyCategory(str, Enum):
    """Named collections owned by the party registry."""

    USER = "user"
    BOT = "bot"
    AGGREGATION = "aggregation"
    PENDING_REQUEST = "pending_request"


class ConnectionProfile(str, Enum):
    """Which role(s) of a connection to match."""

    CLIENT = "client"
    OWNER = "owner"
    ANY = "any"


@dataclass(eq=False)
class Party:
    """Party entity (one participant inside one conversation).

    Equality and hashing only use the identity fields, so a party keeps
    working as a dict key or set member while its timestamps change.

    Attributes:
        service_url: Base URL of the platform endpoint.
        channel_id: Platform channel (e.g. "slack").
        conversation_id: Conversation the party is addressed in.
        channel_account_id: Account ID, None for whole-channel parties.
        channel_account_name: Account display name.
        conversation_name: Conversation display name.
        requested_at: When a connection was requested, NOT_SET if none.
        connected_at: When the connection was established, NOT_SET if none.
    """

    service_url: str
    channel_id: str
    conversation_id: str
    channel_account_id: str | None = None
    channel_account_name: str | None = None
    conversation_name: str | None = None
    requested_at: datetime = field(default=NOT_SET)
    connected_at: datetime = field(default=NOT_SET)

    def _identity(self) -> tuple[str, str, str | None, str]:
        return (
            self.service_url,
            self.channel_id,
            self.channel_account_id,
            self.conversation_id,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Party):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __str__(self) -> str:
        account = self.channel_account_name or self.channel_account_id or "-"
        return f"{account}@{self.channel_id}/{self.conversation_id}"

    @property
    def has_account(self) -> bool:
        """Whether the party names an individual account."""
        return self.channel_account_id is not None

    @property
    def has_pending_request(self) -> bool:
        """Whether requested_at is set."""
        return self.requested_at != NOT_SET

    @property
    def is_connected(self) -> bool:
        """Whether connected_at is set."""
        return self.connected_at != NOT_SET

    def has_matching_account(self, other: "Party | None") -> bool:
        """Check whether both parties belong to the same account.

        The conversation is ignored. Parties without an account never match.

        Args:
            other: Party to compare with.

        Returns:
            True if channel and account ID are equal.
        """
        return (
            other is not None
            and self.channel_account_id is not None
            and other.channel_account_id is not None
            and self.channel_id == other.channel_id
            and self.channel_account_id == other.channel_account_id
        )

    def reset_requested_at(self) -> None:
        self.requested_at = NOT_SET

    def reset_connected_at(self) -> None:
        self.connected_at = NOT_SET
