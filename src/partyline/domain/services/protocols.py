"""Domain service protocols."""

from typing import Protocol

from partyline.domain.entities import Party


class MessagingService(Protocol):
    """Messaging abstraction (platform-independent).

    This protocol defines the interface for delivering a message
    to a party on any messaging platform (Slack, Discord, etc.).
    """

    async def send_message(self, party: Party, text: str) -> None:
        """Send a message to the party's conversation.

        Args:
            party: Recipient party.
            text: Message content.

        Raises:
            ConversationNotAccessibleError: If the conversation cannot be
                reached.
        """
        ...

    async def open_direct_conversation(self, party: Party) -> str | None:
        """Open a direct (1:1) conversation between the bot and the party.

        Args:
            party: Party with an account to talk to.

        Returns:
            ID of the direct conversation, or None if it could not be opened.
        """
        ...
