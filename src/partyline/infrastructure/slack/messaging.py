"""Slack messaging service."""

import logging

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from partyline.domain.entities import Party
from partyline.domain.exceptions import ConversationNotAccessibleError

logger = logging.getLogger(__name__)

# Error codes that indicate the conversation is not accessible
_CONVERSATION_NOT_ACCESSIBLE_ERRORS = frozenset(
    {
        "not_in_channel",
        "channel_not_found",
        "is_archived",
    }
)


def _error_code(error: SlackApiError) -> str:
    response = error.response
    if isinstance(response, dict):
        return response.get("error", "")
    try:
        return response.get("error", "") or ""
    except AttributeError:
        return ""


class SlackMessagingService:
    """Slack implementation of MessagingService.

    This class implements the MessagingService protocol for Slack,
    delivering messages to a party's conversation.
    """

    def __init__(self, client: AsyncWebClient) -> None:
        """Initialize the service.

        Args:
            client: Slack AsyncWebClient instance.
        """
        self._client = client
        self._bot_user_id: str | None = None
        self._bot_name: str | None = None

    async def send_message(self, party: Party, text: str) -> None:
        """Send a message to the party's conversation.

        Args:
            party: Recipient party.
            text: Message content.

        Raises:
            ConversationNotAccessibleError: If the conversation is not
                accessible (not_in_channel, channel_not_found, is_archived).
            SlackApiError: If the API call fails for other reasons.
        """
        conversation_id = party.conversation_id
        try:
            await self._client.chat_postMessage(channel=conversation_id, text=text)
        except SlackApiError as e:
            error_code = _error_code(e)
            if error_code in _CONVERSATION_NOT_ACCESSIBLE_ERRORS:
                raise ConversationNotAccessibleError(
                    conversation_id,
                    f"Cannot access conversation {conversation_id}: {error_code}",
                ) from e
            raise

    async def open_direct_conversation(self, party: Party) -> str | None:
        """Open a direct message conversation with the party.

        Args:
            party: Party with an account.

        Returns:
            The DM channel ID, or None if it could not be opened.
        """
        if not party.has_account:
            return None
        try:
            response = await self._client.conversations_open(
                users=party.channel_account_id
            )
        except SlackApiError as e:
            logger.warning("Failed to open DM with %s: %s", party, e)
            return None
        channel = response.get("channel") or {}
        return channel.get("id")

    async def get_bot_user_id(self) -> str:
        """Get the bot's user ID.

        Returns:
            The bot's user ID.

        Note:
            The result is cached after the first call.
        """
        if self._bot_user_id is None:
            await self._auth_test()
        assert self._bot_user_id is not None
        return self._bot_user_id

    async def get_bot_name(self) -> str | None:
        """Get the bot's user name (cached after the first call)."""
        if self._bot_user_id is None:
            await self._auth_test()
        return self._bot_name

    async def _auth_test(self) -> None:
        response = await self._client.auth_test()
        self._bot_user_id = response["user_id"]
        self._bot_name = response.get("user")
