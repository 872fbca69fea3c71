"""Slack event adapter."""

import logging
import re

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from partyline.domain.entities import Party

logger = logging.getLogger(__name__)

SLACK_CHANNEL_ID = "slack"
SLACK_SERVICE_URL = "https://slack.com/api/"


class SlackEventAdapter:
    """Convert Slack events to parties.

    This adapter translates Slack-specific event payloads into
    platform-independent Party entities. It also caches user names to
    minimize Slack API calls.
    """

    MENTION_PATTERN = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>")

    def __init__(
        self,
        client: AsyncWebClient,
        bot_user_id: str,
        bot_name: str | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            client: Slack AsyncWebClient for fetching user info.
            bot_user_id: The bot's user ID.
            bot_name: The bot's display name.
        """
        self._client = client
        self._bot_user_id = bot_user_id
        self._bot_name = bot_name
        self._user_names: dict[str, str] = {}

    async def to_parties(self, event: dict) -> tuple[Party, Party]:
        """Convert a Slack message event to (sender, recipient).

        The recipient is the bot's party in the same conversation.

        Args:
            event: Slack message event payload.

        Returns:
            Tuple of sender party and bot party.
        """
        conversation_id = event["channel"]
        user_id = event["user"]

        sender = Party(
            service_url=SLACK_SERVICE_URL,
            channel_id=SLACK_CHANNEL_ID,
            conversation_id=conversation_id,
            channel_account_id=user_id,
            channel_account_name=await self._get_or_fetch_user_name(user_id),
        )
        recipient = self.bot_party(conversation_id)
        return sender, recipient

    def bot_party(self, conversation_id: str) -> Party:
        """Return the bot's party in a conversation."""
        return Party(
            service_url=SLACK_SERVICE_URL,
            channel_id=SLACK_CHANNEL_ID,
            conversation_id=conversation_id,
            channel_account_id=self._bot_user_id,
            channel_account_name=self._bot_name,
        )

    async def _get_or_fetch_user_name(self, user_id: str) -> str:
        cached = self._user_names.get(user_id)
        if cached is not None:
            return cached

        try:
            user_info = await self._client.users_info(user=user_id)
        except SlackApiError as e:
            logger.warning("Failed to fetch user %s: %s", user_id, e)
            return user_id

        user_data = user_info["user"]
        profile = user_data.get("profile") or {}
        name = profile.get("display_name") or user_data.get("name") or user_id
        self._user_names[user_id] = name
        return name

    def extract_mentions(self, text: str) -> list[str]:
        """Extract user mentions from message text.

        Args:
            text: Message text.

        Returns:
            List of mentioned user IDs.
        """
        return self.MENTION_PATTERN.findall(text)
