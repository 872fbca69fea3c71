"""Tests for SlackMessagingService."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from partyline.domain.entities import Party
from partyline.domain.exceptions import ConversationNotAccessibleError
from partyline.infrastructure.slack import SlackMessagingService


@pytest.fixture
def party() -> Party:
    return Party(
        service_url="https://slack.com/api/",
        channel_id="slack",
        conversation_id="C123456",
        channel_account_id="U123",
    )


class TestSlackMessagingService:
    """SlackMessagingService tests."""

    @pytest.fixture
    def mock_client(self) -> MagicMock:
        """Create mock Slack AsyncWebClient."""
        client = MagicMock()
        client.chat_postMessage = AsyncMock()
        client.conversations_open = AsyncMock(return_value={"channel": {"id": "D999"}})
        client.auth_test = AsyncMock(
            return_value={"user_id": "UBOT123", "user": "router"}
        )
        return client

    @pytest.fixture
    def service(self, mock_client: MagicMock) -> SlackMessagingService:
        """Create service instance."""
        return SlackMessagingService(client=mock_client)

    async def test_send_message(
        self, service: SlackMessagingService, mock_client: MagicMock, party: Party
    ) -> None:
        await service.send_message(party, "Hello, world!")

        mock_client.chat_postMessage.assert_awaited_once_with(
            channel="C123456", text="Hello, world!"
        )

    @pytest.mark.parametrize(
        "error_code", ["not_in_channel", "channel_not_found", "is_archived"]
    )
    async def test_inaccessible_conversation(
        self,
        service: SlackMessagingService,
        mock_client: MagicMock,
        party: Party,
        error_code: str,
    ) -> None:
        """Test that access errors become ConversationNotAccessibleError."""
        mock_client.chat_postMessage.side_effect = SlackApiError(
            message=error_code, response={"error": error_code}
        )

        with pytest.raises(ConversationNotAccessibleError) as exc_info:
            await service.send_message(party, "Hello")

        assert exc_info.value.conversation_id == "C123456"

    async def test_other_api_error_propagated(
        self, service: SlackMessagingService, mock_client: MagicMock, party: Party
    ) -> None:
        mock_client.chat_postMessage.side_effect = SlackApiError(
            message="rate_limited", response={"error": "rate_limited"}
        )

        with pytest.raises(SlackApiError):
            await service.send_message(party, "Hello")

    async def test_open_direct_conversation(
        self, service: SlackMessagingService, mock_client: MagicMock, party: Party
    ) -> None:
        assert await service.open_direct_conversation(party) == "D999"
        mock_client.conversations_open.assert_awaited_once_with(users="U123")

    async def test_open_direct_conversation_fails(
        self, service: SlackMessagingService, mock_client: MagicMock, party: Party
    ) -> None:
        mock_client.conversations_open.side_effect = SlackApiError(
            message="user_not_found", response={"error": "user_not_found"}
        )

        assert await service.open_direct_conversation(party) is None

    async def test_open_direct_conversation_without_account(
        self, service: SlackMessagingService, mock_client: MagicMock
    ) -> None:
        inbox = Party(
            service_url="https://slack.com/api/",
            channel_id="slack",
            conversation_id="C1",
        )

        assert await service.open_direct_conversation(inbox) is None
        mock_client.conversations_open.assert_not_awaited()

    async def test_bot_identity_is_cached(
        self, service: SlackMessagingService, mock_client: MagicMock
    ) -> None:
        assert await service.get_bot_user_id() == "UBOT123"
        assert await service.get_bot_name() == "router"
        assert await service.get_bot_user_id() == "UBOT123"

        mock_client.auth_test.assert_awaited_once()
