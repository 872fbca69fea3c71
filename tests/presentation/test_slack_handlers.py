"""Tests for Slack event handlers."""

from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from partyline.domain.entities import Party
from partyline.presentation.slack_handlers import register_handlers


def create_test_party(account_id: str, conversation_id: str = "D123") -> Party:
    """Create a test Party entity."""
    return Party(
        service_url="https://slack.com/api/",
        channel_id="slack",
        conversation_id=conversation_id,
        channel_account_id=account_id,
    )


@pytest.fixture
def sender() -> Party:
    return create_test_party("U_USER")


@pytest.fixture
def recipient() -> Party:
    return create_test_party("U_BOT_123")


@pytest.fixture
def mock_event_adapter(sender: Party, recipient: Party) -> Mock:
    """Create a mock SlackEventAdapter."""
    adapter = Mock()
    adapter.to_parties = AsyncMock(return_value=(sender, recipient))
    adapter.extract_mentions = Mock(return_value=[])
    return adapter


@pytest.fixture
def mock_forwarder() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_route_use_case() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def mock_command_handler() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def bot_user_id() -> str:
    """Bot user ID for testing."""
    return "U_BOT_123"


@pytest.fixture
def registered_handlers(
    mock_event_adapter: Mock,
    mock_forwarder: AsyncMock,
    mock_route_use_case: AsyncMock,
    mock_command_handler: AsyncMock,
    bot_user_id: str,
) -> dict[str, Any]:
    """Register handlers and return captured handler dict."""
    handlers: dict[str, Any] = {}
    mock_app = Mock()

    def capture_event(event_type: str):
        def decorator(func):
            handlers[event_type] = func
            return func

        return decorator

    mock_app.event = capture_event

    register_handlers(
        mock_app,
        mock_event_adapter,
        mock_forwarder,
        mock_route_use_case,
        mock_command_handler,
        bot_user_id,
    )

    return handlers


def create_event(text: str = "hello", **overrides: Any) -> dict[str, Any]:
    """Create a Slack message event."""
    return {
        "type": "message",
        "user": "U_USER",
        "channel": "D123",
        "text": text,
        "ts": "1234567890.123456",
        **overrides,
    }


class TestHandleMessage:
    """message event handler tests."""

    async def test_routes_plain_message(
        self,
        registered_handlers: dict[str, Any],
        mock_route_use_case: AsyncMock,
        mock_command_handler: AsyncMock,
        sender: Party,
        recipient: Party,
    ) -> None:
        await registered_handlers["message"](create_event("hello"))

        mock_route_use_case.execute.assert_awaited_once_with(
            sender, recipient, "hello"
        )
        mock_command_handler.handle.assert_not_awaited()

    async def test_dispatches_command(
        self,
        registered_handlers: dict[str, Any],
        mock_event_adapter: Mock,
        mock_forwarder: AsyncMock,
        mock_route_use_case: AsyncMock,
        mock_command_handler: AsyncMock,
        sender: Party,
        recipient: Party,
    ) -> None:
        """Test that a mention argument is resolved to the user ID."""
        mock_event_adapter.extract_mentions.return_value = ["U_TARGET"]

        await registered_handlers["message"](create_event("!accept <@U_TARGET>"))

        mock_forwarder.track_parties.assert_awaited_once_with(sender, recipient)
        mock_command_handler.handle.assert_awaited_once_with(
            sender, "accept", "U_TARGET"
        )
        mock_route_use_case.execute.assert_not_awaited()

    async def test_command_with_plain_argument(
        self,
        registered_handlers: dict[str, Any],
        mock_command_handler: AsyncMock,
        sender: Party,
    ) -> None:
        await registered_handlers["message"](create_event("!reject U_TARGET"))

        mock_command_handler.handle.assert_awaited_once_with(
            sender, "reject", "U_TARGET"
        )

    async def test_command_without_argument(
        self,
        registered_handlers: dict[str, Any],
        mock_command_handler: AsyncMock,
        sender: Party,
    ) -> None:
        await registered_handlers["message"](create_event("!end"))

        mock_command_handler.handle.assert_awaited_once_with(sender, "end", None)

    async def test_ignores_own_messages(
        self,
        registered_handlers: dict[str, Any],
        mock_event_adapter: Mock,
        bot_user_id: str,
    ) -> None:
        await registered_handlers["message"](create_event(user=bot_user_id))

        mock_event_adapter.to_parties.assert_not_awaited()

    @pytest.mark.parametrize(
        "subtype", ["bot_message", "message_changed", "message_deleted", "channel_join"]
    )
    async def test_ignores_subtypes(
        self,
        registered_handlers: dict[str, Any],
        mock_event_adapter: Mock,
        subtype: str,
    ) -> None:
        await registered_handlers["message"](create_event(subtype=subtype))

        mock_event_adapter.to_parties.assert_not_awaited()

    async def test_ignores_events_without_user(
        self,
        registered_handlers: dict[str, Any],
        mock_event_adapter: Mock,
    ) -> None:
        event = create_event()
        del event["user"]

        await registered_handlers["message"](event)

        mock_event_adapter.to_parties.assert_not_awaited()

    async def test_adapter_error_is_logged(
        self,
        registered_handlers: dict[str, Any],
        mock_event_adapter: Mock,
        mock_route_use_case: AsyncMock,
    ) -> None:
        mock_event_adapter.to_parties.side_effect = KeyError("channel")

        await registered_handlers["message"](create_event())

        mock_route_use_case.execute.assert_not_awaited()

    async def test_use_case_error_is_logged(
        self,
        registered_handlers: dict[str, Any],
        mock_route_use_case: AsyncMock,
    ) -> None:
        mock_route_use_case.execute.side_effect = RuntimeError("boom")

        await registered_handlers["message"](create_event())


class TestHandleAppMention:
    """app_mention handler tests."""

    async def test_is_noop(self, registered_handlers: dict[str, Any]) -> None:
        await registered_handlers["app_mention"]({"ts": "1"})
