"""Tests for Slack client helpers."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

from partyline.config import SlackConfig
from partyline.infrastructure.slack.client import SlackAppRunner, create_slack_app


class TestCreateSlackApp:
    """create_slack_app tests."""

    def test_uses_bot_token(self) -> None:
        with patch("partyline.infrastructure.slack.client.AsyncApp") as app_class:
            create_slack_app(SlackConfig(bot_token="xoxb-test", app_token="xapp-test"))

        app_class.assert_called_once_with(token="xoxb-test")


class TestSlackAppRunnerClose:
    """SlackAppRunner.close tests."""

    async def test_close_before_start(self) -> None:
        runner = SlackAppRunner(Mock(), "xapp-token")

        assert await runner.close() is True

    async def test_close(self) -> None:
        runner = SlackAppRunner(Mock(), "xapp-token")
        handler = Mock()
        handler.close_async = AsyncMock()
        runner._handler = handler

        assert await runner.close() is True
        handler.close_async.assert_awaited_once()

    async def test_close_timeout(self) -> None:
        runner = SlackAppRunner(Mock(), "xapp-token")

        async def hang() -> None:
            await asyncio.sleep(10)

        handler = Mock()
        handler.close_async = hang
        runner._handler = handler

        assert await runner.close(timeout=0.01) is False

    async def test_start_creates_socket_mode_handler(self) -> None:
        app = Mock()
        runner = SlackAppRunner(app, "xapp-token")

        with patch(
            "partyline.infrastructure.slack.client.AsyncSocketModeHandler"
        ) as handler_class:
            handler_class.return_value.start_async = AsyncMock()
            await runner.start()

        handler_class.assert_called_once_with(app, "xapp-token")
        handler_class.return_value.start_async.assert_awaited_once()
