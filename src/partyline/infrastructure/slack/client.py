"""Slack Bolt client and runner."""

import asyncio
import logging

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from partyline.config import SlackConfig

logger = logging.getLogger(__name__)


def create_slack_app(config: SlackConfig) -> AsyncApp:
    """Create a Slack Bolt application.

    Args:
        config: Slack connection settings.

    Returns:
        Configured AsyncApp instance.
    """
    return AsyncApp(token=config.bot_token)


class SlackAppRunner:
    """Serve partyline's Slack events over Socket Mode."""

    def __init__(self, app: AsyncApp, app_token: str) -> None:
        self._app = app
        self._app_token = app_token
        self._handler: AsyncSocketModeHandler | None = None

    async def start(self) -> None:
        """Connect and keep serving events until closed."""
        self._handler = AsyncSocketModeHandler(self._app, self._app_token)
        logger.info("Connecting to Slack via Socket Mode")
        await self._handler.start_async()

    async def close(self, timeout: float = 5.0) -> bool:
        """Close the Socket Mode connection.

        Returns:
            True if closed (or never started), False if closing took longer
            than ``timeout`` seconds.
        """
        if self._handler is None:
            return True
        try:
            await asyncio.wait_for(self._handler.close_async(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Socket Mode connection did not close in %.1fs", timeout)
            return False
        logger.info("Socket Mode connection closed")
        return True
