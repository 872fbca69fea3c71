"""Slack event handlers."""

import logging

from slack_bolt.async_app import AsyncApp

from partyline.application.handlers import CommandHandler, parse_command
from partyline.application.services import MessageForwarder
from partyline.application.use_cases import RouteMessageUseCase
from partyline.infrastructure.slack import SlackEventAdapter

logger = logging.getLogger(__name__)


def register_handlers(
    app: AsyncApp,
    event_adapter: SlackEventAdapter,
    forwarder: MessageForwarder,
    route_use_case: RouteMessageUseCase,
    command_handler: CommandHandler,
    bot_user_id: str,
) -> None:
    """Register Slack event handlers.

    Args:
        app: AsyncApp instance.
        event_adapter: Adapter for converting events to parties.
        forwarder: Tracks the parties of inbound messages.
        route_use_case: Use case for routing plain messages.
        command_handler: Handler for ``!`` commands.
        bot_user_id: The bot's user ID.
    """

    @app.event("app_mention")
    async def handle_app_mention(event: dict) -> None:
        """Handle app_mention events (no-op).

        The same message also arrives as a message event, which is where
        routing happens.
        """
        logger.debug("Received app_mention event: %s", event.get("ts"))

    @app.event("message")
    async def handle_message(event: dict) -> None:
        """Handle message events.

        Commands go to the command handler; everything else is routed to
        the sender's counterpart or turned into a connection request.

        Args:
            event: Slack event payload.
        """
        subtype = event.get("subtype")
        if subtype is not None:
            # Edits, deletes, joins and bot messages are not routed
            return

        user_id = event.get("user")
        if not user_id or user_id == bot_user_id:
            return

        logger.info(
            "Processing message event: ts=%s, channel=%s",
            event.get("ts"),
            event.get("channel"),
        )

        try:
            sender, recipient = await event_adapter.to_parties(event)
        except Exception:
            logger.exception("Error converting event to parties")
            return

        text = event.get("text", "")
        command = parse_command(text)

        try:
            if command is None:
                await route_use_case.execute(sender, recipient, text)
                return

            name, argument = command
            target = None
            if argument:
                mentions = event_adapter.extract_mentions(argument)
                target = mentions[0] if mentions else argument
            await forwarder.track_parties(sender, recipient)
            await command_handler.handle(sender, name, target)
        except Exception:
            logger.exception("Error handling message event")
