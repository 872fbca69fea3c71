"""Message forwarder service."""

import logging
from datetime import datetime

from partyline.domain.entities import (
    ConnectionProfile,
    Party,
    PartyCategory,
    ResultType,
    RouterResult,
)
from partyline.domain.services import ConnectionBroker, PartyRegistry, utc_now
from partyline.domain.services.connection_broker import Clock

logger = logging.getLogger(__name__)


class MessageForwarder:
    """Resolve where a message goes and track connection activity.

    Delivery itself is left to a MessagingService; this class only knows
    parties and connections. Activity of a connection is dropped as soon as
    the broker reports it disconnected.
    """

    def __init__(
        self,
        registry: PartyRegistry,
        broker: ConnectionBroker,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the forwarder.

        Args:
            registry: Party registry.
            broker: Connection broker.
            clock: Returns the current time. Defaults to UTC now.
        """
        self._registry = registry
        self._broker = broker
        self._clock = clock or utc_now
        self._last_activity: dict[Party, datetime] = {}
        broker.add_result_hook(self._on_result)

    async def track_parties(self, sender: Party, recipient: Party) -> None:
        """Make sure both parties of an inbound event are tracked.

        The recipient is the bot's own address in the conversation. The
        sender is stored as a user unless it is a known bot party.

        Args:
            sender: Party that sent the message.
            recipient: Party that received it (the bot).
        """
        await self._registry.add_party(recipient, PartyCategory.BOT)

        if sender not in await self._registry.bot_parties():
            await self._registry.add_party(sender, PartyCategory.USER)

    async def resolve_counterpart(self, sender: Party) -> Party | None:
        """Return the party the sender's messages should go to, if connected."""
        if await self._broker.is_connected(sender, ConnectionProfile.OWNER):
            return await self._broker.get_counterpart(sender)
        if await self._broker.is_connected(sender, ConnectionProfile.CLIENT):
            return await self._broker.get_counterpart(sender)
        return None

    def on_delivered(self, connection: tuple[Party, Party]) -> None:
        """Record that a message was delivered over a connection.

        Args:
            connection: (owner, client) pair.
        """
        owner, client = connection
        self._last_activity[owner] = self._clock()
        logger.debug("Delivered over connection: owner=%s, client=%s", owner, client)

    def last_activity(self, owner: Party) -> datetime | None:
        """When a message last went over the owner's connection."""
        return self._last_activity.get(owner)

    def _on_result(self, result: RouterResult) -> None:
        if result.type is ResultType.DISCONNECTED and result.owner is not None:
            self._last_activity.pop(result.owner, None)
