"""Route message use case."""

import logging

from partyline.application.services import MessageForwarder
from partyline.application.use_cases import messages
from partyline.application.use_cases.helpers import notify
from partyline.config import RoutingConfig
from partyline.domain.entities import (
    ConnectionProfile,
    Party,
    ResultType,
    RouterResult,
)
from partyline.domain.exceptions import ConversationNotAccessibleError
from partyline.domain.services import ConnectionBroker, MessagingService, PartyRegistry

logger = logging.getLogger(__name__)


class RouteMessageUseCase:
    """Use case for routing an inbound message.

    Forwards the message to the sender's counterpart when the sender is
    connected; otherwise creates a connection request if auto-request is
    enabled.
    """

    def __init__(
        self,
        registry: PartyRegistry,
        broker: ConnectionBroker,
        forwarder: MessageForwarder,
        messaging_service: MessagingService,
        config: RoutingConfig,
    ) -> None:
        """Initialize the use case.

        Args:
            registry: Party registry.
            broker: Connection broker.
            forwarder: Resolves counterparts and tracks activity.
            messaging_service: Service for sending messages.
            config: Routing configuration.
        """
        self._registry = registry
        self._broker = broker
        self._forwarder = forwarder
        self._messaging_service = messaging_service
        self._config = config

    async def execute(self, sender: Party, recipient: Party, text: str) -> RouterResult:
        """Execute the use case.

        Processing flow:
        1. Make sure both parties are tracked
        2. Forward to the counterpart if the sender is connected
        3. Otherwise request a connection (if enabled)

        Args:
            sender: Party that sent the message.
            recipient: The bot's party in the same conversation.
            text: Message text.

        Returns:
            FORWARDED / FAILED_TO_FORWARD when connected, the request
            result when a request was made, NO_ACTION_TAKEN otherwise.
        """
        # 1. Make sure both parties are tracked
        await self._forwarder.track_parties(sender, recipient)

        # 2. Forward if connected
        counterpart = await self._forwarder.resolve_counterpart(sender)
        if counterpart is not None:
            return await self._forward(sender, counterpart, text)

        # 3. Request a connection
        if not self._config.auto_request:
            return RouterResult.no_action()

        result = await self._broker.request_connection(
            sender, self._config.reject_if_no_aggregation
        )
        await self._notify_request_result(result, sender)
        return result

    async def _forward(
        self, sender: Party, counterpart: Party, text: str
    ) -> RouterResult:
        if await self._broker.is_connected(sender, ConnectionProfile.OWNER):
            owner, client = sender, counterpart
        else:
            owner, client = counterpart, sender

        if self._config.add_sender_name:
            text = f"{messages.display_name(sender)}: {text}"

        try:
            await self._messaging_service.send_message(counterpart, text)
        except ConversationNotAccessibleError as e:
            logger.warning("Failed to forward message to %s: %s", counterpart, e)
            return RouterResult(
                type=ResultType.FAILED_TO_FORWARD,
                owner=owner,
                client=client,
                message=str(e),
            )

        self._forwarder.on_delivered((owner, client))
        return RouterResult(type=ResultType.FORWARDED, owner=owner, client=client)

    async def _notify_request_result(self, result: RouterResult, sender: Party) -> None:
        if result.type is ResultType.REQUESTED:
            await notify(self._messaging_service, sender, messages.REQUEST_SENT)
            text = messages.NEW_REQUEST.format(name=messages.display_name(sender))
            for aggregation in await self._registry.aggregation_parties():
                await notify(self._messaging_service, aggregation, text)
        elif result.type is ResultType.ALREADY_REQUESTED:
            await notify(self._messaging_service, sender, messages.REQUEST_ALREADY_SENT)
        elif result.type is ResultType.NO_AGENTS_AVAILABLE:
            await notify(self._messaging_service, sender, messages.NO_AGENTS_AVAILABLE)
