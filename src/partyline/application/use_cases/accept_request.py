"""Accept request use case."""

import logging

from partyline.application.use_cases import messages
from partyline.application.use_cases.helpers import notify
from partyline.domain.entities import (
    ErrorReason,
    Party,
    PartyCategory,
    ResultType,
    RouterResult,
)
from partyline.domain.services import ConnectionBroker, MessagingService, PartyRegistry

logger = logging.getLogger(__name__)


class AcceptRequestUseCase:
    """Use case for an owner (agent) accepting a client's request.

    When a direct conversation is requested, the owner is moved into a new
    1:1 conversation with the bot before the connection is made; if that
    fails the owner's current conversation is used.
    """

    def __init__(
        self,
        registry: PartyRegistry,
        broker: ConnectionBroker,
        messaging_service: MessagingService,
        create_direct_conversation: bool = True,
    ) -> None:
        """Initialize the use case.

        Args:
            registry: Party registry.
            broker: Connection broker.
            messaging_service: Service for sending messages.
            create_direct_conversation: Open a 1:1 conversation for the owner.
        """
        self._registry = registry
        self._broker = broker
        self._messaging_service = messaging_service
        self._create_direct_conversation = create_direct_conversation

    async def execute(self, owner: Party, client: Party) -> RouterResult:
        """Execute the use case.

        Args:
            owner: Accepting party.
            client: Party whose request is accepted.

        Returns:
            The broker's connect result, or ERROR (BOT_NOT_FOUND) when the
            bot is unknown in the owner's conversation.
        """
        bot_party = await self._registry.find_bot_party(
            owner.channel_id, owner.conversation_id
        )
        if bot_party is None:
            return RouterResult(
                type=ResultType.ERROR,
                owner=owner,
                client=client,
                reason=ErrorReason.BOT_NOT_FOUND,
                message="Failed to find the bot instance",
            )

        if self._create_direct_conversation:
            owner = await self._move_to_direct_conversation(owner, bot_party)

        result = await self._broker.connect(owner, client)
        if result.type is not ResultType.CONNECTED:
            return result

        await notify(
            self._messaging_service,
            owner,
            messages.CONNECTED_OWNER.format(name=messages.display_name(client)),
        )
        await notify(
            self._messaging_service,
            client,
            messages.CONNECTED_CLIENT.format(name=messages.display_name(owner)),
        )
        return result

    async def _move_to_direct_conversation(
        self, owner: Party, bot_party: Party
    ) -> Party:
        conversation_id = await self._messaging_service.open_direct_conversation(owner)
        if not conversation_id:
            logger.warning(
                "Could not open a direct conversation for %s, using %s",
                owner,
                owner.conversation_id,
            )
            return owner

        direct_owner = Party(
            service_url=owner.service_url,
            channel_id=owner.channel_id,
            conversation_id=conversation_id,
            channel_account_id=owner.channel_account_id,
            channel_account_name=owner.channel_account_name,
        )
        direct_bot = Party(
            service_url=bot_party.service_url,
            channel_id=bot_party.channel_id,
            conversation_id=conversation_id,
            channel_account_id=bot_party.channel_account_id,
            channel_account_name=bot_party.channel_account_name,
        )
        await self._registry.add_party(direct_owner, PartyCategory.USER)
        await self._registry.add_party(direct_bot, PartyCategory.BOT)
        return direct_owner
