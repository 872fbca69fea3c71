"""End connection use case."""

from partyline.application.use_cases import messages
from partyline.application.use_cases.helpers import notify
from partyline.domain.entities import ConnectionProfile, Party, ResultType, RouterResult
from partyline.domain.services import ConnectionBroker, MessagingService


class EndConnectionUseCase:
    """Use case for leaving a 1:1 conversation.

    Either side may end it. Both sides are told the conversation ended.
    """

    def __init__(
        self,
        broker: ConnectionBroker,
        messaging_service: MessagingService,
    ) -> None:
        self._broker = broker
        self._messaging_service = messaging_service

    async def execute(self, party: Party) -> list[RouterResult]:
        """Disconnect every connection the party takes part in.

        Args:
            party: Party ending the conversation.

        Returns:
            The broker's disconnect results.
        """
        results = await self._broker.disconnect(party, ConnectionProfile.ANY)

        for result in results:
            if result.type is not ResultType.DISCONNECTED:
                continue
            if result.owner is not None:
                await self._notify_ended(result.owner, result.client)
            if result.client is not None:
                await self._notify_ended(result.client, result.owner)

        return results

    async def _notify_ended(self, party: Party, counterpart: Party | None) -> None:
        text = messages.DISCONNECTED.format(name=messages.display_name(counterpart))
        await notify(self._messaging_service, party, text)
