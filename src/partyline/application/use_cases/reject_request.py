"""Reject request use case."""

from partyline.application.use_cases import messages
from partyline.application.use_cases.helpers import notify
from partyline.domain.entities import Party, ResultType, RouterResult
from partyline.domain.services import ConnectionBroker, MessagingService


class RejectRequestUseCase:
    """Use case for declining a pending connection request."""

    def __init__(
        self,
        broker: ConnectionBroker,
        messaging_service: MessagingService,
    ) -> None:
        self._broker = broker
        self._messaging_service = messaging_service

    async def execute(
        self, client: Party, rejecter: Party | None = None
    ) -> RouterResult:
        """Cancel the client's request and tell the client.

        Args:
            client: Party whose request to decline.
            rejecter: Party declining the request, if any.

        Returns:
            REJECTED, or ERROR (NOT_FOUND) if no request was pending.
        """
        result = await self._broker.cancel_request(client)
        if result.type is not ResultType.REJECTED:
            return result

        await notify(self._messaging_service, client, messages.REQUEST_REJECTED)
        return RouterResult(type=ResultType.REJECTED, owner=rejecter, client=client)
