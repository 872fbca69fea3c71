"""Handler for commands typed by parties.

Agents in an aggregation conversation manage pending requests with
``!requests``, ``!accept`` and ``!reject``; either side of a connection
leaves it with ``!end``.
"""

import logging

from partyline.application.use_cases import (
    AcceptRequestUseCase,
    EndConnectionUseCase,
    RejectRequestUseCase,
)
from partyline.application.use_cases.helpers import notify
from partyline.application.use_cases.messages import display_name
from partyline.domain.entities import ErrorReason, Party, ResultType, RouterResult
from partyline.domain.services import MessagingService, PartyRegistry

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "!"
AGENT_COMMANDS = frozenset({"accept", "reject", "requests"})

HELP_TEXT = (
    "Commands: `!requests` (list pending requests), "
    "`!accept [user]`, `!reject [user]`, `!end`"
)
AGENTS_ONLY_TEXT = "`!{command}` can only be used in an agent channel."
NO_PENDING_TEXT = "There are no pending requests."
REQUEST_NOT_FOUND_TEXT = "No pending request from {target}."


def parse_command(text: str) -> tuple[str, str | None] | None:
    """Split a command message into name and optional argument.

    Args:
        text: Message text.

    Returns:
        (command, argument) or None if the text is not a command.
    """
    stripped = text.strip()
    if not stripped.startswith(COMMAND_PREFIX):
        return None
    parts = stripped[len(COMMAND_PREFIX) :].split(maxsplit=1)
    if not parts:
        return None
    argument = parts[1].strip() if len(parts) > 1 else None
    return parts[0].lower(), argument or None


class CommandHandler:
    """Dispatch parsed commands to use cases."""

    def __init__(
        self,
        registry: PartyRegistry,
        accept_use_case: AcceptRequestUseCase,
        reject_use_case: RejectRequestUseCase,
        end_use_case: EndConnectionUseCase,
        messaging_service: MessagingService,
    ) -> None:
        """Initialize the handler.

        Args:
            registry: Party registry.
            accept_use_case: Use case for accepting requests.
            reject_use_case: Use case for rejecting requests.
            end_use_case: Use case for ending connections.
            messaging_service: Service for sending replies.
        """
        self._registry = registry
        self._accept_use_case = accept_use_case
        self._reject_use_case = reject_use_case
        self._end_use_case = end_use_case
        self._messaging_service = messaging_service

    async def handle(
        self, sender: Party, command: str, target_account_id: str | None = None
    ) -> list[RouterResult]:
        """Handle a command.

        Args:
            sender: Party that typed the command.
            command: Command name without prefix.
            target_account_id: Account ID the command refers to, if any.

        Returns:
            Results of the executed operation(s).
        """
        logger.info("Command '%s' from %s", command, sender)

        if command == "end":
            return await self._end_use_case.execute(sender)

        if command not in AGENT_COMMANDS:
            await notify(self._messaging_service, sender, HELP_TEXT)
            return [RouterResult.no_action()]

        if not await self._registry.is_associated_with_aggregation(sender):
            text = AGENTS_ONLY_TEXT.format(command=command)
            await notify(self._messaging_service, sender, text)
            return [
                RouterResult(
                    type=ResultType.NO_ACTION_TAKEN, owner=sender, message=text
                )
            ]

        if command == "requests":
            await self._list_requests(sender)
            return [RouterResult.no_action()]

        client = await self._find_request(target_account_id)
        if client is None:
            text = (
                REQUEST_NOT_FOUND_TEXT.format(target=target_account_id)
                if target_account_id
                else NO_PENDING_TEXT
            )
            await notify(self._messaging_service, sender, text)
            return [
                RouterResult(
                    type=ResultType.ERROR,
                    owner=sender,
                    reason=ErrorReason.NOT_FOUND,
                    message=text,
                )
            ]

        if command == "accept":
            return [await self._accept_use_case.execute(sender, client)]
        return [await self._reject_use_case.execute(client, sender)]

    async def _find_request(self, target_account_id: str | None) -> Party | None:
        pending = await self._registry.pending_requests()
        if target_account_id is None:
            return pending[0] if pending else None
        for party in pending:
            if party.channel_account_id == target_account_id:
                return party
        return None

    async def _list_requests(self, sender: Party) -> None:
        pending = await self._registry.pending_requests()
        if not pending:
            await notify(self._messaging_service, sender, NO_PENDING_TEXT)
            return

        lines = [
            f"{i}. {display_name(party)} (waiting since "
            f"{party.requested_at:%Y-%m-%d %H:%M} UTC)"
            for i, party in enumerate(pending, start=1)
        ]
        await notify(self._messaging_service, sender, "\n".join(lines))
