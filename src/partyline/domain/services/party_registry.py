"""Party registry service."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from partyline.domain.entities import (
    ConnectionProfile,
    Party,
    PartyCategory,
    ResultType,
    RouterResult,
)
from partyline.domain.exceptions import PartyValidationError, ValidationReason
from partyline.domain.repositories import PartyStore

if TYPE_CHECKING:
    from partyline.domain.services.connection_broker import ConnectionBroker

logger = logging.getLogger(__name__)


class PartyRegistry:
    """Categorized bookkeeping of known parties.

    Tracks users, bot instances, aggregation channels and pending requests
    on top of a PartyStore. Removing a party cascades into its pending
    request and connections through the attached ConnectionBroker.
    """

    def __init__(self, store: PartyStore) -> None:
        """Initialize the registry.

        Args:
            store: Storage backend for parties and connections.
        """
        self._store = store
        self._broker: ConnectionBroker | None = None

    @property
    def store(self) -> PartyStore:
        return self._store

    def attach_broker(self, broker: ConnectionBroker) -> None:
        """Attach the broker used for cascading removal."""
        self._broker = broker

    async def add_party(
        self,
        party: Party | None,
        category: PartyCategory = PartyCategory.USER,
    ) -> bool:
        """Add a party to a category.

        Args:
            party: Party to add.
            category: Target category.

        Returns:
            True if added, False if None or already present.

        Raises:
            PartyValidationError: If a bot party has no account ID or an
                aggregation party has one.
            ValueError: If category is PENDING_REQUEST.
        """
        if party is None:
            return False
        if category is PartyCategory.PENDING_REQUEST:
            raise ValueError(
                "Pending requests are added with ConnectionBroker.request_connection"
            )
        if category is PartyCategory.BOT and not party.has_account:
            raise PartyValidationError(
                ValidationReason.MISSING_ACCOUNT,
                f"Bot party {party} must have a channel account ID",
            )
        if category is PartyCategory.AGGREGATION and party.has_account:
            raise PartyValidationError(
                ValidationReason.UNEXPECTED_ACCOUNT,
                f"Aggregation party {party} cannot have a channel account ID",
            )

        added = await self._store.insert(category, party)
        if added:
            logger.debug("Added %s party: %s", category.value, party)
        return added

    async def add_aggregation_party(self, party: Party | None) -> bool:
        """Add a whole-channel party (e.g. a team inbox)."""
        return await self.add_party(party, PartyCategory.AGGREGATION)

    async def remove_aggregation_party(self, party: Party) -> bool:
        return await self._store.delete(PartyCategory.AGGREGATION, party)

    async def remove_party(self, party: Party) -> list[RouterResult]:
        """Remove every record of the party's account.

        User and bot parties of the same account are removed in every
        conversation, their pending requests are cancelled, and if anything
        was removed, each connection either side of which belongs to the
        account is disconnected.

        Args:
            party: Party whose account to remove.

        Returns:
            Results of every sub-operation, or a single NO_ACTION_TAKEN.

        Raises:
            PartyValidationError: If party is None.
        """
        if party is None:
            raise PartyValidationError(ValidationReason.MISSING_PARTY)

        results: list[RouterResult] = []

        for category in (PartyCategory.USER, PartyCategory.BOT):
            for match in await self._store.query(category, party.has_matching_account):
                if await self._store.delete(category, match):
                    removed = RouterResult(type=ResultType.REMOVED, client=match)
                    results.append(self._report(removed))

        for request in await self._store.query(
            PartyCategory.PENDING_REQUEST, party.has_matching_account
        ):
            result = await self._require_broker().cancel_request(
                request, ResultType.REQUEST_CANCELLED
            )
            if result.type is ResultType.REQUEST_CANCELLED:
                results.append(result)

        if results:
            owners = [
                owner
                for owner, client in await self._store.query_connections()
                if party.has_matching_account(owner)
                or party.has_matching_account(client)
            ]
            for owner in owners:
                disconnect_results = await self._require_broker().disconnect(
                    owner, ConnectionProfile.OWNER
                )
                results.extend(
                    result
                    for result in disconnect_results
                    if result.type is ResultType.DISCONNECTED
                )

        if not results:
            return [RouterResult.no_action()]

        logger.info("Removed party %s (%d results)", party, len(results))
        return results

    async def delete_all(self) -> None:
        """Delete every party, pending request and connection.

        Connections are ended through the attached broker, if any.
        """
        for owner, client in await self._store.query_connections():
            if self._broker is not None:
                await self._broker.disconnect(owner, ConnectionProfile.OWNER)
            elif await self._store.delete_connection(owner) is not None:
                owner.reset_connected_at()
                client.reset_connected_at()

        for category in PartyCategory:
            for party in await self._store.query(category):
                await self._store.delete(category, party)
                if category is PartyCategory.PENDING_REQUEST:
                    party.reset_requested_at()

        logger.info("Deleted all routing data")

    async def is_associated_with_aggregation(self, party: Party | None) -> bool:
        """Check whether the party lives in an aggregation conversation.

        The account ID is not compared since aggregation parties never
        carry one.
        """
        if party is None:
            return False

        def same_conversation(aggregation: Party) -> bool:
            return (
                aggregation.conversation_id == party.conversation_id
                and aggregation.service_url == party.service_url
                and aggregation.channel_id == party.channel_id
            )

        matches = await self._store.query(PartyCategory.AGGREGATION, same_conversation)
        return len(matches) > 0

    @staticmethod
    def find_same_account(party: Party, candidates: Iterable[Party]) -> list[Party]:
        """Return candidates belonging to the same account as party."""
        return [c for c in candidates if party.has_matching_account(c)]

    async def user_parties(self) -> tuple[Party, ...]:
        return tuple(await self._store.query(PartyCategory.USER))

    async def bot_parties(self) -> tuple[Party, ...]:
        return tuple(await self._store.query(PartyCategory.BOT))

    async def aggregation_parties(self) -> tuple[Party, ...]:
        return tuple(await self._store.query(PartyCategory.AGGREGATION))

    async def pending_requests(self) -> tuple[Party, ...]:
        """Pending requests, oldest first."""
        return tuple(await self._store.query(PartyCategory.PENDING_REQUEST))

    async def find_existing_user_party(self, party: Party) -> Party | None:
        """Find the stored user party equal to the given one."""
        matches = await self._store.query(PartyCategory.USER, party.__eq__)
        return matches[0] if matches else None

    async def find_party_by_account_and_conversation(
        self, channel_account_id: str, conversation_id: str
    ) -> Party | None:
        """Find a user party by account ID and conversation ID."""
        matches = await self._store.query(
            PartyCategory.USER,
            lambda p: p.channel_account_id == channel_account_id
            and p.conversation_id == conversation_id,
        )
        return matches[0] if matches else None

    async def find_bot_party(
        self, channel_id: str, conversation_id: str
    ) -> Party | None:
        """Find the bot's party inside a conversation."""
        matches = await self._store.query(
            PartyCategory.BOT,
            lambda p: p.channel_id == channel_id
            and p.conversation_id == conversation_id,
        )
        return matches[0] if matches else None

    async def resolve_bot_name(self, party: Party | None) -> str | None:
        """Resolve the bot's display name in the party's conversation."""
        if party is None:
            return None
        bot_party = await self.find_bot_party(party.channel_id, party.conversation_id)
        if bot_party is None:
            return None
        return bot_party.channel_account_name

    async def find_connected_party_by_channel(
        self, channel_id: str, channel_account_id: str
    ) -> Party | None:
        """Find a connected party by channel and account, owners first."""

        def matches(p: Party) -> bool:
            return (
                p.channel_id == channel_id
                and p.channel_account_id == channel_account_id
            )

        connections = await self._store.query_connections()
        for owner, _ in connections:
            if matches(owner):
                return owner
        for _, client in connections:
            if matches(client):
                return client
        return None

    def _report(self, result: RouterResult) -> RouterResult:
        if self._broker is None:
            return result
        return self._broker.report(result)

    def _require_broker(self) -> ConnectionBroker:
        if self._broker is None:
            raise RuntimeError("No ConnectionBroker attached to the registry")
        return self._broker
