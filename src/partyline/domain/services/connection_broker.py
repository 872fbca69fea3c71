"""Connection broker service."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from partyline.domain.entities import (
    NOT_SET,
    ConnectionProfile,
    ErrorReason,
    Party,
    PartyCategory,
    ResultType,
    RouterResult,
)
from partyline.domain.exceptions import PartyValidationError, ValidationReason
from partyline.domain.services.party_registry import PartyRegistry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ResultHook = Callable[[RouterResult], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionBroker:
    """Pending request and 1:1 connection state machine.

    Each party goes Unconnected -> PendingRequest -> Connected -> Unconnected.
    Every check-then-act rule is decided by the boolean result of an atomic
    store primitive, so concurrent calls for the same party cannot both
    succeed. Lifecycle timestamps are written to the stored records; the
    instances passed in are stamped as well.
    """

    def __init__(
        self,
        registry: PartyRegistry,
        clock: Clock | None = None,
        result_hook: ResultHook | None = None,
    ) -> None:
        """Initialize the broker and attach it to the registry.

        Args:
            registry: Party registry the broker works on.
            clock: Returns the current time. Defaults to UTC now.
            result_hook: Optional observer called with every result.
        """
        self._registry = registry
        self._store = registry.store
        self._clock = clock or utc_now
        self._result_hooks: list[ResultHook] = []
        if result_hook is not None:
            self._result_hooks.append(result_hook)
        # Instances handed to connect(), keyed by owner
        self._connected_instances: dict[Party, tuple[Party, Party]] = {}
        registry.attach_broker(self)

    async def request_connection(
        self,
        requestor: Party,
        reject_if_no_aggregation: bool = False,
    ) -> RouterResult:
        """Create a pending request for the requestor.

        Args:
            requestor: Party requesting a connection.
            reject_if_no_aggregation: Return NO_AGENTS_AVAILABLE when no
                aggregation party exists.

        Returns:
            REQUESTED, ALREADY_REQUESTED, NO_AGENTS_AVAILABLE or REJECTED.

        Raises:
            PartyValidationError: If requestor is None.
        """
        if requestor is None:
            raise PartyValidationError(ValidationReason.MISSING_PARTY)

        await self._registry.add_party(requestor, PartyCategory.USER)

        if await self._registry.is_associated_with_aggregation(requestor):
            return self.report(
                RouterResult(
                    type=ResultType.REJECTED,
                    client=requestor,
                    reason=ErrorReason.AGGREGATION_PARTY_CANNOT_REQUEST,
                    message=(
                        f"{requestor} is associated with aggregation and "
                        "cannot request a connection"
                    ),
                )
            )

        if await self._store.query(PartyCategory.PENDING_REQUEST, requestor.__eq__):
            return self.report(
                RouterResult(type=ResultType.ALREADY_REQUESTED, client=requestor)
            )

        if reject_if_no_aggregation and not await self._registry.aggregation_parties():
            return self.report(
                RouterResult(type=ResultType.NO_AGENTS_AVAILABLE, client=requestor)
            )

        now = self._clock()
        previous = requestor.requested_at
        requestor.requested_at = now
        if not await self._store.insert(PartyCategory.PENDING_REQUEST, requestor):
            # Lost the race against a concurrent request for the same party
            requestor.requested_at = previous
            return self.report(
                RouterResult(type=ResultType.ALREADY_REQUESTED, client=requestor)
            )
        await self._store.update_timestamps(requestor, requested_at=now)

        logger.info("Connection requested: %s", requestor)
        return self.report(RouterResult(type=ResultType.REQUESTED, client=requestor))

    async def cancel_request(
        self,
        requestor: Party,
        result_type: ResultType = ResultType.REJECTED,
    ) -> RouterResult:
        """Withdraw or decline a pending request.

        Args:
            requestor: Party whose request to remove.
            result_type: Result reported when the request was removed.

        Returns:
            result_type if the request was removed, ERROR (NOT_FOUND)
            otherwise.
        """
        if requestor is None:
            raise PartyValidationError(ValidationReason.MISSING_PARTY)

        if not await self._store.delete(PartyCategory.PENDING_REQUEST, requestor):
            return self.report(
                RouterResult(
                    type=ResultType.ERROR,
                    client=requestor,
                    reason=ErrorReason.NOT_FOUND,
                    message=f"No pending request found for {requestor}",
                )
            )

        requestor.reset_requested_at()
        await self._store.update_timestamps(requestor, requested_at=NOT_SET)
        logger.info("Connection request removed: %s", requestor)
        return self.report(RouterResult(type=result_type, client=requestor))

    async def connect(self, owner: Party | None, client: Party | None) -> RouterResult:
        """Connect owner and client and clear the client's pending request.

        An existing connection of the owner is never overwritten.

        Returns:
            CONNECTED, ALREADY_CONNECTED or ERROR (MISSING_PARTY).
        """
        if owner is None or client is None:
            return self.report(
                RouterResult(
                    type=ResultType.ERROR,
                    owner=owner,
                    client=client,
                    reason=ErrorReason.MISSING_PARTY,
                    message="Either the owner or the client is missing",
                )
            )

        now = self._clock()
        previous_owner_time = owner.connected_at
        previous_client_time = client.connected_at
        owner.connected_at = now
        client.connected_at = now

        if not await self._store.insert_connection(owner, client):
            owner.connected_at = previous_owner_time
            client.connected_at = previous_client_time
            return self.report(
                RouterResult(
                    type=ResultType.ALREADY_CONNECTED,
                    owner=owner,
                    client=client,
                    reason=ErrorReason.ALREADY_CONNECTED,
                    message=f"{owner} already owns a connection",
                )
            )

        # No pending request is fine here
        await self._store.delete(PartyCategory.PENDING_REQUEST, client)
        client.reset_requested_at()
        await self._store.update_timestamps(owner, connected_at=now)
        await self._store.update_timestamps(
            client, requested_at=NOT_SET, connected_at=now
        )
        self._connected_instances[owner] = (owner, client)

        logger.info("Connected: owner=%s, client=%s", owner, client)
        return self.report(
            RouterResult(type=ResultType.CONNECTED, owner=owner, client=client)
        )

    async def disconnect(
        self,
        party: Party,
        profile: ConnectionProfile = ConnectionProfile.ANY,
    ) -> list[RouterResult]:
        """Remove the connections the party takes part in.

        OWNER stops at the first match since owners are unique; CLIENT and
        ANY scan every connection.

        Args:
            party: Connected party.
            profile: Role(s) of the connection to match.

        Returns:
            One DISCONNECTED per removed connection, or a single
            NO_ACTION_TAKEN.
        """
        if party is None:
            raise PartyValidationError(ValidationReason.MISSING_PARTY)

        owners: list[Party] = []
        for owner, client in await self._store.query_connections():
            if self._matches(party, owner, client, profile):
                owners.append(owner)
                if profile is ConnectionProfile.OWNER:
                    break

        results: list[RouterResult] = []
        for owner in owners:
            client = await self._store.delete_connection(owner)
            if client is None:
                continue
            await self._store.update_timestamps(owner, connected_at=NOT_SET)
            await self._store.update_timestamps(client, connected_at=NOT_SET)
            held = self._connected_instances.pop(owner, ())
            for p in (owner, client, party, *held):
                if p == owner or p == client:
                    p.reset_connected_at()
            logger.info("Disconnected: owner=%s, client=%s", owner, client)
            result = RouterResult(
                type=ResultType.DISCONNECTED, owner=owner, client=client
            )
            results.append(self.report(result))

        if not results:
            return [RouterResult.no_action()]
        return results

    async def get_counterpart(self, party: Party | None) -> Party | None:
        """Return the other side of the party's connection, if any."""
        if party is None:
            return None

        connections = await self._store.query_connections()
        for owner, client in connections:
            if client == party:
                return owner
        for owner, client in connections:
            if owner == party:
                return client
        return None

    async def is_connected(
        self,
        party: Party | None,
        profile: ConnectionProfile = ConnectionProfile.ANY,
    ) -> bool:
        if party is None:
            return False
        return any(
            self._matches(party, owner, client, profile)
            for owner, client in await self._store.query_connections()
        )

    async def connections(self) -> tuple[tuple[Party, Party], ...]:
        """Snapshot of (owner, client) pairs."""
        return tuple(await self._store.query_connections())

    @staticmethod
    def _matches(
        party: Party, owner: Party, client: Party, profile: ConnectionProfile
    ) -> bool:
        if profile is ConnectionProfile.OWNER:
            return owner == party
        if profile is ConnectionProfile.CLIENT:
            return client == party
        return owner == party or client == party

    def add_result_hook(self, hook: ResultHook) -> None:
        """Register another observer of every result."""
        self._result_hooks.append(hook)

    def report(self, result: RouterResult) -> RouterResult:
        """Pass a result to every hook and return it."""
        logger.debug("Router result: %s", result.type.value)
        for hook in self._result_hooks:
            hook(result)
        return result
