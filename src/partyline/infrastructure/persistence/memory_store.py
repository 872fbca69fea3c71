"""In-memory implementation of PartyStore."""

from datetime import datetime

from partyline.domain.entities import Party, PartyCategory
from partyline.domain.repositories import PartyPredicate


class InMemoryPartyStore:
    """In-memory PartyStore.

    Keeps the stored Party instances themselves, so timestamps changed by
    the broker are visible to every holder of the same instance. None of
    the methods awaits, which makes each of them atomic on the event loop.
    """

    def __init__(self) -> None:
        self._parties: dict[PartyCategory, list[Party]] = {
            category: [] for category in PartyCategory
        }
        self._connections: dict[Party, Party] = {}

    async def insert(self, category: PartyCategory, party: Party) -> bool:
        parties = self._parties[category]
        if party in parties:
            return False
        parties.append(party)
        return True

    async def delete(self, category: PartyCategory, party: Party) -> bool:
        parties = self._parties[category]
        if party not in parties:
            return False
        parties.remove(party)
        return True

    async def query(
        self,
        category: PartyCategory,
        predicate: PartyPredicate | None = None,
    ) -> list[Party]:
        parties = self._parties[category]
        if predicate is None:
            return list(parties)
        return [p for p in parties if predicate(p)]

    async def insert_connection(self, owner: Party, client: Party) -> bool:
        if owner in self._connections:
            return False
        self._connections[owner] = client
        return True

    async def delete_connection(self, owner: Party) -> Party | None:
        return self._connections.pop(owner, None)

    async def query_connections(self) -> list[tuple[Party, Party]]:
        return list(self._connections.items())

    async def update_timestamps(
        self,
        party: Party,
        requested_at: datetime | None = None,
        connected_at: datetime | None = None,
    ) -> None:
        stored = [p for parties in self._parties.values() for p in parties]
        stored.extend(p for pair in self._connections.items() for p in pair)
        for p in stored:
            if p != party:
                continue
            if requested_at is not None:
                p.requested_at = requested_at
            if connected_at is not None:
                p.connected_at = connected_at
