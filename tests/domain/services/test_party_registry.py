"""Tests for PartyRegistry."""

import pytest

from partyline.domain.entities import Party, PartyCategory, ResultType
from partyline.domain.exceptions import PartyValidationError, ValidationReason
from partyline.domain.repositories import PartyStore
from partyline.domain.services import ConnectionBroker, PartyRegistry


def create_test_party(
    account_id: str | None = "U123",
    conversation_id: str = "D123",
    name: str | None = None,
) -> Party:
    """Create a test Party entity."""
    return Party(
        service_url="https://slack.com/api/",
        channel_id="slack",
        conversation_id=conversation_id,
        channel_account_id=account_id,
        channel_account_name=name,
    )


@pytest.fixture
def registry(store: PartyStore) -> PartyRegistry:
    """Create a registry with an attached broker."""
    registry = PartyRegistry(store)
    ConnectionBroker(registry)
    return registry


@pytest.fixture
def broker(registry: PartyRegistry) -> ConnectionBroker:
    """Create a second broker on the same registry."""
    return ConnectionBroker(registry)


class TestAddParty:
    """add_party method tests."""

    async def test_add_user(self, registry: PartyRegistry) -> None:
        party = create_test_party()

        assert await registry.add_party(party)
        assert await registry.user_parties() == (party,)

    async def test_add_is_idempotent(self, registry: PartyRegistry) -> None:
        """Test that adding the same party twice stores it once."""
        assert await registry.add_party(create_test_party())
        assert not await registry.add_party(create_test_party(name="renamed"))

        assert len(await registry.user_parties()) == 1

    async def test_add_none_returns_false(self, registry: PartyRegistry) -> None:
        assert not await registry.add_party(None)

    async def test_add_pending_request_raises(self, registry: PartyRegistry) -> None:
        with pytest.raises(ValueError):
            await registry.add_party(
                create_test_party(), PartyCategory.PENDING_REQUEST
            )

    async def test_bot_without_account_raises(self, registry: PartyRegistry) -> None:
        """Test that an invalid bot party is rejected before any insert."""
        with pytest.raises(PartyValidationError) as exc_info:
            await registry.add_party(
                create_test_party(account_id=None), PartyCategory.BOT
            )

        assert exc_info.value.reason is ValidationReason.MISSING_ACCOUNT
        assert await registry.bot_parties() == ()

    async def test_aggregation_with_account_raises(
        self, registry: PartyRegistry
    ) -> None:
        with pytest.raises(PartyValidationError) as exc_info:
            await registry.add_aggregation_party(create_test_party())

        assert exc_info.value.reason is ValidationReason.UNEXPECTED_ACCOUNT
        assert await registry.aggregation_parties() == ()

    async def test_same_party_in_several_categories(
        self, registry: PartyRegistry
    ) -> None:
        party = create_test_party()

        assert await registry.add_party(party, PartyCategory.USER)
        assert await registry.add_party(party, PartyCategory.BOT)

        assert await registry.user_parties() == (party,)
        assert await registry.bot_parties() == (party,)


class TestAggregation:
    """Aggregation party tests."""

    async def test_add_and_remove(self, registry: PartyRegistry) -> None:
        inbox = create_test_party(account_id=None, conversation_id="C_AGENTS")

        assert await registry.add_aggregation_party(inbox)
        assert await registry.aggregation_parties() == (inbox,)

        assert await registry.remove_aggregation_party(inbox)
        assert not await registry.remove_aggregation_party(inbox)
        assert await registry.aggregation_parties() == ()

    async def test_is_associated_ignores_account(
        self, registry: PartyRegistry
    ) -> None:
        """Test that any party in the aggregation conversation is associated."""
        await registry.add_aggregation_party(
            create_test_party(account_id=None, conversation_id="C_AGENTS")
        )

        agent = create_test_party(account_id="U_AGENT", conversation_id="C_AGENTS")
        user = create_test_party(account_id="U_USER", conversation_id="D_USER")

        assert await registry.is_associated_with_aggregation(agent)
        assert not await registry.is_associated_with_aggregation(user)
        assert not await registry.is_associated_with_aggregation(None)


class TestRemoveParty:
    """remove_party method tests."""

    async def test_nothing_to_remove(self, registry: PartyRegistry) -> None:
        results = await registry.remove_party(create_test_party())

        assert [r.type for r in results] == [ResultType.NO_ACTION_TAKEN]

    async def test_none_raises(self, registry: PartyRegistry) -> None:
        with pytest.raises(PartyValidationError):
            await registry.remove_party(None)  # type: ignore[arg-type]

    async def test_removes_account_in_every_conversation(
        self, registry: PartyRegistry
    ) -> None:
        """Test that user and bot parties of the account are all removed."""
        await registry.add_party(create_test_party(conversation_id="D1"))
        await registry.add_party(create_test_party(conversation_id="C2"))
        await registry.add_party(
            create_test_party(conversation_id="C3"), PartyCategory.BOT
        )
        other = create_test_party(account_id="U_OTHER")
        await registry.add_party(other)

        results = await registry.remove_party(create_test_party(conversation_id="X"))

        assert [r.type for r in results] == [ResultType.REMOVED] * 3
        assert await registry.user_parties() == (other,)
        assert await registry.bot_parties() == ()

    async def test_cancels_pending_request(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        party = create_test_party()
        await broker.request_connection(party)

        results = await registry.remove_party(party)

        assert [r.type for r in results] == [
            ResultType.REMOVED,
            ResultType.REQUEST_CANCELLED,
        ]
        assert await registry.pending_requests() == ()

    async def test_cascades_into_connections(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        """Test that removing the owner disconnects it from the client."""
        client = create_test_party(account_id="U_A", conversation_id="D_A")
        owner = create_test_party(account_id="U_B", conversation_id="D_B")
        await registry.add_party(owner)
        await broker.request_connection(client)
        await broker.connect(owner, client)

        results = await registry.remove_party(owner)

        types = [r.type for r in results]
        assert types == [ResultType.REMOVED, ResultType.DISCONNECTED]
        assert results[1].owner == owner
        assert results[1].client == client
        assert not await broker.is_connected(client)

    async def test_client_side_removal_disconnects(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        client = create_test_party(account_id="U_A", conversation_id="D_A")
        owner = create_test_party(account_id="U_B", conversation_id="D_B")
        await registry.add_party(owner)
        await broker.request_connection(client)
        await broker.connect(owner, client)

        results = await registry.remove_party(client)

        assert ResultType.DISCONNECTED in [r.type for r in results]
        assert await broker.connections() == ()

    async def test_connection_only_is_left_alone(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        """Test that connections are only cut when a record was removed."""
        client = create_test_party(account_id="U_A", conversation_id="D_A")
        owner = create_test_party(account_id="U_B", conversation_id="D_B")
        await broker.connect(owner, client)

        results = await registry.remove_party(owner)

        assert [r.type for r in results] == [ResultType.NO_ACTION_TAKEN]
        assert await broker.is_connected(owner)

    async def test_requires_broker_for_cascade(self, store: PartyStore) -> None:
        registry = PartyRegistry(store)
        broker = ConnectionBroker(registry)
        party = create_test_party()
        await broker.request_connection(party)

        detached = PartyRegistry(store)
        with pytest.raises(RuntimeError):
            await detached.remove_party(party)

    async def test_without_broker_plain_removal_works(
        self, store: PartyStore
    ) -> None:
        registry = PartyRegistry(store)
        await registry.add_party(create_test_party())

        results = await registry.remove_party(create_test_party())

        assert [r.type for r in results] == [ResultType.REMOVED]


class TestDeleteAll:
    """delete_all method tests."""

    async def test_clears_everything(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        client = create_test_party(account_id="U_A", conversation_id="D_A")
        owner = create_test_party(account_id="U_B", conversation_id="D_B")
        waiting = create_test_party(account_id="U_C", conversation_id="D_C")
        await registry.add_party(owner, PartyCategory.BOT)
        await registry.add_aggregation_party(
            create_test_party(account_id=None, conversation_id="C_AGENTS")
        )
        await broker.request_connection(client)
        await broker.request_connection(waiting)
        await broker.connect(owner, client)

        await registry.delete_all()

        assert await registry.user_parties() == ()
        assert await registry.bot_parties() == ()
        assert await registry.aggregation_parties() == ()
        assert await registry.pending_requests() == ()
        assert await broker.connections() == ()


class TestFinders:
    """Lookup helper tests."""

    async def test_find_same_account(self) -> None:
        party = create_test_party(conversation_id="D1")
        candidates = [
            create_test_party(conversation_id="C2"),
            create_test_party(account_id="U_OTHER"),
            create_test_party(account_id=None),
        ]

        assert PartyRegistry.find_same_account(party, candidates) == [candidates[0]]

    async def test_find_existing_user_party(self, registry: PartyRegistry) -> None:
        await registry.add_party(create_test_party(name="alice"))

        found = await registry.find_existing_user_party(create_test_party())

        assert found is not None
        assert found.channel_account_name == "alice"
        assert await registry.find_existing_user_party(
            create_test_party(account_id="U_NONE")
        ) is None

    async def test_find_party_by_account_and_conversation(
        self, registry: PartyRegistry
    ) -> None:
        party = create_test_party(account_id="U1", conversation_id="D1")
        await registry.add_party(party)

        find = registry.find_party_by_account_and_conversation
        assert await find("U1", "D1") == party
        assert await find("U1", "D2") is None

    async def test_find_bot_party_and_name(self, registry: PartyRegistry) -> None:
        bot = create_test_party(account_id="U_BOT", conversation_id="C1", name="router")
        await registry.add_party(bot, PartyCategory.BOT)
        user = create_test_party(account_id="U1", conversation_id="C1")

        assert await registry.find_bot_party("slack", "C1") == bot
        assert await registry.resolve_bot_name(user) == "router"
        assert await registry.resolve_bot_name(
            create_test_party(conversation_id="C_UNKNOWN")
        ) is None
        assert await registry.resolve_bot_name(None) is None

    async def test_find_connected_party_prefers_owner(
        self, registry: PartyRegistry, broker: ConnectionBroker
    ) -> None:
        """Test that owners are searched before clients."""
        first_owner = create_test_party(account_id="U_X", conversation_id="D_1")
        first_client = create_test_party(account_id="U_Y", conversation_id="D_2")
        second_owner = create_test_party(account_id="U_Y", conversation_id="D_3")
        second_client = create_test_party(account_id="U_Z", conversation_id="D_4")
        await broker.connect(first_owner, first_client)
        await broker.connect(second_owner, second_client)

        found = await registry.find_connected_party_by_channel("slack", "U_Y")

        assert found == second_owner
        assert await registry.find_connected_party_by_channel("slack", "U_Z") == (
            second_client
        )
        assert await registry.find_connected_party_by_channel("slack", "U_N") is None
