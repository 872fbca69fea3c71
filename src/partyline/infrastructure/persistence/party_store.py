"""SQLite implementation of PartyStore."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from partyline.domain.entities import Party, PartyCategory
from partyline.domain.repositories import PartyPredicate
from partyline.infrastructure.persistence.datetime_utils import from_column, to_column
from partyline.infrastructure.persistence.exceptions import DatabaseError
from partyline.infrastructure.persistence.models import ConnectionModel, PartyModel


def identity_key(party: Party) -> str:
    """パーティの同一性キーを生成する

    NULL を含むユニーク制約は SQLite では効かないため、
    同一性フィールドを JSON 文字列にまとめて1列で比較する。

    Args:
        party: 対象のパーティ

    Returns:
        同一性キー
    """
    return json.dumps(
        [
            party.service_url,
            party.channel_id,
            party.channel_account_id,
            party.conversation_id,
        ]
    )


class SQLitePartyStore:
    """SQLite 版 PartyStore 実装

    パーティと接続情報の CRUD 操作を SQLite データベースに対して行う。
    重複判定はユニーク制約に任せ、存在確認と書き込みを分けない。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def insert(self, category: PartyCategory, party: Party) -> bool:
        """パーティをカテゴリに追加する

        Args:
            category: 追加先カテゴリ
            party: 追加するパーティ

        Returns:
            追加した場合 True、既に存在する場合 False

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        model = self._to_model(category, party)
        async with self._session_factory() as session:
            try:
                session.add(model)
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to insert party {party}: {e}") from e
        return True

    async def delete(self, category: PartyCategory, party: Party) -> bool:
        """パーティをカテゴリから削除する

        Returns:
            削除した場合 True、存在しない場合 False

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        async with self._session_factory() as session:
            try:
                key = identity_key(party)
                stmt = delete(PartyModel).where(
                    PartyModel.category == category.value,  # type: ignore[arg-type]
                    PartyModel.identity_key == key,  # type: ignore[arg-type]
                )
                result = await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to delete party {party}: {e}") from e
            return result.rowcount > 0  # type: ignore[union-attr]

    async def query(
        self,
        category: PartyCategory,
        predicate: PartyPredicate | None = None,
    ) -> list[Party]:
        """カテゴリ内のパーティを追加順に取得する

        Args:
            category: 検索対象カテゴリ
            predicate: 絞り込み条件（省略時は全件）

        Returns:
            パーティのリスト
        """
        async with self._session_factory() as session:
            try:
                stmt = (
                    select(PartyModel)
                    .where(PartyModel.category == category.value)
                    .order_by(PartyModel.id)  # type: ignore[arg-type]
                )
                result = await session.exec(stmt)
                models = result.all()
            except SQLAlchemyError as e:
                raise DatabaseError(f"Failed to query {category.value}: {e}") from e

        parties = [self._to_entity(m) for m in models]
        if predicate is None:
            return parties
        return [p for p in parties if predicate(p)]

    async def insert_connection(self, owner: Party, client: Party) -> bool:
        """接続を追加する

        Returns:
            追加した場合 True、オーナーが既に接続を持つ場合 False

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        model = self._to_connection_model(owner, client)
        async with self._session_factory() as session:
            try:
                session.add(model)
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to insert connection: {e}") from e
        return True

    async def delete_connection(self, owner: Party) -> Party | None:
        """オーナーの接続を削除する

        Returns:
            削除した接続のクライアント（存在しない場合は None）

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        key = identity_key(owner)
        async with self._session_factory() as session:
            try:
                result = await session.exec(
                    select(ConnectionModel).where(ConnectionModel.owner_key == key)
                )
                model = result.first()
                if model is None:
                    return None

                deleted = await session.execute(
                    delete(ConnectionModel).where(
                        ConnectionModel.id == model.id  # type: ignore[arg-type]
                    )
                )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to delete connection: {e}") from e

        if deleted.rowcount == 0:  # type: ignore[union-attr]
            # Deleted concurrently
            return None
        return self._to_connection_pair(model)[1]

    async def query_connections(self) -> list[tuple[Party, Party]]:
        """全接続を追加順に取得する"""
        async with self._session_factory() as session:
            try:
                stmt = select(ConnectionModel).order_by(
                    ConnectionModel.id  # type: ignore[arg-type]
                )
                result = await session.exec(stmt)
                models = result.all()
            except SQLAlchemyError as e:
                raise DatabaseError(f"Failed to query connections: {e}") from e
        return [self._to_connection_pair(m) for m in models]

    async def update_timestamps(
        self,
        party: Party,
        requested_at: datetime | None = None,
        connected_at: datetime | None = None,
    ) -> None:
        """パーティ行と接続行のライフサイクル時刻を更新する

        Raises:
            DatabaseError: データベース操作に失敗した場合
        """
        values: dict[str, datetime | None] = {}
        if requested_at is not None:
            values["requested_at"] = to_column(requested_at)
        if connected_at is not None:
            values["connected_at"] = to_column(connected_at)
        if not values:
            return

        key = identity_key(party)
        async with self._session_factory() as session:
            try:
                await session.execute(
                    update(PartyModel)
                    .where(PartyModel.identity_key == key)  # type: ignore[arg-type]
                    .values(**values)
                )
                if connected_at is not None:
                    for key_column, value_column in (
                        (ConnectionModel.owner_key, "owner_connected_at"),
                        (ConnectionModel.client_key, "client_connected_at"),
                    ):
                        await session.execute(
                            update(ConnectionModel)
                            .where(key_column == key)  # type: ignore[arg-type]
                            .values({value_column: values["connected_at"]})
                        )
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(
                    f"Failed to update timestamps of {party}: {e}"
                ) from e

    def _to_model(self, category: PartyCategory, party: Party) -> PartyModel:
        """エンティティをモデルに変換する"""
        return PartyModel(
            category=category.value,
            identity_key=identity_key(party),
            service_url=party.service_url,
            channel_id=party.channel_id,
            channel_account_id=party.channel_account_id,
            channel_account_name=party.channel_account_name,
            conversation_id=party.conversation_id,
            conversation_name=party.conversation_name,
            requested_at=to_column(party.requested_at),
            connected_at=to_column(party.connected_at),
        )

    def _to_entity(self, model: PartyModel) -> Party:
        """モデルをエンティティに変換する"""
        return Party(
            service_url=model.service_url,
            channel_id=model.channel_id,
            conversation_id=model.conversation_id,
            channel_account_id=model.channel_account_id,
            channel_account_name=model.channel_account_name,
            conversation_name=model.conversation_name,
            requested_at=from_column(model.requested_at),
            connected_at=from_column(model.connected_at),
        )

    def _to_connection_model(self, owner: Party, client: Party) -> ConnectionModel:
        return ConnectionModel(
            owner_key=identity_key(owner),
            owner_service_url=owner.service_url,
            owner_channel_id=owner.channel_id,
            owner_account_id=owner.channel_account_id,
            owner_account_name=owner.channel_account_name,
            owner_conversation_id=owner.conversation_id,
            owner_conversation_name=owner.conversation_name,
            owner_connected_at=to_column(owner.connected_at),
            client_key=identity_key(client),
            client_service_url=client.service_url,
            client_channel_id=client.channel_id,
            client_account_id=client.channel_account_id,
            client_account_name=client.channel_account_name,
            client_conversation_id=client.conversation_id,
            client_conversation_name=client.conversation_name,
            client_connected_at=to_column(client.connected_at),
        )

    def _to_connection_pair(self, model: ConnectionModel) -> tuple[Party, Party]:
        owner = Party(
            service_url=model.owner_service_url,
            channel_id=model.owner_channel_id,
            conversation_id=model.owner_conversation_id,
            channel_account_id=model.owner_account_id,
            channel_account_name=model.owner_account_name,
            conversation_name=model.owner_conversation_name,
            connected_at=from_column(model.owner_connected_at),
        )
        client = Party(
            service_url=model.client_service_url,
            channel_id=model.client_channel_id,
            conversation_id=model.client_conversation_id,
            channel_account_id=model.client_account_id,
            channel_account_name=model.client_account_name,
            conversation_name=model.client_conversation_name,
            connected_at=from_column(model.client_connected_at),
        )
        return owner, client
