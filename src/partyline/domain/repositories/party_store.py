"""Party store protocol."""

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from partyline.domain.entities import Party, PartyCategory

PartyPredicate = Callable[[Party], bool]


class PartyStore(Protocol):
    """パーティ情報ストアの抽象インターフェース

    カテゴリ別のパーティと接続情報の保存・取得を抽象化する。
    各操作は単体でアトミックであること（存在しなければ挿入、
    存在すれば削除）。業務ルールは実装に含めない。
    """

    async def insert(self, category: PartyCategory, party: Party) -> bool:
        """パーティをカテゴリに追加する

        Args:
            category: 追加先カテゴリ
            party: 追加するパーティ

        Returns:
            追加した場合 True、同一のパーティが既に存在する場合 False
        """
        ...

    async def delete(self, category: PartyCategory, party: Party) -> bool:
        """パーティをカテゴリから削除する

        Args:
            category: 削除元カテゴリ
            party: 削除するパーティ

        Returns:
            削除した場合 True、存在しない場合 False
        """
        ...

    async def query(
        self,
        category: PartyCategory,
        predicate: PartyPredicate | None = None,
    ) -> list[Party]:
        """カテゴリ内のパーティを検索する

        追加順（古い順）で返す。

        Args:
            category: 検索対象カテゴリ
            predicate: 絞り込み条件（省略時は全件）

        Returns:
            パーティのリスト
        """
        ...

    async def insert_connection(self, owner: Party, client: Party) -> bool:
        """接続を追加する

        Args:
            owner: 接続のオーナー
            client: 接続のクライアント

        Returns:
            追加した場合 True、オーナーが既に接続を持つ場合 False
        """
        ...

    async def delete_connection(self, owner: Party) -> Party | None:
        """オーナーの接続を削除する

        Args:
            owner: 接続のオーナー

        Returns:
            削除した接続のクライアント（存在しない場合は None）
        """
        ...

    async def query_connections(self) -> list[tuple[Party, Party]]:
        """全接続を取得する

        Returns:
            (オーナー, クライアント) のリスト（追加順）
        """
        ...

    async def update_timestamps(
        self,
        party: Party,
        requested_at: datetime | None = None,
        connected_at: datetime | None = None,
    ) -> None:
        """保存済みパーティのライフサイクル時刻を更新する

        同一のパーティを表す全カテゴリ・全接続の記録を更新する。

        Args:
            party: 対象のパーティ
            requested_at: 新しいリクエスト時刻（None なら変更しない、NOT_SET でリセット）
            connected_at: 新しい接続時刻（None なら変更しない、NOT_SET でリセット）
        """
        ...
