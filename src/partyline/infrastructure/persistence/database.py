"""Database management."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Import models to register them with SQLModel metadata
from partyline.infrastructure.persistence import models as _models  # noqa: F401

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

# Seconds a writer waits for another connection's write lock
BUSY_TIMEOUT_SECONDS = 30


class DatabaseManager:
    """データベース管理

    パーティと接続を保存する SQLite データベースのエンジンとセッションを管理する。
    ファイル DB では接続ごとに別コネクションを使い、書き込み競合はロック待ちで
    解決する。":memory:" の場合は全セッションで1つのコネクションを共有し、
    セッションは1つずつ順番に払い出す。
    """

    def __init__(self, database_path: str) -> None:
        """初期化

        Args:
            database_path: SQLite データベースファイルのパス
                          ":memory:" を指定するとインメモリDBを使用
        """
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        # Shared-connection sessions must not interleave
        self._session_lock: asyncio.Lock | None = (
            asyncio.Lock() if database_path == MEMORY_DATABASE else None
        )

    def get_engine(self) -> AsyncEngine:
        """SQLAlchemy 非同期エンジンを取得する（初回呼び出し時に生成）

        Returns:
            AsyncEngine インスタンス
        """
        if self._engine is not None:
            return self._engine

        if self._database_path == MEMORY_DATABASE:
            self._engine = create_async_engine(
                "sqlite+aiosqlite:///:memory:",
                poolclass=StaticPool,
            )
        else:
            Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_async_engine(
                f"sqlite+aiosqlite:///{self._database_path}",
                connect_args={"timeout": BUSY_TIMEOUT_SECONDS},
            )

        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.debug("Created database engine: %s", self._database_path)
        return self._engine

    async def create_tables(self) -> None:
        """parties / party_connections テーブルを作成する（既存なら何もしない）"""
        engine = self.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """セッションを取得する（SQLitePartyStore の session_factory）

        Yields:
            AsyncSession インスタンス
        """
        self.get_engine()
        assert self._session_factory is not None
        if self._session_lock is None:
            async with self._session_factory() as session:
                yield session
            return

        async with self._session_lock:
            async with self._session_factory() as session:
                yield session

    async def close(self) -> None:
        """エンジンを破棄して接続を閉じる"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
