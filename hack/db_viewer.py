#!/usr/bin/env python3
"""Database viewer script for partyline.

SQLite に保存されたパーティと接続を表示する CLI ツール。

Usage:
    uv run python hack/db_viewer.py stats
    uv run python hack/db_viewer.py parties [--category CATEGORY]
    uv run python hack/db_viewer.py connections
"""

import argparse
import asyncio
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from sqlalchemy import func
from sqlmodel import select

# プロジェクトルートをパスに追加
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def load_dotenv(env_path: Path) -> None:
    """シンプルな .env ファイル読み込み

    Args:
        env_path: .env ファイルのパス
    """
    if not env_path.exists():
        return

    with open(env_path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]
                # 既存の環境変数は上書きしない
                if key not in os.environ:
                    os.environ[key] = value


from partyline.config.loader import load_config  # noqa: E402
from partyline.domain.entities import PartyCategory  # noqa: E402
from partyline.infrastructure.persistence.database import DatabaseManager  # noqa: E402
from partyline.infrastructure.persistence.models import (  # noqa: E402
    ConnectionModel,
    PartyModel,
)


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


class TableFormatter:
    """シンプルなテキストテーブルフォーマッター"""

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: str | None = None,
    ) -> None:
        """テーブルを出力"""
        if title:
            print(f"\n=== {title} ===\n")

        if not rows:
            print("(no data)")
            return

        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(str(cell)))

        print(" | ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
        print("-+-".join("-" * w for w in widths))
        for row in rows:
            print(" | ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)))

        print(f"\nTotal: {len(rows)} records")


class DatabaseViewer:
    """データベース閲覧クラス"""

    def __init__(self, db_manager: DatabaseManager) -> None:
        self._db_manager = db_manager

    async def get_stats(self) -> dict[str, int]:
        """カテゴリごとのパーティ数と接続数を取得"""
        stats: dict[str, int] = {}
        async with self._db_manager.get_session() as session:
            for category in PartyCategory:
                result = await session.exec(
                    select(func.count())
                    .select_from(PartyModel)
                    .where(PartyModel.category == category.value)
                )
                stats[category.value] = result.one()
            result = await session.exec(
                select(func.count()).select_from(ConnectionModel)
            )
            stats["connections"] = result.one()
        return stats

    async def list_parties(self, category: str | None = None) -> list[dict[str, Any]]:
        """パーティ一覧を取得"""
        async with self._db_manager.get_session() as session:
            stmt = select(PartyModel).order_by(
                PartyModel.category, PartyModel.id  # type: ignore[arg-type]
            )
            if category:
                stmt = stmt.where(PartyModel.category == category)
            result = await session.exec(stmt)
            parties = result.all()

        return [
            {
                "category": p.category,
                "channel_id": p.channel_id,
                "account_id": p.channel_account_id,
                "account_name": p.channel_account_name,
                "conversation_id": p.conversation_id,
                "requested_at": _iso(p.requested_at),
                "connected_at": _iso(p.connected_at),
            }
            for p in parties
        ]

    async def list_connections(self) -> list[dict[str, Any]]:
        """接続一覧を取得"""
        async with self._db_manager.get_session() as session:
            result = await session.exec(
                select(ConnectionModel).order_by(
                    ConnectionModel.id  # type: ignore[arg-type]
                )
            )
            connections = result.all()

        return [
            {
                "owner": c.owner_account_name or c.owner_account_id,
                "owner_conversation_id": c.owner_conversation_id,
                "client": c.client_account_name or c.client_account_id,
                "client_conversation_id": c.client_conversation_id,
                "connected_at": _iso(c.owner_connected_at),
            }
            for c in connections
        ]


def print_records(
    records: list[dict[str, Any]], output_format: str, title: str
) -> None:
    """レコード一覧を出力"""
    if output_format == "json":
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return

    headers = list(records[0].keys()) if records else []
    rows = [[str(r[h] or "-") for h in headers] for r in records]
    TableFormatter().print_table(headers, rows, title=title)


def create_parser() -> argparse.ArgumentParser:
    """コマンドラインパーサーを作成"""
    parser = argparse.ArgumentParser(description="partyline database viewer")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="設定ファイルのパス (default: config.yaml)",
    )
    parser.add_argument("--db", help="データベースファイルのパス（設定より優先）")
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="出力形式 (default: table)",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("stats", help="統計情報を表示")

    parties_parser = subparsers.add_parser("parties", help="パーティ一覧を表示")
    parties_parser.add_argument(
        "--category",
        choices=[c.value for c in PartyCategory],
        help="カテゴリでフィルタ",
    )

    subparsers.add_parser("connections", help="接続一覧を表示")
    return parser


async def main() -> None:
    """メインエントリポイント"""
    project_root = Path(__file__).parent.parent
    load_dotenv(project_root / ".env")

    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    db_path: str | None
    if args.db:
        db_path = args.db
    else:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        db_path = load_config(config_path).storage.database_path

    if db_path is None:
        print("Error: storage.database_path is not configured", file=sys.stderr)
        sys.exit(1)
    if db_path != ":memory:" and not Path(db_path).exists():
        print(f"Error: Database file not found: {db_path}", file=sys.stderr)
        sys.exit(1)

    db_manager = DatabaseManager(db_path)
    await db_manager.create_tables()
    viewer = DatabaseViewer(db_manager)

    try:
        if args.command == "stats":
            stats = await viewer.get_stats()
            if args.format == "json":
                print(json.dumps(stats, indent=2))
            else:
                rows = [[name, str(count)] for name, count in stats.items()]
                TableFormatter().print_table(
                    ["Table", "Count"], rows, title="Database Statistics"
                )
        elif args.command == "parties":
            parties = await viewer.list_parties(category=args.category)
            print_records(parties, args.format, "Parties")
        elif args.command == "connections":
            connections = await viewer.list_connections()
            print_records(connections, args.format, "Connections")
    finally:
        await db_manager.close()


if __name__ == "__main__":
    asyncio.run(main())
