"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class PartyModel(SQLModel, table=True):
    """パーティテーブル（カテゴリごとに1行）"""

    __tablename__ = "parties"

    id: int | None = Field(default=None, primary_key=True)
    category: str = Field(index=True)
    identity_key: str  # JSON format: [service_url, channel_id, account_id, conv_id]
    service_url: str
    channel_id: str
    channel_account_id: str | None = Field(default=None, index=True)
    channel_account_name: str | None = None
    conversation_id: str
    conversation_name: str | None = None
    requested_at: datetime | None = None
    connected_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("category", "identity_key", name="uq_category_identity"),
    )


class ConnectionModel(SQLModel, table=True):
    """接続テーブル（オーナーごとに1行）"""

    __tablename__ = "party_connections"

    id: int | None = Field(default=None, primary_key=True)
    owner_key: str = Field(unique=True, index=True)
    owner_service_url: str
    owner_channel_id: str
    owner_account_id: str | None = None
    owner_account_name: str | None = None
    owner_conversation_id: str
    owner_conversation_name: str | None = None
    owner_connected_at: datetime | None = None
    client_key: str = Field(index=True)
    client_service_url: str
    client_channel_id: str
    client_account_id: str | None = None
    client_account_name: str | None = None
    client_conversation_id: str
    client_conversation_name: str | None = None
    client_connected_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
