"""設定データクラス"""

from dataclasses import dataclass, field


@dataclass
class SlackConfig:
    """Slack接続設定"""

    bot_token: str
    app_token: str


@dataclass
class StorageConfig:
    """ストレージ設定

    Attributes:
        backend: "memory" または "sqlite"
        database_path: SQLite データベースファイルのパス（sqlite の場合のみ必須）
    """

    backend: str = "memory"
    database_path: str | None = None


@dataclass
class AggregationChannelConfig:
    """起動時に登録するアグリゲーションチャンネル"""

    channel_id: str
    conversation_id: str
    service_url: str = "https://slack.com/api/"
    conversation_name: str | None = None


@dataclass
class RoutingConfig:
    """ルーティング設定

    Attributes:
        auto_request: 未接続ユーザーのメッセージで接続リクエストを自動作成する
        reject_if_no_aggregation: アグリゲーションチャンネルがない場合リクエストを拒否
        add_sender_name: 転送メッセージの先頭に送信者名を付ける
        create_direct_conversation: 承認時にエージェントとの DM を開いて接続する
        aggregation_channels: 起動時に登録するアグリゲーションチャンネル
        result_history_size: 保持する結果履歴の件数（0 で無効）
    """

    auto_request: bool = True
    reject_if_no_aggregation: bool = False
    add_sender_name: bool = True
    create_direct_conversation: bool = True
    aggregation_channels: list[AggregationChannelConfig] = field(default_factory=list)
    result_history_size: int = 0


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    slack: SlackConfig
    storage: StorageConfig = field(default_factory=StorageConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    logging: LoggingConfig | None = None
