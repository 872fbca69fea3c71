"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from partyline.config.models import (
    AggregationChannelConfig,
    Config,
    LoggingConfig,
    RoutingConfig,
    SlackConfig,
    StorageConfig,
)


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

STORAGE_BACKENDS = frozenset({"memory", "sqlite"})


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _load_storage(data: dict[str, Any] | None) -> StorageConfig:
    if not data:
        return StorageConfig()

    backend = data.get("backend", "memory")
    if backend not in STORAGE_BACKENDS:
        raise ConfigValidationError(
            f"Unknown storage backend '{backend}' "
            f"(expected one of: {', '.join(sorted(STORAGE_BACKENDS))})"
        )

    database_path = data.get("database_path")
    if backend == "sqlite":
        database_path = _validate_required_field(data, "database_path", "storage")

    return StorageConfig(backend=backend, database_path=database_path)


def _load_routing(data: dict[str, Any] | None) -> RoutingConfig:
    if not data:
        return RoutingConfig()

    channels: list[AggregationChannelConfig] = []
    for i, item in enumerate(data.get("aggregation_channels") or []):
        parent = f"routing.aggregation_channels[{i}]"
        channels.append(
            AggregationChannelConfig(
                channel_id=_validate_required_field(item, "channel_id", parent),
                conversation_id=_validate_required_field(
                    item, "conversation_id", parent
                ),
                service_url=item.get("service_url", "https://slack.com/api/"),
                conversation_name=item.get("conversation_name"),
            )
        )

    history_size = data.get("result_history_size", 0)
    if history_size < 0:
        raise ConfigValidationError(
            "routing.result_history_size must be zero or positive"
        )

    return RoutingConfig(
        auto_request=data.get("auto_request", True),
        reject_if_no_aggregation=data.get("reject_if_no_aggregation", False),
        add_sender_name=data.get("add_sender_name", True),
        create_direct_conversation=data.get("create_direct_conversation", True),
        aggregation_channels=channels,
        result_history_size=history_size,
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    # 環境変数を展開
    data = _expand_recursive(raw_data or {})

    # SlackConfig
    slack_data = _validate_required_field(data, "slack")
    slack = SlackConfig(
        bot_token=_validate_required_field(slack_data, "bot_token", "slack"),
        app_token=_validate_required_field(slack_data, "app_token", "slack"),
    )

    storage = _load_storage(data.get("storage"))
    routing = _load_routing(data.get("routing"))

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
        )

    return Config(
        slack=slack, storage=storage, routing=routing, logging=logging_config
    )
