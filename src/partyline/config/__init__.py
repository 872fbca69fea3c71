"""設定管理モジュール"""

from partyline.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from partyline.config.models import (
    AggregationChannelConfig,
    Config,
    LoggingConfig,
    RoutingConfig,
    SlackConfig,
    StorageConfig,
)

__all__ = [
    "AggregationChannelConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "EnvironmentVariableError",
    "LoggingConfig",
    "RoutingConfig",
    "SlackConfig",
    "StorageConfig",
    "expand_env_vars",
    "load_config",
]
