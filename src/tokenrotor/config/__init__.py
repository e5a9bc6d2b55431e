"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, env_int, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import (
    WEBHOOK_METHODS,
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)
from .logging import configure_logging
from .providers import (
    ProviderConfig,
    get_birdeye_config,
    get_dexscreener_config,
    get_logo_lookup_config,
    get_moralis_config,
    get_solscan_config,
)
from .rotation import (
    NotifierConfig,
    RotationConfig,
    ScheduleConfig,
    VettingConfig,
    get_notifier_config,
    get_rotation_config,
    get_schedule_config,
    get_vetting_config,
    parse_pinned,
    parse_token_key,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "WEBHOOK_METHODS",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "NotifierConfig",
    "ProviderConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RotationConfig",
    "ScheduleConfig",
    "StorageConfig",
    "VettingConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_birdeye_config",
    "get_database_config",
    "get_dexscreener_config",
    "get_logo_lookup_config",
    "get_moralis_config",
    "get_notifier_config",
    "get_rotation_config",
    "get_schedule_config",
    "get_solscan_config",
    "get_storage_config",
    "get_vetting_config",
    "optional_env_var",
    "parse_pinned",
    "parse_token_key",
    "require_env_var",
    "require_env_vars",
]
