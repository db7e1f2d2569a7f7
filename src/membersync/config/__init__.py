"""Application configuration helpers."""

from __future__ import annotations

from .directory import DIRECTORY_BASE_URL, DirectoryConfig, get_directory_config
from .env import optional_float_env, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import BackoffConfig, ResilienceConfig
from .logging import configure_logging
from .sync import DEFAULT_OPERATION_TIMEOUT_SECONDS, SyncConfig, get_sync_config

__all__ = [
    "DEFAULT_OPERATION_TIMEOUT_SECONDS",
    "DIRECTORY_BASE_URL",
    "BackoffConfig",
    "ConfigurationError",
    "DirectoryConfig",
    "MissingConfigurationError",
    "ResilienceConfig",
    "SyncConfig",
    "configure_logging",
    "get_directory_config",
    "get_sync_config",
    "optional_float_env",
    "require_env_var",
    "require_env_vars",
]
