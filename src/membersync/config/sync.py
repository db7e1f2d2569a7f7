"""Reconciliation defaults for membership operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_float_env
from .http_resilience import BackoffConfig

# Twenty minutes, the default create/read/update/delete timeout of the provider hooks.
DEFAULT_OPERATION_TIMEOUT_SECONDS = 20 * 60.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    timeout_seconds: float = DEFAULT_OPERATION_TIMEOUT_SECONDS
    backoff: BackoffConfig = field(default_factory=BackoffConfig)


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        timeout_seconds=optional_float_env(
            "MEMBERSYNC_TIMEOUT_SECONDS", DEFAULT_OPERATION_TIMEOUT_SECONDS
        ),
        backoff=BackoffConfig(
            base_seconds=optional_float_env("MEMBERSYNC_BACKOFF_BASE_SECONDS", 1.0),
        ),
    )
