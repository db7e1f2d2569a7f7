"""Directory API configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from .env import optional_float_env, require_env_vars
from .http_resilience import ResilienceConfig

DIRECTORY_BASE_URL: Final[str] = "https://admin.googleapis.com/admin/directory/v1/"
DEFAULT_HTTP_TIMEOUT_SECONDS: Final[float] = 30.0


def _default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(name="directory", base_url=DIRECTORY_BASE_URL)


@dataclass(frozen=True)
class DirectoryConfig:
    """Holds the credentials and transport settings for the Directory API."""

    access_token: str = field(repr=False)
    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)

    @property
    def base_url(self) -> str:
        return self.resilience.base_url or DIRECTORY_BASE_URL

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def get_directory_config() -> DirectoryConfig:
    values = require_env_vars(("DIRECTORY_ACCESS_TOKEN",))
    base_url = os.getenv("DIRECTORY_BASE_URL") or DIRECTORY_BASE_URL
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    timeout = optional_float_env("MEMBERSYNC_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS)
    return DirectoryConfig(
        access_token=values["DIRECTORY_ACCESS_TOKEN"],
        resilience=ResilienceConfig(name="directory", base_url=base_url, timeout_seconds=timeout),
    )
