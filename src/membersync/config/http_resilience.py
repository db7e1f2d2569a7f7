"""Configuration types for the directory HTTP client and the retry schedule."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class BackoffConfig:
    """Exponential backoff parameters: ``base_seconds * 2**(attempt-1)`` plus jitter."""

    base_seconds: float = 1.0
    max_jitter_seconds: float = 1.0


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
