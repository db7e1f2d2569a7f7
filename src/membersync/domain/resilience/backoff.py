"""Exponential backoff with jitter."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from membersync.config.http_resilience import BackoffConfig

# Seeded once per process; every schedule without an explicit rng shares it.
_PROCESS_RANDOM = random.Random()


@dataclass(slots=True, frozen=True)
class ExponentialBackoff:
    """Wait ``base_seconds * 2**(attempt-1)`` plus up to ``max_jitter_seconds`` of jitter.

    There is no cap on the multiplier; callers bound the total by a deadline.
    """

    base_seconds: float = 1.0
    max_jitter_seconds: float = 1.0
    rng: random.Random = field(default=_PROCESS_RANDOM, compare=False, repr=False)

    @classmethod
    def from_config(cls, config: BackoffConfig) -> ExponentialBackoff:
        return cls(base_seconds=config.base_seconds, max_jitter_seconds=config.max_jitter_seconds)

    def base_delay(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError(f"Attempt numbers start at 1, got {attempt}")
        return self.base_seconds * 2 ** (attempt - 1)

    def jitter(self) -> float:
        jitter_ms = int(self.max_jitter_seconds * 1000)
        if jitter_ms <= 0:
            return 0.0
        return self.rng.randrange(jitter_ms) / 1000

    def delay(self, attempt: int) -> float:
        return self.base_delay(attempt) + self.jitter()
