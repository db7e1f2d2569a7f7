"""Retry engine wrapping every remote directory call.

One ``Deadline`` is created per top-level operation and handed to every retried
call made on its behalf, so a long chain of mutations shares a single time
budget instead of restarting the clock per call.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TypeVar

from membersync.domain.errors import (
    DeadlineExceededError,
    DirectoryAPIError,
    PermanentRemoteError,
)

from .backoff import ExponentialBackoff
from .classify import Disposition, classify
from .policy import PLAIN, RetryPolicy

log = getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], None]


class Deadline:
    """Absolute point in time derived from an operation timeout."""

    __slots__ = ("_clock", "expires_at", "started_at", "timeout_seconds")

    def __init__(self, timeout_seconds: float, *, clock: Clock = time.monotonic) -> None:
        if timeout_seconds <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout_seconds}")
        self._clock = clock
        self.timeout_seconds = timeout_seconds
        self.started_at = clock()
        self.expires_at = self.started_at + timeout_seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def expired(self) -> bool:
        return self.remaining() <= 0

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout_seconds}s, remaining={self.remaining():.2f}s)"


@dataclass(slots=True)
class RetryContext:
    """Bookkeeping for a single retried call."""

    deadline: Deadline
    attempt: int = 1
    interval: float = 0.0


@dataclass(slots=True)
class Retrier:
    backoff: ExponentialBackoff = field(default_factory=ExponentialBackoff)
    sleep: Sleep = time.sleep

    def call(
        self,
        operation: Callable[[], T],
        deadline: Deadline,
        policy: RetryPolicy = PLAIN,
        *,
        description: str = "remote call",
    ) -> T:
        """Run ``operation`` until it succeeds, fails permanently or the deadline passes.

        Only ``DirectoryAPIError`` is classified; any other exception raised by
        ``operation`` propagates untouched.
        """

        context = RetryContext(deadline=deadline)
        if deadline.expired():
            raise DeadlineExceededError(
                f"{description}: deadline already passed before the first attempt",
                cause=None,
                attempts=0,
                elapsed=deadline.elapsed(),
            )

        while True:
            try:
                return operation()
            except DirectoryAPIError as exc:
                disposition = classify(exc, policy)
                if disposition is Disposition.PERMANENT:
                    raise PermanentRemoteError(
                        f"{description} failed: {exc}",
                        cause=exc,
                        attempts=context.attempt,
                    ) from exc

                remaining = deadline.remaining()
                if remaining <= 0:
                    raise DeadlineExceededError(
                        f"{description} timed out after {context.attempt} attempt(s): {exc}",
                        cause=exc,
                        attempts=context.attempt,
                        elapsed=deadline.elapsed(),
                    ) from exc

                # Never sleep past the deadline; the attempt after a shortened wait is the last.
                context.interval = min(self.backoff.delay(context.attempt), remaining)
                cause = (
                    "eventual consistency"
                    if disposition is Disposition.RETRYABLE_NOT_FOUND
                    else "transient error"
                )
                log.debug(
                    "Retrying %s in %.2fs after attempt %d (%s): %s",
                    description,
                    context.interval,
                    context.attempt,
                    cause,
                    exc,
                )
                self.sleep(context.interval)
                context.attempt += 1


_DEFAULT_RETRIER = Retrier()


def retry(
    operation: Callable[[], T],
    deadline: Deadline,
    policy: RetryPolicy = PLAIN,
    *,
    description: str = "remote call",
) -> T:
    """Retry ``operation`` with the process-wide default backoff schedule."""

    return _DEFAULT_RETRIER.call(operation, deadline, policy, description=description)
