"""Retry-and-backoff engine for calls against the remote directory."""

from __future__ import annotations

from .backoff import ExponentialBackoff
from .classify import Disposition, classify
from .policy import NOT_FOUND_TOLERANT, PLAIN, RetryPolicy
from .engine import Deadline, Retrier, RetryContext, retry

__all__ = [
    "NOT_FOUND_TOLERANT",
    "PLAIN",
    "Deadline",
    "Disposition",
    "ExponentialBackoff",
    "Retrier",
    "RetryContext",
    "RetryPolicy",
    "classify",
    "retry",
]
