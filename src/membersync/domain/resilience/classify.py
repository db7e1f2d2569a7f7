"""Classification of remote failures into retry dispositions."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Final

from membersync.domain.errors import DirectoryAPIError, DirectoryTransportError

from .policy import PLAIN, RetryPolicy

SERVER_ERROR_STATUSES: Final[frozenset[int]] = frozenset({500, 502, 503})
TRANSIENT_CLIENT_STATUSES: Final[frozenset[int]] = frozenset({401, 429})
CONFLICT_STATUS: Final[int] = 409
NOT_FOUND_STATUS: Final[int] = 404
BAD_REQUEST_STATUS: Final[int] = 400

QUOTA_EXCEEDED_REASON: Final[str] = "quotaExceeded"
INVALID_REASON: Final[str] = "invalid"

# Messages the directory backend emits for failures that clear up on their own.
_BAD_REQUEST_MARKER: Final[str] = 'invalid input: bad request for "'
_EMBEDDED_400 = re.compile(r'"code"\s*:\s*400\b')
_TRANSIENT_MARKERS: Final[tuple[str, ...]] = (
    "service unavailable. please try again",
    "eventual consistency. please try again",
)


class Disposition(StrEnum):
    RETRYABLE = "retryable"
    RETRYABLE_NOT_FOUND = "retryable_not_found"
    PERMANENT = "permanent"


def classify(error: BaseException, policy: RetryPolicy = PLAIN) -> Disposition:
    """Map a failed remote call to a disposition, first matching rule wins."""

    if not isinstance(error, DirectoryAPIError):
        return Disposition.PERMANENT
    if isinstance(error, DirectoryTransportError):
        return Disposition.RETRYABLE

    status = error.status
    if status in SERVER_ERROR_STATUSES:
        return Disposition.RETRYABLE
    if error.reason == QUOTA_EXCEEDED_REASON:
        return Disposition.RETRYABLE
    if status in TRANSIENT_CLIENT_STATUSES:
        return Disposition.RETRYABLE
    if status == CONFLICT_STATUS and policy.tolerate_conflict:
        return Disposition.RETRYABLE
    if policy.tolerate_not_found and status == NOT_FOUND_STATUS:
        return Disposition.RETRYABLE_NOT_FOUND
    if policy.tolerate_invalid_body and (
        status == BAD_REQUEST_STATUS or error.reason == INVALID_REASON
    ):
        return Disposition.RETRYABLE
    if _is_known_transient_message(error):
        return Disposition.RETRYABLE
    return Disposition.PERMANENT


def _is_known_transient_message(error: DirectoryAPIError) -> bool:
    text = " ".join(part for part in (str(error), error.body) if part)
    lowered = text.lower()
    if _BAD_REQUEST_MARKER in lowered and _EMBEDDED_400.search(text):
        return True
    return any(marker in lowered for marker in _TRANSIENT_MARKERS)
