"""Per-call retry policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Which otherwise-permanent failures a call site is willing to retry.

    ``tolerate_not_found`` rides out read-after-write lag where a just-created
    member briefly 404s. ``tolerate_conflict`` keeps 409 retryable; turn it off
    where a duplicate means the work is already done. ``tolerate_invalid_body``
    retries 400/"invalid" responses from a backend known to reject well-formed
    requests spuriously.
    """

    tolerate_not_found: bool = False
    tolerate_conflict: bool = True
    tolerate_invalid_body: bool = False


PLAIN: Final[RetryPolicy] = RetryPolicy()
NOT_FOUND_TOLERANT: Final[RetryPolicy] = RetryPolicy(tolerate_not_found=True)
