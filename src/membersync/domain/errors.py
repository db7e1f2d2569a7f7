"""Error taxonomy for membership reconciliation.

``DirectoryAPIError`` is what adapters raise for a failed remote call. The retry
engine turns every failure it gives up on into a ``RetryError`` subclass, so
callers can tell "the request was rejected" apart from "we ran out of time".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import MembershipOperation


class MembersyncError(RuntimeError):
    """Base class for all membersync failures."""


class DirectoryAPIError(MembersyncError):
    """Raised by directory adapters when the remote service rejects a call."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        reason: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.reason = reason
        self.body = body

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        if self.reason:
            return f"{self.status} {self.reason}: {self.message}"
        return f"{self.status}: {self.message}"

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class DirectoryTransportError(DirectoryAPIError):
    """Raised when the remote service could not be reached at all."""


class RetryError(MembersyncError):
    """Final failure of a retried remote call."""

    def __init__(
        self,
        message: str,
        *,
        cause: DirectoryAPIError | None,
        attempts: int,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts

    @property
    def status(self) -> int | None:
        return self.cause.status if self.cause is not None else None


class PermanentRemoteError(RetryError):
    """The remote error was classified as not worth retrying."""


class DeadlineExceededError(RetryError):
    """Retryable failures kept happening until the operation deadline ran out."""

    def __init__(
        self,
        message: str,
        *,
        cause: DirectoryAPIError | None,
        attempts: int,
        elapsed: float,
    ) -> None:
        super().__init__(message, cause=cause, attempts=attempts)
        self.elapsed = elapsed


class PermanentPolicyError(MembersyncError):
    """A declared membership can never be applied as written."""

    def __init__(self, message: str, *, identity: str, operation: MembershipOperation) -> None:
        super().__init__(message)
        self.identity = identity
        self.operation = operation


class MembershipOperationError(MembersyncError):
    """A remote membership operation failed after retries."""

    def __init__(
        self,
        *,
        operation: MembershipOperation,
        group_key: str,
        identity: str | None,
        cause: RetryError,
    ) -> None:
        target = f"member {identity} of group {group_key}" if identity else f"group {group_key}"
        last_error = cause.cause if cause.cause is not None else "no attempt made"
        if isinstance(cause, DeadlineExceededError):
            detail = f"gave up after {cause.attempts} attempt(s): {last_error}"
        else:
            detail = str(last_error)
        super().__init__(f"Error during {operation} of {target}: {detail}")
        self.operation = operation
        self.group_key = group_key
        self.identity = identity
        self.cause = cause

    @property
    def deadline_exceeded(self) -> bool:
        return isinstance(self.cause, DeadlineExceededError)
