from __future__ import annotations

import pytest

from membersync.domain.errors import DirectoryAPIError, DirectoryTransportError
from membersync.domain.resilience import (
    NOT_FOUND_TOLERANT,
    PLAIN,
    Disposition,
    RetryPolicy,
    classify,
)


def _error(
    status: int | None, reason: str | None = None, message: str = "boom", body: str | None = None
) -> DirectoryAPIError:
    return DirectoryAPIError(message, status=status, reason=reason, body=body)


@pytest.mark.parametrize("status", [500, 502, 503])
def test_server_errors_are_retryable(status: int) -> None:
    assert classify(_error(status)) is Disposition.RETRYABLE


def test_quota_exceeded_is_retryable_regardless_of_status() -> None:
    assert classify(_error(403, "quotaExceeded")) is Disposition.RETRYABLE


@pytest.mark.parametrize("status", [401, 409, 429])
def test_auth_conflict_and_rate_limit_are_retryable(status: int) -> None:
    assert classify(_error(status)) is Disposition.RETRYABLE


def test_conflict_is_permanent_when_conflicts_are_not_tolerated() -> None:
    policy = RetryPolicy(tolerate_conflict=False)

    assert classify(_error(409, "duplicate"), policy) is Disposition.PERMANENT
    assert classify(_error(401), policy) is Disposition.RETRYABLE
    assert classify(_error(429), policy) is Disposition.RETRYABLE


def test_not_found_depends_on_policy() -> None:
    assert classify(_error(404, "notFound"), PLAIN) is Disposition.PERMANENT
    assert classify(_error(404, "notFound"), NOT_FOUND_TOLERANT) is Disposition.RETRYABLE_NOT_FOUND


def test_invalid_body_depends_on_policy() -> None:
    policy = RetryPolicy(tolerate_invalid_body=True)

    assert classify(_error(400, "badRequest")) is Disposition.PERMANENT
    assert classify(_error(400, "badRequest"), policy) is Disposition.RETRYABLE
    assert classify(_error(403, "invalid"), policy) is Disposition.RETRYABLE


def test_missing_user_response_is_permanent() -> None:
    assert classify(_error(400, "required")) is Disposition.PERMANENT


def test_known_buggy_bad_request_is_retryable() -> None:
    error = _error(
        400,
        "badRequest",
        message='Invalid Input: Bad request for "team@example.com"',
        body='{"error": {"code": 400, "message": "Invalid Input"}}',
    )

    assert classify(error) is Disposition.RETRYABLE


def test_bad_request_marker_without_embedded_400_is_permanent() -> None:
    error = _error(403, message='Invalid Input: Bad request for "team@example.com"')

    assert classify(error) is Disposition.PERMANENT


@pytest.mark.parametrize(
    "message",
    [
        "Service unavailable. Please try again",
        "Eventual consistency. Please try again",
    ],
)
def test_known_transient_messages_are_retryable(message: str) -> None:
    assert classify(_error(400, message=message)) is Disposition.RETRYABLE


def test_transport_errors_are_retryable() -> None:
    assert classify(DirectoryTransportError("connection reset")) is Disposition.RETRYABLE


def test_other_errors_are_permanent() -> None:
    assert classify(_error(403, "forbidden")) is Disposition.PERMANENT
    assert classify(ValueError("not a remote error")) is Disposition.PERMANENT
