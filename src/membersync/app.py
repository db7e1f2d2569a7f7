"""Application entry points for the membership lifecycle.

These mirror the create/update, read, delete and import hooks of a declarative
resource: each call builds one deadline from the operation timeout and every
remote call made on its behalf draws from that budget.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.adapters.directory import HttpMemberDirectory
from membersync.config import get_sync_config
from membersync.domain.errors import (
    MembershipOperationError,
    PermanentRemoteError,
    RetryError,
)
from membersync.domain.model import GroupMembership, MembershipOperation, normalize_group_key
from membersync.domain.reconciliation import Reconciler
from membersync.domain.resilience import PLAIN, Deadline, ExponentialBackoff, Retrier

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import MembershipSet
    from membersync.domain.ports import MemberDirectory
    from membersync.domain.reconciliation import ReconcileResult, ReconciliationPlan

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyOutcome:
    result: ReconcileResult
    membership: GroupMembership


@contextmanager
def _directory_session(directory: MemberDirectory | None) -> Iterator[MemberDirectory]:
    if directory is not None:
        yield directory
        return
    with HttpMemberDirectory() as http_directory:
        yield http_directory


def _deadline(timeout_seconds: float | None) -> Deadline:
    return Deadline(timeout_seconds or get_sync_config().timeout_seconds)


def _retrier(retrier: Retrier | None) -> Retrier:
    if retrier is not None:
        return retrier
    return Retrier(backoff=ExponentialBackoff.from_config(get_sync_config().backoff))


def apply_group_members(
    group_id: str,
    desired: MembershipSet,
    *,
    directory: MemberDirectory | None = None,
    retrier: Retrier | None = None,
    timeout_seconds: float | None = None,
) -> ApplyOutcome:
    """Converge the group's members to ``desired`` and return the re-read membership."""

    group = normalize_group_key(group_id)
    deadline = _deadline(timeout_seconds)
    log.info("Applying %d declared member(s) to %s", len(desired), group)
    with _directory_session(directory) as active:
        reconciler = Reconciler(active, _retrier(retrier))
        result = reconciler.reconcile(desired, group, deadline)
        members = reconciler.fetch(group, deadline)

    log.info(
        "Finished applying %s: deleted=%d, role_updates=%d, inserted=%d, updated=%d",
        group,
        result.deleted,
        result.role_updates,
        result.inserted,
        result.updated,
    )
    return ApplyOutcome(result=result, membership=GroupMembership(group_id=group, members=members))


def plan_group_members(
    group_id: str,
    desired: MembershipSet,
    *,
    directory: MemberDirectory | None = None,
    retrier: Retrier | None = None,
    timeout_seconds: float | None = None,
) -> ReconciliationPlan:
    """Compute the changes ``apply_group_members`` would make, without making them."""

    deadline = _deadline(timeout_seconds)
    with _directory_session(directory) as active:
        return Reconciler(active, _retrier(retrier)).plan(desired, group_id, deadline)


def read_group_members(
    group_id: str,
    *,
    directory: MemberDirectory | None = None,
    retrier: Retrier | None = None,
    timeout_seconds: float | None = None,
) -> GroupMembership | None:
    """Fetch the current members, or ``None`` when the group no longer exists."""

    group = normalize_group_key(group_id)
    deadline = _deadline(timeout_seconds)
    with _directory_session(directory) as active:
        try:
            members = Reconciler(active, _retrier(retrier)).fetch(group, deadline)
        except MembershipOperationError as exc:
            if isinstance(exc.cause, PermanentRemoteError) and exc.cause.status == 404:
                log.warning("Group %s is gone, nothing to read", group)
                return None
            raise
    return GroupMembership(group_id=group, members=members)


def remove_group_members(
    group_id: str,
    identities: Iterable[str],
    *,
    directory: MemberDirectory | None = None,
    retrier: Retrier | None = None,
    timeout_seconds: float | None = None,
) -> int:
    """Remove the given members from the group; members already gone are skipped."""

    deadline = _deadline(timeout_seconds)
    with _directory_session(directory) as active:
        removed = Reconciler(active, _retrier(retrier)).remove(identities, group_id, deadline)
    log.info("Removed %d member(s) from %s", removed, normalize_group_key(group_id))
    return removed


def import_group_members(
    group_key: str,
    *,
    directory: MemberDirectory | None = None,
    retrier: Retrier | None = None,
    timeout_seconds: float | None = None,
) -> GroupMembership:
    """Resolve a group by id, email or alias and read its members."""

    key = normalize_group_key(group_key)
    deadline = _deadline(timeout_seconds)
    active_retrier = _retrier(retrier)
    with _directory_session(directory) as active:
        try:
            group = active_retrier.call(
                lambda: active.get_group(key),
                deadline,
                PLAIN,
                description=f"get group {key}",
            )
        except RetryError as exc:
            raise MembershipOperationError(
                operation=MembershipOperation.GET_GROUP,
                group_key=key,
                identity=None,
                cause=exc,
            ) from exc
        members = Reconciler(active, active_retrier).fetch(group.email, deadline)

    log.info("Imported %d member(s) of group %s (%s)", len(members), group.id, group.email)
    return GroupMembership(group_id=group.id, members=members)
