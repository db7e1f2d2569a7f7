"""Remote mutations for individual plan entries.

Upserts follow a small state machine: first decide whether the identity is a
nested group or a user, then whether it is already a member, and only then
choose between ``update`` and ``insert``. Nested groups can only ever hold the
``MEMBER`` role.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final, TypeVar

from membersync.domain.errors import (
    DeadlineExceededError,
    DirectoryAPIError,
    MembershipOperationError,
    PermanentPolicyError,
    RetryError,
)
from membersync.domain.model import Member, MemberRole, MembershipOperation
from membersync.domain.resilience import NOT_FOUND_TOLERANT, PLAIN, Retrier, RetryPolicy

if TYPE_CHECKING:
    from membersync.domain.ports import MemberDirectory
    from membersync.domain.resilience import Deadline

    from .plan import RoleChange

log = getLogger(__name__)

T = TypeVar("T")

# The directory answers hasMember for an unknown user with 400 "required".
_MISSING_USER_STATUS: Final[int] = 400
_MISSING_USER_REASON: Final[str] = "required"


class UpsertOutcome(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"


@dataclass(slots=True)
class MutationExecutor:
    directory: MemberDirectory
    retrier: Retrier = field(default_factory=Retrier)

    def delete(self, group_key: str, identity: str, deadline: Deadline) -> bool:
        """Remove ``identity`` from the group; returns False if it was already gone."""

        def remove() -> bool:
            try:
                self.directory.delete_member(group_key, identity)
            except DirectoryAPIError as exc:
                if exc.is_not_found:
                    log.debug("Member %s already absent from %s", identity, group_key)
                    return False
                raise
            return True

        removed = self._run(MembershipOperation.DELETE, group_key, identity, remove, deadline)
        if removed:
            log.info("Deleted member %s from %s", identity, group_key)
        return removed

    def update_role(self, group_key: str, change: RoleChange, deadline: Deadline) -> Member:
        updated = self._run(
            MembershipOperation.PATCH,
            group_key,
            change.identity,
            lambda: self.directory.patch_member(group_key, change.identity, change.desired),
            deadline,
            NOT_FOUND_TOLERANT,
        )
        log.info(
            "Updated role of %s in %s: %s -> %s",
            change.identity,
            group_key,
            change.current,
            change.desired,
        )
        return updated

    def upsert(self, group_key: str, member: Member, deadline: Deadline) -> UpsertOutcome:
        if self._is_group(group_key, member.identity, deadline):
            if member.role is not MemberRole.MEMBER:
                raise PermanentPolicyError(
                    f"Error adding member {member.identity} to {group_key}: "
                    f"nested groups must have role {MemberRole.MEMBER}, not {member.role}",
                    identity=member.identity,
                    operation=MembershipOperation.INSERT,
                )
            exists = self._is_group_member(group_key, member.identity, deadline)
        else:
            exists = self._has_user_member(group_key, member.identity, deadline)

        payload = Member(identity=member.identity, role=member.role)
        if exists:
            self._run(
                MembershipOperation.UPDATE,
                group_key,
                member.identity,
                lambda: self.directory.update_member(group_key, member.identity, payload),
                deadline,
                NOT_FOUND_TOLERANT,
            )
            log.info("Updated member %s of %s as %s", member.identity, group_key, member.role)
            return UpsertOutcome.UPDATED

        self._run(
            MembershipOperation.INSERT,
            group_key,
            member.identity,
            lambda: self.directory.insert_member(group_key, payload),
            deadline,
        )
        log.info("Created member %s of %s as %s", member.identity, group_key, member.role)
        return UpsertOutcome.INSERTED

    def _is_group(self, group_key: str, identity: str, deadline: Deadline) -> bool:
        try:
            found = self.retrier.call(
                self._member_lookup(group_key, identity),
                deadline,
                PLAIN,
                description=f"get {identity} in {group_key}",
            )
        except DeadlineExceededError as exc:
            raise MembershipOperationError(
                operation=MembershipOperation.GET,
                group_key=group_key,
                identity=identity,
                cause=exc,
            ) from exc
        except RetryError as exc:
            log.warning(
                "Could not tell whether %s is a group (%s); treating it as a group", identity, exc
            )
            return True
        if not found:
            log.debug("Treating %s as a user after a 404", identity)
        return found

    def _is_group_member(self, group_key: str, identity: str, deadline: Deadline) -> bool:
        return self._run(
            MembershipOperation.GET,
            group_key,
            identity,
            self._member_lookup(group_key, identity),
            deadline,
        )

    def _has_user_member(self, group_key: str, identity: str, deadline: Deadline) -> bool:
        def check() -> bool:
            try:
                return self.directory.has_member(group_key, identity)
            except DirectoryAPIError as exc:
                if exc.status == _MISSING_USER_STATUS and exc.reason == _MISSING_USER_REASON:
                    raise PermanentPolicyError(
                        f"Error adding member {identity} to {group_key}: the user account "
                        "does not exist, make sure it is created beforehand",
                        identity=identity,
                        operation=MembershipOperation.HAS_MEMBER,
                    ) from exc
                raise

        try:
            return self.retrier.call(
                check,
                deadline,
                PLAIN,
                description=f"check membership of {identity} in {group_key}",
            )
        except RetryError as exc:
            log.warning("Membership check for %s failed (%s); inserting it", identity, exc)
            return False

    def _member_lookup(self, group_key: str, identity: str) -> Callable[[], bool]:
        def lookup() -> bool:
            try:
                self.directory.get_member(group_key, identity)
            except DirectoryAPIError as exc:
                if exc.is_not_found:
                    return False
                raise
            return True

        return lookup

    def _run(
        self,
        operation: MembershipOperation,
        group_key: str,
        identity: str,
        call: Callable[[], T],
        deadline: Deadline,
        policy: RetryPolicy = PLAIN,
    ) -> T:
        try:
            return self.retrier.call(
                call,
                deadline,
                policy,
                description=f"{operation} {identity} in {group_key}",
            )
        except RetryError as exc:
            raise MembershipOperationError(
                operation=operation,
                group_key=group_key,
                identity=identity,
                cause=exc,
            ) from exc
