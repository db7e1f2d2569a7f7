"""Reconciliation pass: fetch, diff, apply.

The pass stops at the first failure it cannot retry away and raises it. Nothing
is cached between passes, so the next pass re-diffs and finishes whatever the
failed one left behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.model import normalize_group_key, normalize_identity
from membersync.domain.resilience import Retrier

from .executor import MutationExecutor, UpsertOutcome
from .fetch import MembershipFetcher
from .plan import ReconciliationPlan, build_plan

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import MembershipSet
    from membersync.domain.ports import MemberDirectory
    from membersync.domain.resilience import Deadline

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    group_key: str
    plan: ReconciliationPlan
    deleted: int = 0
    role_updates: int = 0
    inserted: int = 0
    updated: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.deleted or self.role_updates or self.inserted or self.updated)


@dataclass(slots=True)
class Reconciler:
    directory: MemberDirectory
    retrier: Retrier = field(default_factory=Retrier)

    def fetch(self, group_key: str, deadline: Deadline) -> MembershipSet:
        return MembershipFetcher(self.directory, self.retrier).fetch(group_key, deadline)

    def plan(
        self,
        desired: MembershipSet,
        group_key: str,
        deadline: Deadline,
    ) -> ReconciliationPlan:
        """Diff ``desired`` against the live membership without changing anything."""

        actual = self.fetch(group_key, deadline)
        log.debug("Desired members of %s: %s", group_key, desired)
        log.debug("Actual members of %s: %s", group_key, actual)
        return build_plan(desired, actual)

    def reconcile(
        self,
        desired: MembershipSet,
        group_key: str,
        deadline: Deadline,
    ) -> ReconcileResult:
        group = normalize_group_key(group_key)
        plan = self.plan(desired, group, deadline)
        result = ReconcileResult(group_key=group, plan=plan)
        if plan.is_empty:
            log.info("Members of %s already match the configuration", group)
            return result

        log.info(
            "Reconciling %s: %d to delete, %d role update(s), %d to add",
            group,
            len(plan.to_delete),
            len(plan.to_update_role),
            len(plan.to_upsert),
        )
        executor = MutationExecutor(self.directory, self.retrier)
        for member in plan.to_delete:
            executor.delete(group, member.identity, deadline)
            result.deleted += 1
        for change in plan.to_update_role:
            executor.update_role(group, change, deadline)
            result.role_updates += 1
        for member in plan.to_upsert:
            outcome = executor.upsert(group, member, deadline)
            if outcome is UpsertOutcome.INSERTED:
                result.inserted += 1
            else:
                result.updated += 1
        return result

    def remove(self, identities: Iterable[str], group_key: str, deadline: Deadline) -> int:
        """Remove the given members from the group, returning how many were present."""

        group = normalize_group_key(group_key)
        executor = MutationExecutor(self.directory, self.retrier)
        removed = 0
        for identity in dict.fromkeys(normalize_identity(value) for value in identities):
            if executor.delete(group, identity, deadline):
                removed += 1
        return removed
