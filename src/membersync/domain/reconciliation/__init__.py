"""Reconciliation of desired group membership against the directory.

Flow of one pass:
1) fetch the actual membership, page by page
2) diff it against the desired membership into delete / role-update / upsert buckets
3) apply each bucket through the mutation executor, stopping at the first failure
"""

from __future__ import annotations

from .engine import ReconcileResult, Reconciler
from .executor import MutationExecutor, UpsertOutcome
from .fetch import MembershipFetcher
from .plan import ReconciliationPlan, RoleChange, build_plan

__all__ = [
    "MembershipFetcher",
    "MutationExecutor",
    "ReconcileResult",
    "ReconciliationPlan",
    "Reconciler",
    "RoleChange",
    "UpsertOutcome",
    "build_plan",
]
