"""Three-way membership diff.

Config wins: anything present remotely but not declared is removed, declared
members with a different role are patched, and declared members absent
remotely are upserted. Every identity of ``desired | actual`` lands in exactly
one bucket or is left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from membersync.domain.model import Member, MemberRole, MembershipSet


@dataclass(slots=True, frozen=True)
class RoleChange:
    identity: str
    current: MemberRole
    desired: MemberRole


@dataclass(slots=True, frozen=True)
class ReconciliationPlan:
    to_delete: tuple[Member, ...] = ()
    to_update_role: tuple[RoleChange, ...] = ()
    to_upsert: tuple[Member, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.to_delete or self.to_update_role or self.to_upsert)

    def __len__(self) -> int:
        return len(self.to_delete) + len(self.to_update_role) + len(self.to_upsert)

    def describe(self) -> list[str]:
        """Human readable summary, one line per planned change."""

        lines = [f"- {member.identity} ({member.role})" for member in self.to_delete]
        lines.extend(
            f"~ {change.identity}: {change.current} -> {change.desired}"
            for change in self.to_update_role
        )
        lines.extend(f"+ {member.identity} ({member.role})" for member in self.to_upsert)
        return lines


def build_plan(desired: MembershipSet, actual: MembershipSet) -> ReconciliationPlan:
    to_delete: list[Member] = []
    to_update_role: list[RoleChange] = []
    for identity, current in actual.items():
        wanted = desired.get(identity)
        if wanted is None:
            to_delete.append(current)
        elif not wanted.same_role(current):
            to_update_role.append(
                RoleChange(identity=identity, current=current.role, desired=wanted.role)
            )

    to_upsert = tuple(member for identity, member in desired.items() if identity not in actual)
    return ReconciliationPlan(
        to_delete=tuple(to_delete),
        to_update_role=tuple(to_update_role),
        to_upsert=to_upsert,
    )
