"""Membership value types.

Identities are case-insensitive in the directory, so every boundary into these
types lowercases them. ``etag``, ``member_type`` and ``status`` are advisory
values reported by the server and never take part in equality.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from .enums import MemberRole, MemberType

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_identity(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Member identity must not be blank")
    return normalized


def normalize_group_key(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Group key must not be blank")
    return normalized


@dataclass(frozen=True, slots=True)
class Member:
    identity: str
    role: MemberRole = MemberRole.MEMBER
    etag: str | None = field(default=None, compare=False)
    member_type: MemberType | None = field(default=None, compare=False)
    status: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "identity", normalize_identity(self.identity))
        object.__setattr__(self, "role", MemberRole.parse(self.role))

    def with_role(self, role: MemberRole | str) -> Member:
        return replace(self, role=MemberRole.parse(role))

    def same_role(self, other: Member) -> bool:
        return self.role is other.role


class MembershipSet(Mapping[str, Member]):
    """Immutable snapshot of a group's members keyed by normalized identity."""

    __slots__ = ("_members",)

    def __init__(self, members: Mapping[str, Member] | None = None) -> None:
        self._members: dict[str, Member] = {
            normalize_identity(identity): member for identity, member in (members or {}).items()
        }

    @classmethod
    def from_members(cls, members: Iterable[Member]) -> MembershipSet:
        collected: dict[str, Member] = {}
        for member in members:
            existing = collected.get(member.identity)
            if existing is not None and not existing.same_role(member):
                raise ValueError(
                    f"Member {member.identity} declared twice with roles "
                    f"{existing.role} and {member.role}"
                )
            collected.setdefault(member.identity, member)
        return cls(collected)

    def __getitem__(self, identity: str) -> Member:
        return self._members[normalize_identity(identity)]

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, str):
            return False
        return identity.strip().lower() in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        entries = ", ".join(f"{m.identity}:{m.role}" for m in self._members.values())
        return f"MembershipSet({{{entries}}})"

    def members(self) -> tuple[Member, ...]:
        return tuple(self._members.values())

    def roles(self) -> dict[str, MemberRole]:
        return {identity: member.role for identity, member in self._members.items()}


@dataclass(frozen=True, slots=True)
class GroupRef:
    """A group resolved from any of its keys (id, email or alias)."""

    id: str
    email: str


@dataclass(frozen=True, slots=True)
class GroupMembership:
    """Membership of one group as exposed to read and import callers."""

    group_id: str
    members: MembershipSet

    @property
    def resource_id(self) -> str:
        return f"groups/{self.group_id}"
