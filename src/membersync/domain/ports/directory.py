"""Port for the remote directory service holding group memberships.

Implementations raise ``DirectoryAPIError`` (with ``status``/``reason`` where the
service provides them) for any failed call and never retry on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from membersync.domain.model import GroupRef, Member, MemberRole


@dataclass(slots=True, frozen=True)
class MembersPage:
    """One page of a membership listing."""

    members: tuple[Member, ...]
    next_page_token: str | None = None


@runtime_checkable
class MemberDirectory(Protocol):
    def list_members(self, group_key: str, *, page_token: str | None = None) -> MembersPage: ...

    def get_member(self, group_key: str, identity: str) -> Member: ...

    def has_member(self, group_key: str, identity: str) -> bool: ...

    def insert_member(self, group_key: str, member: Member) -> Member: ...

    def update_member(self, group_key: str, identity: str, member: Member) -> Member: ...

    def patch_member(self, group_key: str, identity: str, role: MemberRole) -> Member: ...

    def delete_member(self, group_key: str, identity: str) -> None: ...

    def get_group(self, group_key: str) -> GroupRef: ...


__all__ = ["MemberDirectory", "MembersPage"]
