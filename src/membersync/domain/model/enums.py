"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MemberRole(StrEnum):
    """Role of a member inside a group; compared case-insensitively."""

    OWNER = "OWNER"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"

    @classmethod
    def parse(cls, value: str | MemberRole | None) -> MemberRole:
        if value is None:
            return cls.MEMBER
        if isinstance(value, MemberRole):
            return value
        normalized = value.strip().upper()
        if not normalized:
            return cls.MEMBER
        try:
            return cls(normalized)
        except ValueError:
            allowed = ", ".join(role.value for role in cls)
            raise ValueError(f"Unknown member role {value!r}; expected one of {allowed}") from None


class MemberType(StrEnum):
    """Kind of principal the directory reports for a member."""

    USER = "USER"
    GROUP = "GROUP"
    CUSTOMER = "CUSTOMER"
    EXTERNAL = "EXTERNAL"


class MembershipOperation(StrEnum):
    """Remote operations issued while reconciling a group."""

    LIST = "list"
    GET = "get"
    HAS_MEMBER = "has_member"
    INSERT = "insert"
    UPDATE = "update"
    PATCH = "patch"
    DELETE = "delete"
    GET_GROUP = "get_group"
