from __future__ import annotations

from .enums import MemberRole, MembershipOperation, MemberType
from .membership import (
    GroupMembership,
    GroupRef,
    Member,
    MembershipSet,
    normalize_group_key,
    normalize_identity,
)

__all__ = [
    "GroupMembership",
    "GroupRef",
    "Member",
    "MemberRole",
    "MemberType",
    "MembershipOperation",
    "MembershipSet",
    "normalize_group_key",
    "normalize_identity",
]
