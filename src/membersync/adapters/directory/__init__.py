"""Public interface for the Directory API adapter."""

from __future__ import annotations

from .client import HttpMemberDirectory
from .schema import ErrorResponse, GroupPayload, MemberPayload, MembersResponse
from .translator import member_to_payload, parse_group, parse_member

__all__ = [
    "ErrorResponse",
    "GroupPayload",
    "HttpMemberDirectory",
    "MemberPayload",
    "MembersResponse",
    "member_to_payload",
    "parse_group",
    "parse_member",
]
