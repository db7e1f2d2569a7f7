"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import MemberDirectory, MembersPage

__all__ = ["MemberDirectory", "MembersPage"]
