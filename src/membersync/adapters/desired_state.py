"""Loader for declared group membership files.

Accepted shapes::

    [{"email": "a@example.com", "role": "OWNER"}, ...]
    {"group_id": "team@example.com", "members": [...]}

``role`` defaults to ``MEMBER``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from membersync.domain.model import Member, MemberRole, MembershipSet

if TYPE_CHECKING:
    from pathlib import Path


class MemberDeclaration(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=1)
    role: MemberRole = MemberRole.MEMBER

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return MemberRole.parse(value)
        return value


class MembersFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    group_id: str | None = None
    members: list[MemberDeclaration] = Field(default_factory=list["MemberDeclaration"])

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"members": value}
        if isinstance(value, Mapping):
            return dict(cast(Mapping[str, object], value))
        return value


@dataclass(frozen=True, slots=True)
class DesiredMembers:
    group_id: str | None
    members: MembershipSet


class DesiredStateError(ValueError):
    """Raised when a membership file cannot be read or validated."""


def parse_desired_members(raw: str | bytes) -> DesiredMembers:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DesiredStateError(f"Membership declaration is not valid JSON: {exc}") from exc
    try:
        document = MembersFile.model_validate(data)
    except ValidationError as exc:
        raise DesiredStateError(f"Invalid membership declaration: {exc}") from exc
    try:
        members = MembershipSet.from_members(
            Member(identity=entry.email, role=entry.role) for entry in document.members
        )
    except ValueError as exc:
        raise DesiredStateError(str(exc)) from exc
    return DesiredMembers(group_id=document.group_id, members=members)


def load_desired_members(path: Path) -> DesiredMembers:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DesiredStateError(f"Cannot read membership file {path}: {exc}") from exc
    return parse_desired_members(raw)
