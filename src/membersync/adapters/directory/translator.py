"""Translation between Directory API payloads and domain values."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger

from membersync.domain.model import GroupRef, Member, MemberRole, MemberType

from .schema import GroupPayload, MemberPayload

log = getLogger(__name__)


def parse_member(payload: MemberPayload | Mapping[str, object]) -> Member:
    model = payload if isinstance(payload, MemberPayload) else MemberPayload.model_validate(payload)
    identity = model.email or model.id
    if not identity:
        raise ValueError("Directory member payload carries neither email nor id")
    return Member(
        identity=identity,
        role=MemberRole.parse(model.role),
        etag=model.etag,
        member_type=_parse_member_type(model.type),
        status=model.status,
    )


def member_to_payload(member: Member) -> dict[str, str]:
    return {"email": member.identity, "role": member.role.value}


def role_to_payload(role: MemberRole) -> dict[str, str]:
    return {"role": role.value}


def parse_group(payload: GroupPayload | Mapping[str, object]) -> GroupRef:
    model = payload if isinstance(payload, GroupPayload) else GroupPayload.model_validate(payload)
    return GroupRef(id=model.id, email=model.email.lower())


def _parse_member_type(value: str | None) -> MemberType | None:
    if not value:
        return None
    try:
        return MemberType(value.upper())
    except ValueError:
        log.warning("Ignoring unknown directory member type %r", value)
        return None
