"""Pydantic models describing the Directory API member payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DirectoryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MemberPayload(DirectoryBaseModel):
    kind: str | None = None
    id: str | None = None
    email: str | None = None
    role: str | None = None
    type: str | None = None
    status: str | None = None
    etag: str | None = None


class MembersResponse(DirectoryBaseModel):
    members: list[MemberPayload] = Field(default_factory=list["MemberPayload"])
    next_page_token: str | None = Field(default=None, alias="nextPageToken")
    etag: str | None = None


class HasMemberResponse(DirectoryBaseModel):
    is_member: bool = Field(alias="isMember")


class GroupPayload(DirectoryBaseModel):
    id: str
    email: str
    name: str | None = None


class ErrorDetail(DirectoryBaseModel):
    domain: str | None = None
    reason: str | None = None
    message: str | None = None


class ErrorBody(DirectoryBaseModel):
    code: int | None = None
    message: str = ""
    errors: list[ErrorDetail] = Field(default_factory=list["ErrorDetail"])

    @property
    def reason(self) -> str | None:
        for detail in self.errors:
            if detail.reason:
                return detail.reason
        return None


class ErrorResponse(DirectoryBaseModel):
    error: ErrorBody
