"""HTTP client for the Directory API members endpoints."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypeVar, Unpack
from urllib.parse import quote

import httpx

from membersync.adapters.http_resilience import RequestOptions, ResilientClient
from membersync.config.directory import DirectoryConfig, get_directory_config
from membersync.domain.errors import DirectoryAPIError, DirectoryTransportError
from membersync.domain.ports import MemberDirectory, MembersPage

from .schema import ErrorResponse, GroupPayload, HasMemberResponse, MemberPayload, MembersResponse
from .translator import member_to_payload, parse_group, parse_member, role_to_payload

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from pydantic import BaseModel

    from membersync.domain.model import GroupRef, Member, MemberRole

log = getLogger(__name__)

M = TypeVar("M", bound="BaseModel")
R = TypeVar("R")


def _default_client_factory(config: DirectoryConfig) -> ResilientClient:
    return ResilientClient(config.resilience, headers=config.auth_headers())


def _segment(value: str) -> str:
    return quote(value, safe="@")


def _members_path(group_key: str, identity: str | None = None) -> str:
    path = f"groups/{_segment(group_key)}/members"
    if identity is not None:
        path = f"{path}/{_segment(identity)}"
    return path


def _members_page(payload: MembersResponse) -> MembersPage:
    return MembersPage(
        members=tuple(parse_member(member) for member in payload.members),
        next_page_token=payload.next_page_token or None,
    )


class HttpMemberDirectory:
    """``MemberDirectory`` backed by the Directory API.

    Failed calls surface as ``DirectoryAPIError`` carrying the HTTP status and
    the first machine-readable reason of the error body; no call is retried here.
    """

    def __init__(
        self,
        *,
        config: DirectoryConfig | None = None,
        client_factory: Callable[[DirectoryConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config or get_directory_config()
        self._client = (client_factory or _default_client_factory)(self._config)

    def __enter__(self) -> HttpMemberDirectory:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def list_members(self, group_key: str, *, page_token: str | None = None) -> MembersPage:
        params = {"pageToken": page_token} if page_token else None
        response = self._request("GET", _members_path(group_key), params=params)
        return self._parse(response, MembersResponse, _members_page)

    def get_member(self, group_key: str, identity: str) -> Member:
        response = self._request("GET", _members_path(group_key, identity))
        return self._parse(response, MemberPayload, parse_member)

    def has_member(self, group_key: str, identity: str) -> bool:
        path = f"groups/{_segment(group_key)}/hasMember/{_segment(identity)}"
        response = self._request("GET", path)
        return self._parse(response, HasMemberResponse, lambda payload: payload.is_member)

    def insert_member(self, group_key: str, member: Member) -> Member:
        response = self._request("POST", _members_path(group_key), json=member_to_payload(member))
        return self._parse(response, MemberPayload, parse_member)

    def update_member(self, group_key: str, identity: str, member: Member) -> Member:
        response = self._request(
            "PUT",
            _members_path(group_key, identity),
            json=member_to_payload(member),
        )
        return self._parse(response, MemberPayload, parse_member)

    def patch_member(self, group_key: str, identity: str, role: MemberRole) -> Member:
        response = self._request(
            "PATCH",
            _members_path(group_key, identity),
            json=role_to_payload(role),
        )
        return self._parse(response, MemberPayload, parse_member)

    def delete_member(self, group_key: str, identity: str) -> None:
        self._request("DELETE", _members_path(group_key, identity))

    def get_group(self, group_key: str) -> GroupRef:
        response = self._request("GET", f"groups/{_segment(group_key)}")
        return self._parse(response, GroupPayload, parse_group)

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise DirectoryTransportError(f"{method} {path} failed: {exc}") from exc
        if response.is_error:
            error = _error_from_response(response)
            log.debug(
                "%s API error on %s %s: %s", self._config.resilience.name, method, path, error
            )
            raise error
        return response

    @staticmethod
    def _parse(
        response: httpx.Response,
        model: type[M],
        translate: Callable[[M], R],
    ) -> R:
        try:
            return translate(model.model_validate(response.json()))
        except ValueError as exc:
            raise DirectoryAPIError(
                f"Unexpected Directory API response payload: {exc}",
                status=response.status_code,
                body=response.text,
            ) from exc


def _error_from_response(response: httpx.Response) -> DirectoryAPIError:
    body = response.text
    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        payload = ErrorResponse.model_validate(response.json())
    except ValueError:
        return DirectoryAPIError(fallback, status=response.status_code, body=body)
    return DirectoryAPIError(
        payload.error.message or fallback,
        status=response.status_code,
        reason=payload.error.reason,
        body=body,
    )


if TYPE_CHECKING:
    _directory_check: MemberDirectory = HttpMemberDirectory()
