"""Retrieval of the actual membership of a group."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.errors import MembershipOperationError, RetryError
from membersync.domain.model import (
    Member,
    MembershipOperation,
    MembershipSet,
    normalize_group_key,
)
from membersync.domain.resilience import PLAIN, Retrier

if TYPE_CHECKING:
    from membersync.domain.ports import MemberDirectory
    from membersync.domain.resilience import Deadline

log = getLogger(__name__)


@dataclass(slots=True)
class MembershipFetcher:
    directory: MemberDirectory
    retrier: Retrier = field(default_factory=Retrier)

    def fetch(self, group_key: str, deadline: Deadline) -> MembershipSet:
        """Return every member of the group, following page tokens to the end.

        A page that cannot be fetched aborts the whole listing.
        """

        group = normalize_group_key(group_key)
        members: list[Member] = []
        page_token: str | None = None
        pages = 0
        while True:
            list_page = partial(self.directory.list_members, group, page_token=page_token)
            try:
                page = self.retrier.call(
                    list_page,
                    deadline,
                    PLAIN,
                    description=f"list members of {group}",
                )
            except RetryError as exc:
                raise MembershipOperationError(
                    operation=MembershipOperation.LIST,
                    group_key=group,
                    identity=None,
                    cause=exc,
                ) from exc
            members.extend(page.members)
            pages += 1
            page_token = page.next_page_token
            if not page_token:
                break

        log.debug("Fetched %d member(s) of %s in %d page(s)", len(members), group, pages)
        return MembershipSet.from_members(members)
