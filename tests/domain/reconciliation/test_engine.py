from __future__ import annotations

import pytest

from membersync.domain.errors import MembershipOperationError
from membersync.domain.model import Member, MemberRole, MembershipOperation, MembershipSet
from membersync.domain.reconciliation import Reconciler
from membersync.domain.resilience import Deadline, Retrier
from tests.support.clock import FakeClock
from tests.support.directory import GROUP, FakeDirectory, api_error


def _desired() -> MembershipSet:
    return MembershipSet.from_members(
        [
            Member(identity="a@example.com", role=MemberRole.MEMBER),
            Member(identity="b@example.com", role=MemberRole.OWNER),
        ]
    )


def _directory() -> FakeDirectory:
    return FakeDirectory(
        [
            Member(identity="b@example.com", role=MemberRole.MEMBER),
            Member(identity="c@example.com", role=MemberRole.MEMBER),
        ]
    )


def test_reconcile_converges_to_desired_members(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()

    result = Reconciler(directory, retrier).reconcile(_desired(), GROUP, deadline)

    assert (result.deleted, result.role_updates, result.inserted, result.updated) == (1, 1, 1, 0)
    assert result.changed
    assert directory.members_of() == {
        "a@example.com": MemberRole.MEMBER,
        "b@example.com": MemberRole.OWNER,
    }


def test_reconcile_applies_deletes_then_role_updates_then_upserts(
    retrier: Retrier, deadline: Deadline
) -> None:
    directory = _directory()

    Reconciler(directory, retrier).reconcile(_desired(), GROUP, deadline)

    mutations = [
        call
        for call in directory.calls
        if call[0] in {"delete_member", "patch_member", "insert_member", "update_member"}
    ]
    assert mutations == [
        ("delete_member", "c@example.com"),
        ("patch_member", "b@example.com"),
        ("insert_member", "a@example.com"),
    ]


def test_second_pass_is_a_no_op(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()
    reconciler = Reconciler(directory, retrier)
    reconciler.reconcile(_desired(), GROUP, deadline)
    directory.calls.clear()

    assert reconciler.plan(_desired(), GROUP, deadline).is_empty
    result = reconciler.reconcile(_desired(), GROUP, deadline)

    assert not result.changed
    assert set(directory.methods()) == {"list_members"}


def test_plan_does_not_mutate(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()

    plan = Reconciler(directory, retrier).plan(_desired(), GROUP, deadline)

    assert len(plan) == 3
    assert set(directory.methods()) == {"list_members"}
    assert directory.members_of()["c@example.com"] is MemberRole.MEMBER


def test_reconcile_with_mixed_case_input(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()
    desired = MembershipSet.from_members(
        [
            Member(identity="B@Example.com", role=MemberRole.parse("member")),
            Member(identity="C@EXAMPLE.COM", role=MemberRole.parse("Member")),
        ]
    )

    result = Reconciler(directory, retrier).reconcile(desired, "TEAM@example.com", deadline)

    assert result.group_key == GROUP
    assert not result.changed


def test_reconcile_stops_at_first_failure(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()
    directory.fail("patch_member", api_error(403, "forbidden", "Not Authorized"))

    with pytest.raises(MembershipOperationError) as excinfo:
        Reconciler(directory, retrier).reconcile(_desired(), GROUP, deadline)

    assert excinfo.value.operation is MembershipOperation.PATCH
    assert excinfo.value.identity == "b@example.com"
    assert "delete_member" in directory.methods()
    assert "insert_member" not in directory.methods()


def test_all_calls_share_one_deadline(clock: FakeClock, retrier: Retrier) -> None:
    directory = _directory()
    # 1 + 2 seconds of backoff on the delete leave one second for the patch retries.
    directory.fail("delete_member", api_error(503), api_error(503))
    directory.fail("patch_member", api_error(503), api_error(503))

    with pytest.raises(MembershipOperationError) as excinfo:
        Reconciler(directory, retrier).reconcile(_desired(), GROUP, Deadline(4.0, clock=clock))

    assert excinfo.value.deadline_exceeded
    assert excinfo.value.operation is MembershipOperation.PATCH
    assert clock.sleeps == [1.0, 2.0, 1.0]


def test_remove_deletes_listed_members(retrier: Retrier, deadline: Deadline) -> None:
    directory = _directory()

    removed = Reconciler(directory, retrier).remove(
        ["C@example.com", "c@example.com", "gone@example.com"], GROUP, deadline
    )

    assert removed == 1
    assert directory.members_of() == {"b@example.com": MemberRole.MEMBER}
    assert directory.methods() == ["delete_member", "delete_member"]
