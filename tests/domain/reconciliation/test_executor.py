from __future__ import annotations

import pytest

from membersync.domain.errors import MembershipOperationError, PermanentPolicyError
from membersync.domain.model import Member, MemberRole, MembershipOperation
from membersync.domain.reconciliation import MutationExecutor, RoleChange, UpsertOutcome
from membersync.domain.resilience import Deadline, Retrier
from tests.support.clock import FakeClock
from tests.support.directory import GROUP, FakeDirectory, api_error, not_found


def _executor(directory: FakeDirectory, retrier: Retrier) -> MutationExecutor:
    return MutationExecutor(directory, retrier)


def test_upsert_inserts_new_user(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory()

    outcome = _executor(directory, retrier).upsert(
        GROUP, Member(identity="a@example.com", role=MemberRole.MANAGER), deadline
    )

    assert outcome is UpsertOutcome.INSERTED
    assert directory.methods() == ["get_member", "has_member", "insert_member"]
    assert directory.members_of() == {"a@example.com": MemberRole.MANAGER}


def test_upsert_updates_user_that_is_already_a_member(
    retrier: Retrier, deadline: Deadline
) -> None:
    directory = FakeDirectory([Member(identity="a@example.com")])
    # The listing missed the member; the user lookup still says 404.
    directory.fail("get_member", not_found())

    outcome = _executor(directory, retrier).upsert(
        GROUP, Member(identity="a@example.com", role=MemberRole.OWNER), deadline
    )

    assert outcome is UpsertOutcome.UPDATED
    assert directory.methods() == ["get_member", "has_member", "update_member"]
    assert directory.members_of() == {"a@example.com": MemberRole.OWNER}


def test_upsert_reports_missing_user_account(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory(known_users={"someone@example.com"})

    with pytest.raises(PermanentPolicyError, match="does not exist") as excinfo:
        _executor(directory, retrier).upsert(GROUP, Member(identity="ghost@example.com"), deadline)

    assert excinfo.value.identity == "ghost@example.com"
    assert directory.methods() == ["get_member", "has_member"]


def test_failed_membership_check_falls_back_to_insert(
    retrier: Retrier, deadline: Deadline
) -> None:
    directory = FakeDirectory()
    directory.fail("has_member", api_error(403, "forbidden"))

    outcome = _executor(directory, retrier).upsert(
        GROUP, Member(identity="a@example.com"), deadline
    )

    assert outcome is UpsertOutcome.INSERTED
    assert directory.methods() == ["get_member", "has_member", "insert_member"]


def test_nested_group_with_wrong_role_fails_after_the_type_check(
    retrier: Retrier, deadline: Deadline
) -> None:
    directory = FakeDirectory()
    directory.fail("get_member", api_error(403, "forbidden"))

    with pytest.raises(PermanentPolicyError, match="nested groups must have role MEMBER"):
        _executor(directory, retrier).upsert(
            GROUP, Member(identity="sub@example.com", role=MemberRole.OWNER), deadline
        )

    assert directory.methods() == ["get_member"]


def test_nested_group_not_yet_a_member_is_inserted(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory()
    directory.fail("get_member", api_error(403, "forbidden"))

    outcome = _executor(directory, retrier).upsert(
        GROUP, Member(identity="sub@example.com"), deadline
    )

    assert outcome is UpsertOutcome.INSERTED
    assert directory.methods() == ["get_member", "get_member", "insert_member"]


def test_nested_group_already_a_member_is_updated(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory([Member(identity="sub@example.com")])

    outcome = _executor(directory, retrier).upsert(
        GROUP, Member(identity="sub@example.com"), deadline
    )

    assert outcome is UpsertOutcome.UPDATED
    assert directory.methods() == ["get_member", "get_member", "update_member"]


def test_insert_failure_names_identity_and_operation(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory()
    directory.fail("insert_member", api_error(400, "invalid", "Invalid Input: memberKey"))

    with pytest.raises(MembershipOperationError) as excinfo:
        _executor(directory, retrier).upsert(GROUP, Member(identity="a@example.com"), deadline)

    assert excinfo.value.operation is MembershipOperation.INSERT
    assert excinfo.value.identity == "a@example.com"
    assert "insert" in str(excinfo.value)
    assert "a@example.com" in str(excinfo.value)


def test_update_role_rides_out_eventual_consistency(
    retrier: Retrier, deadline: Deadline, clock: FakeClock
) -> None:
    directory = FakeDirectory([Member(identity="b@example.com")])
    directory.fail("patch_member", not_found())
    change = RoleChange(
        identity="b@example.com", current=MemberRole.MEMBER, desired=MemberRole.OWNER
    )

    updated = _executor(directory, retrier).update_role(GROUP, change, deadline)

    assert updated.role is MemberRole.OWNER
    assert clock.sleeps == [1.0]
    assert directory.members_of() == {"b@example.com": MemberRole.OWNER}


def test_delete_removes_member(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory([Member(identity="c@example.com")])

    assert _executor(directory, retrier).delete(GROUP, "c@example.com", deadline)
    assert directory.members_of() == {}


def test_delete_of_absent_member_is_success(retrier: Retrier, deadline: Deadline) -> None:
    directory = FakeDirectory()

    assert not _executor(directory, retrier).delete(GROUP, "gone@example.com", deadline)
    assert directory.methods() == ["delete_member"]


def test_delete_timeout_is_reported_as_deadline_exceeded(
    clock: FakeClock, retrier: Retrier
) -> None:
    directory = FakeDirectory([Member(identity="c@example.com")])
    directory.fail("delete_member", *(api_error(503) for _ in range(5)))

    with pytest.raises(MembershipOperationError) as excinfo:
        _executor(directory, retrier).delete(GROUP, "c@example.com", Deadline(2.5, clock=clock))

    assert excinfo.value.deadline_exceeded
    assert excinfo.value.operation is MembershipOperation.DELETE
    assert "gave up after 3 attempt(s)" in str(excinfo.value)


def test_group_check_timeout_fails_the_upsert(clock: FakeClock, retrier: Retrier) -> None:
    directory = FakeDirectory()
    directory.fail("get_member", *(api_error(503) for _ in range(5)))

    with pytest.raises(MembershipOperationError) as excinfo:
        _executor(directory, retrier).upsert(
            GROUP, Member(identity="sub@example.com"), Deadline(2.5, clock=clock)
        )

    assert excinfo.value.deadline_exceeded
    assert excinfo.value.operation is MembershipOperation.GET
    assert excinfo.value.identity == "sub@example.com"
    assert set(directory.methods()) == {"get_member"}
    assert clock.sleeps == [1.0, 1.5]
