# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from membersync.adapters.desired_state import DesiredMembers, load_desired_members
from membersync.app import (
    apply_group_members,
    import_group_members,
    plan_group_members,
    read_group_members,
    remove_group_members,
)
from membersync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from membersync.domain.model import GroupMembership

log = logging.getLogger(__name__)


def _add_timeout(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        help="Overall time budget in seconds for the operation (defaults to config)",
    )


def _add_declaration(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--members",
        type=Path,
        required=True,
        help="JSON file declaring the members of the group",
    )
    parser.add_argument(
        "--group",
        type=str,
        help="Group id, email or alias (defaults to group_id from the members file)",
    )
    _add_timeout(parser)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile directory group members")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Make the group match the declared members")
    _add_declaration(apply)

    plan = subparsers.add_parser("plan", help="Show the changes apply would make")
    _add_declaration(plan)

    destroy = subparsers.add_parser("destroy", help="Remove the declared members from the group")
    _add_declaration(destroy)

    show = subparsers.add_parser("show", help="Print the current members of a group")
    show.add_argument("--group", type=str, required=True, help="Group id, email or alias")
    _add_timeout(show)

    import_ = subparsers.add_parser(
        "import", help="Resolve a group by any key and print its members"
    )
    import_.add_argument("group_key", type=str, help="Group id, email or alias")
    _add_timeout(import_)

    args = parser.parse_args(list(argv))
    if args.timeout is not None and args.timeout <= 0:
        raise ValueError("Timeout must be positive")
    return args


def _resolve_group(args: argparse.Namespace, desired: DesiredMembers) -> str:
    group = args.group or desired.group_id
    if not group:
        raise ValueError("Missing --group (or group_id in the members file)")
    return group


def _membership_to_json(membership: GroupMembership) -> str:
    document = {
        "id": membership.resource_id,
        "group_id": membership.group_id,
        "members": [
            {"email": member.identity, "role": member.role.value, "etag": member.etag}
            for member in membership.members.values()
        ],
    }
    return json.dumps(document, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    desired: DesiredMembers | None = None
    group: str | None = None
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        if parsed_args.command in {"apply", "plan", "destroy"}:
            desired = load_desired_members(parsed_args.members)
            group = _resolve_group(parsed_args, desired)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    timeout = parsed_args.timeout
    try:
        if parsed_args.command == "apply" and desired is not None and group is not None:
            outcome = apply_group_members(group, desired.members, timeout_seconds=timeout)
            print(_membership_to_json(outcome.membership))
        elif parsed_args.command == "plan" and desired is not None and group is not None:
            plan = plan_group_members(group, desired.members, timeout_seconds=timeout)
            for line in plan.describe() or ["No changes."]:
                print(line)
        elif parsed_args.command == "destroy" and desired is not None and group is not None:
            removed = remove_group_members(group, desired.members.keys(), timeout_seconds=timeout)
            print(f"Removed {removed} member(s) from {group}")
        elif parsed_args.command == "show":
            membership = read_group_members(parsed_args.group, timeout_seconds=timeout)
            if membership is None:
                log.error("Group %s does not exist", parsed_args.group)
                sys.exit(1)
            print(_membership_to_json(membership))
        elif parsed_args.command == "import":
            membership = import_group_members(parsed_args.group_key, timeout_seconds=timeout)
            print(_membership_to_json(membership))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error while reconciling members")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
