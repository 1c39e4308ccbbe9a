#!/usr/bin/env python3
"""
Script to browse and revert the mirrored history of a site:
- commits: list a page of history with undo/rollback flags
- undo: remove the changes of a single commit
- rollback: restore the state of an earlier commit
- can-revert: check whether the working tree allows reverting
- diff: show the diff of a commit
- should-update: check whether HEAD moved past a known commit
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from site_history.config.settings import load_settings
from site_history.git.domain.exceptions import (
    LogStoreError,
    NoMoreHistoryError,
    PayloadTooLargeError,
)
from site_history.history.domain.value_objects import HistoryPage
from site_history.history.services.factory import create_history_service
from site_history.history.services.history_service import HistoryService


def page_index(value: str) -> int:
    """Parse a zero-based page index from the command line."""
    try:
        page = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid page index: {value!r}") from e
    if page < 0:
        raise argparse.ArgumentTypeError(f"page index must not be negative, got {page}")
    return page


def print_history_page(history_page: HistoryPage, page: int) -> None:
    """Print a page of history in a human readable form."""
    print(f"Page {page} (steps: {', '.join(str(step) for step in history_page.pages)})")
    for commit in history_page.commits:
        flags = "".join(
            [
                "U" if commit.can_undo else "-",
                "R" if commit.can_rollback else "-",
                "I" if commit.is_initial else " ",
            ]
        )
        print(f"  {commit.hash[:8]}  {flags}  {commit.date}  {commit.message}")
        for change in commit.changes:
            print(f"      {change.get('action', '')} {change.get('type', '')} {change.get('name', '')}")


def run_revert(service: HistoryService, action: str, commit_hash: str) -> int:
    """Run an undo or rollback and report its status."""
    print(f"{'Undoing' if action == 'undo' else 'Rolling back to'} {commit_hash[:8]}...")
    result = service.undo(commit_hash) if action == "undo" else service.rollback(commit_hash)
    message = service.status_message(result.status)

    if result.ok:
        print(f"✓ {message}")
        print(f"  New commit: {result.commit_hash}")
        return 0

    print(f"✗ {message}", file=sys.stderr)
    for violation in result.violations:
        print(f"  - {violation}", file=sys.stderr)
    for conflict in result.conflicts:
        print(f"  - conflict in {conflict}", file=sys.stderr)
    return 1


def main() -> None:
    """Main function to parse arguments and run the requested history operation."""
    parser = argparse.ArgumentParser(
        description="Browse, diff, undo and roll back the mirrored history of a site"
    )
    parser.add_argument(
        "--repo",
        type=Path,
        default=None,
        help="Path to the git repository (defaults to SITE_HISTORY_REPO_PATH or .)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    commits_parser = subparsers.add_parser("commits", help="List a page of history")
    commits_parser.add_argument(
        "--page", type=page_index, default=0, help="Page index (default: 0)"
    )
    commits_parser.add_argument("--json", action="store_true", help="Print the page as JSON")

    undo_parser = subparsers.add_parser("undo", help="Undo a single commit")
    undo_parser.add_argument("commit", type=str, help="Hash of the commit to undo")

    rollback_parser = subparsers.add_parser("rollback", help="Roll back to a commit")
    rollback_parser.add_argument("commit", type=str, help="Hash of the commit to roll back to")

    subparsers.add_parser("can-revert", help="Check whether reverting is possible")

    diff_parser = subparsers.add_parser("diff", help="Show the diff of a commit")
    diff_parser.add_argument("commit", type=str, help="Hash of the commit")

    update_parser = subparsers.add_parser(
        "should-update", help="Check whether HEAD is newer than a known commit"
    )
    update_parser.add_argument("commit", type=str, help="Hash of the newest known commit")

    args = parser.parse_args()

    try:
        settings = load_settings(args.repo)
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        service = create_history_service(settings)
    except ValueError as e:
        print(f"✗ Configuration error: {e}", file=sys.stderr)
        print("  Hint: Set SITE_HISTORY_REPO_PATH in .env file or environment", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "commits":
            history_page = service.get_commits(args.page)
            if args.json:
                print(json.dumps(history_page.to_dict(), indent=2))
            else:
                print_history_page(history_page, args.page)
            sys.exit(0)

        if args.command in ("undo", "rollback"):
            sys.exit(run_revert(service, args.command, args.commit))

        if args.command == "can-revert":
            if service.can_revert():
                print("✓ The working tree is clean, changes can be reverted")
                sys.exit(0)
            print("✗ The working tree has uncommitted changes", file=sys.stderr)
            sys.exit(1)

        if args.command == "diff":
            print(service.get_diff(args.commit).diff_content)
            sys.exit(0)

        if args.command == "should-update":
            print("true" if service.should_update(args.commit) else "false")
            sys.exit(0)

    except NoMoreHistoryError as e:
        print(f"  {e}")
        sys.exit(0)
    except PayloadTooLargeError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)
    except LogStoreError as e:
        print(f"✗ Repository error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
