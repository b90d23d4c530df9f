"""
Command-line interface for the Jira to Gitea migration tool.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from . import jira_utils
from .exceptions import MigrationError
from .orchestrator import Migrator
from .sequence import DestructiveReimport, PreserveExisting
from .sink import SqlAlchemySink
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .orchestrator import MigrationResult
    from .sequence import IndexPolicy

_DB_URL_ENV_VAR = "GITEA_DB_URL"


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Migrate Jira issues into a Gitea repository database")

    # Positional arguments
    _ = parser.add_argument("jira_server", help="Jira server URL (e.g. https://jira.example.com)")
    _ = parser.add_argument("jira_filter", help="Id of the saved Jira filter selecting the issues to migrate")

    # Optional arguments with short forms
    _ = parser.add_argument("--jira-user", "-u", help="Jira user for HTTP basic authentication")

    _ = parser.add_argument(
        "--jira-pass-path",
        help="Path for the Jira password in pass utility (default: env JIRA_PASSWORD, then jira/password)",
    )

    _ = parser.add_argument(
        "--db-url",
        default=os.environ.get(_DB_URL_ENV_VAR),
        help=f"SQLAlchemy URL of the Gitea database (default: env {_DB_URL_ENV_VAR})",
    )

    _ = parser.add_argument("--repo-id", type=int, default=1, help="Gitea repository id (default: 1)")

    _ = parser.add_argument(
        "--remove-existing-issues",
        action="store_true",
        help="Delete existing issues of the repository and number issues by their Jira key",
    )

    _ = parser.add_argument("--limit", type=int, help="Stop loading Jira issues after this many")

    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)
    if not args.db_url:
        parser.error(f"--db-url is required when {_DB_URL_ENV_VAR} is not set")
    return args


def _print_report(result: MigrationResult) -> None:
    """Print a human-readable summary of a migration run."""
    print("=" * 60)
    print(f"Migration {'SUCCEEDED' if result.success else 'FAILED'}")
    for name, value in vars(result.stats).items():
        print(f"  {name}: {value}")
    if result.max_index is not None:
        print(f"  max issue index: {result.max_index}")

    for error in result.errors:
        print(f"  error: {error}")

    for phase in result.phases:
        for skipped in phase.skipped:
            print(f"  skipped ({phase.name}): {skipped.item} - {skipped.reason}")
    print("=" * 60)


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    # Setup logging
    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)
    logger = logging.getLogger(__name__)

    try:
        password = jira_utils.get_password(args.jira_pass_path) if args.jira_user else None
        client = jira_utils.JiraClient(args.jira_server, jira_utils.get_session(args.jira_user, password))

        policy: IndexPolicy = DestructiveReimport() if args.remove_existing_issues else PreserveExisting()
        engine = create_engine(args.db_url)
        try:
            migrator = Migrator(SqlAlchemySink(engine), args.repo_id, policy)
            result = migrator.migrate(client, args.jira_filter, limit=args.limit)
        finally:
            engine.dispose()

        _print_report(result)

        if result.success:
            sys.exit(0)
        else:
            sys.exit(1)

    except MigrationError:
        logger.exception("Migration failed")
        sys.exit(1)
    except Exception:
        logger.exception("Unexpected error during migration")
        sys.exit(1)
