"""Build Gitea issue and milestone content from Jira data."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final, NamedTuple

from .content import convert_content
from .exceptions import MalformedTimestampError
from .utils import to_unix

if TYPE_CHECKING:
    from .models import FixVersion, Issue

logger: logging.Logger = logging.getLogger(__name__)

# 9999-12-31 23:59:59 UTC, Gitea's "no due date"
NO_DEADLINE_UNIX: Final[int] = 253402264799


class MilestoneDates(NamedTuple):
    closed_date_unix: int | None
    deadline_unix: int


def build_issue_body(issue: Issue) -> str:
    """Build the Gitea issue body from the description and the custom Jira fields.

    Each present custom field gets its own section after the description.
    The result is converted to markdown.
    """
    body = issue.description or ""

    if issue.reproduce_steps:
        body += f"\n## Reproduce steps\n\n{issue.reproduce_steps}"

    if issue.forum:
        body += f"\n## Forum\n\n- {issue.forum}\n\n"

    if issue.release_comment:
        body += f"\n## Comment\n\n{issue.release_comment}\n"

    return convert_content(body)


def milestone_dates(version: FixVersion) -> MilestoneDates:
    """Compute the closed and deadline timestamps of a milestone.

    The release date is the deadline. A released version is closed on its
    release date. A version without a usable date never expires.
    """
    release_unix: int | None = None
    if version.release_date:
        try:
            release_unix = to_unix(version.release_date, context=f"version {version.name}")
        except MalformedTimestampError as e:
            logger.warning(f"Ignoring release date of version {version.name}: {e}")

    closed_date_unix = release_unix if version.released else None
    return MilestoneDates(
        closed_date_unix=closed_date_unix,
        deadline_unix=release_unix if release_unix is not None else NO_DEADLINE_UNIX,
    )
