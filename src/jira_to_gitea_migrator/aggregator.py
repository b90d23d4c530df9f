"""
Collect Jira issues and comments into the sets that get written to Gitea.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .context import MigrationContext
    from .identities import IdentityResolver
    from .models import Issue, IssueDetails

logger: logging.Logger = logging.getLogger(__name__)

COMPONENT_LABEL_PREFIX: Final[str] = "comp/"
ISSUE_TYPE_LABEL_PREFIX: Final[str] = "kind/"


def issue_label_names(issue: Issue) -> list[str]:
    """Return the Gitea label names for an issue: raw labels, components and issue type."""
    names = list(issue.labels)
    names.extend(f"{COMPONENT_LABEL_PREFIX}{component}" for component in issue.components)
    if issue.issue_type:
        names.append(f"{ISSUE_TYPE_LABEL_PREFIX}{issue.issue_type}")
    return names


class Aggregator:
    """Builds the deduplicated labels and milestones and the ordered issues and comments."""

    def __init__(self, context: MigrationContext, identities: IdentityResolver) -> None:
        self.context = context
        self.identities = identities

    def add_issue(self, issue: Issue) -> None:
        for user in (issue.assignee, issue.creator, issue.reporter):
            _ = self.identities.ensure(user)

        for name in issue_label_names(issue):
            self.context.labels.setdefault(name, None)

        for version in issue.fix_versions:
            # First occurrence of a version name wins
            self.context.milestones.setdefault(version.name, version)

        self.context.issues.append(issue)
        logger.debug(f"Aggregated issue {issue.key}")

    def add_details(self, details: IssueDetails) -> None:
        for comment in details.comments:
            _ = self.identities.ensure(comment.author)
            self.context.comments.append(comment)

        if details.comments:
            logger.debug(f"Aggregated {len(details.comments)} comments for {details.key}")
