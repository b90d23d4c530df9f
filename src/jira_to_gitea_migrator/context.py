"""State owned by a single migration run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Comment, FixVersion, Issue


@dataclass
class IssueRecord:
    """Where a Jira issue ended up in Gitea."""

    key: str
    issue_id: int
    index: int


@dataclass
class MigrationContext:
    """Everything collected and produced while migrating one repository.

    The Aggregator fills the collections, the SchemaWriter fills the id maps.
    A context is never reused: a failed run starts over with a new one.
    """

    repo_id: int
    labels: dict[str, None] = field(default_factory=dict)
    """Label names in first-seen order (a dict used as an ordered set)."""
    milestones: dict[str, FixVersion] = field(default_factory=dict)
    issues: list[Issue] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    user_ids: dict[str, int] = field(default_factory=dict)
    """Jira email -> Gitea user id."""
    label_ids: dict[str, int] = field(default_factory=dict)
    milestone_ids: dict[str, int] = field(default_factory=dict)
    issue_records: dict[str, IssueRecord] = field(default_factory=dict)

    @property
    def max_index(self) -> int | None:
        """Highest Gitea index assigned in this run, if any issue was written."""
        if not self.issue_records:
            return None
        return max(record.index for record in self.issue_records.values())
