"""Migration orchestrator that coordinates the Jira feed and the Gitea database.

The Migrator class is the central coordinator for migration. It:
1. Pulls issues and their comments from Jira into a MigrationContext
2. Runs the SchemaWriter phases in order
3. Updates the repository's issue index counter
4. Reports statistics and skipped rows

Migration Flow
--------------
Phase 0: Aggregation
    - Load all issues of the saved filter from Jira
    - For each issue, load its details (comments)
    - Users are matched or created in Gitea as they are first seen, so that
      all later phases can resolve them from the cache

Phases 1-7: Writes (see writer.py)
    labels, milestones, issues, issue labels, assignees, dependencies, comments

Final step: Index counter
    Gitea allocates the index of the next issue from issue_index.max_index.
    It is set to the highest index written, which with DestructiveReimport is
    not necessarily the index of the last issue.

Validation
    The run succeeds when every loaded issue and comment was written. Skipped
    labels and dependencies are reported but do not fail the run.

Error Handling
--------------
- Every write phase runs in its own transaction: a failing phase is rolled
  back, phases that completed before it stay committed.
- Rows rejected by constraints in the best-effort phases are skipped and
  listed in the phase summaries.
- Anything else raises a MigrationError and aborts the run. A failed run is
  restarted from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import insert, update

from . import schema
from .aggregator import Aggregator
from .context import MigrationContext
from .identities import IdentityResolver
from .sequence import PreserveExisting, SequenceAllocator
from .writer import SchemaWriter

if TYPE_CHECKING:
    from .context import IssueRecord
    from .jira_utils import JiraClient
    from .sequence import IndexPolicy
    from .sink import Sink
    from .writer import PhaseSummary

logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    issues_loaded: int = 0
    comments_loaded: int = 0
    users_mapped: int = 0
    labels_created: int = 0
    milestones_created: int = 0
    issues_created: int = 0
    labels_assigned: int = 0
    assignees_set: int = 0
    dependencies_created: int = 0
    comments_created: int = 0
    rows_skipped: int = 0


@dataclass
class MigrationResult:
    """Result of a migration run."""

    success: bool
    stats: MigrationStats
    phases: list[PhaseSummary] = field(default_factory=list)
    issue_records: dict[str, IssueRecord] = field(default_factory=dict)
    max_index: int | None = None
    errors: list[str] = field(default_factory=list)


_STAT_FIELDS = {
    "labels": "labels_created",
    "milestones": "milestones_created",
    "issues": "issues_created",
    "issue labels": "labels_assigned",
    "assignees": "assignees_set",
    "dependencies": "dependencies_created",
    "comments": "comments_created",
}


class Migrator:
    """Orchestrates migration from Jira into one Gitea repository.

    Usage:
        sink = SqlAlchemySink(create_engine(db_url))
        migrator = Migrator(sink, repo_id=1, policy=PreserveExisting())
        result = migrator.migrate(jira_client, filter_id="12345")

    A Migrator owns one MigrationContext and is meant for a single run.
    """

    context: MigrationContext

    def __init__(self, sink: Sink, repo_id: int, policy: IndexPolicy | None = None) -> None:
        self._sink = sink
        self.policy: IndexPolicy = policy if policy is not None else PreserveExisting()
        self.context = MigrationContext(repo_id=repo_id)
        self.identities = IdentityResolver(sink, self.context.user_ids)
        self.aggregator = Aggregator(self.context, self.identities)
        self.stats = MigrationStats()

    def migrate(self, feed: JiraClient, filter_id: str, *, limit: int | None = None) -> MigrationResult:
        """Load issues of a saved Jira filter and write them to Gitea.

        Args:
            feed: Client for the Jira REST API
            filter_id: Id of the saved Jira filter selecting the issues
            limit: Stop loading once at least this many issues are loaded

        Returns:
            MigrationResult with statistics and the issue mapping

        Raises:
            MigrationError: If a write fails outside the best-effort phases
        """
        logger.info("Loading Jira issues...")
        issues = feed.load_issues(filter_id, limit=limit)

        for loaded, issue in enumerate(issues, start=1):
            self.aggregator.add_issue(issue)

            details = feed.load_details(issue.self_url)
            if details is not None:
                self.aggregator.add_details(details)

            logger.info(f"Loaded {loaded} out of {len(issues)}")

        return self.import_aggregated()

    def import_aggregated(self) -> MigrationResult:
        """Write everything aggregated so far to Gitea and update the index counter."""
        context = self.context
        self.stats.issues_loaded = len(context.issues)
        self.stats.comments_loaded = len(context.comments)
        self.stats.users_mapped = len(context.user_ids)

        logger.info(f"Importing Jira issues to Gitea repository {context.repo_id}...")

        allocator = SequenceAllocator(self.policy, self._sink, context.repo_id)
        allocator.start()
        writer = SchemaWriter(self._sink, context, self.identities, allocator)

        phases: list[PhaseSummary] = []
        for name, run_phase in writer.phases:
            logger.info(f"Creating {name}")
            summary = run_phase()
            phases.append(summary)
            setattr(self.stats, _STAT_FIELDS[name], summary.applied)
            self.stats.rows_skipped += len(summary.skipped)

        max_index = context.max_index
        if max_index is not None:
            self._update_issue_index(max_index)

        errors = self._validate()
        if errors:
            logger.error(f"Migration incomplete: {'; '.join(errors)}")
        else:
            logger.info("Migration completed successfully")

        return MigrationResult(
            success=not errors,
            stats=self.stats,
            errors=errors,
            phases=phases,
            issue_records=dict(context.issue_records),
            max_index=max_index,
        )

    def _validate(self) -> list[str]:
        """Compare what was loaded from Jira with what was written to Gitea.

        Skipped labels and dependencies are expected losses. A missing issue or
        comment is not.
        """
        errors: list[str] = []
        stats = self.stats
        if stats.issues_created != stats.issues_loaded:
            errors.append(f"Issue count mismatch: Jira {stats.issues_loaded}, Gitea {stats.issues_created}")
        if stats.comments_created != stats.comments_loaded:
            errors.append(f"Comment count mismatch: Jira {stats.comments_loaded}, Gitea {stats.comments_created}")
        return errors

    def _update_issue_index(self, max_index: int) -> None:
        repo_id = self.context.repo_id
        with self._sink.transaction():
            updated = self._sink.execute(
                update(schema.issue_index).where(schema.issue_index.c.group_id == repo_id).values(max_index=max_index)
            )
            if not updated:
                _ = self._sink.execute(insert(schema.issue_index).values(group_id=repo_id, max_index=max_index))
        logger.info(f"Set issue index of repository {repo_id} to {max_index}")
