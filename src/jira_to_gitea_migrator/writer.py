"""Write aggregated Jira data into the Gitea database.

The SchemaWriter runs seven phases. Their order is fixed because later
phases reference ids produced by earlier ones:

1. labels          - replaces all labels of the repository
2. milestones      - replaces all milestones of the repository
3. issues          - allocates indexes and inserts issues, filling issue_records
4. issue labels    - best effort
5. assignees
6. dependencies    - best effort
7. comments

Each phase runs in its own transaction and returns a PhaseSummary. A failed
write aborts the run, except in the best-effort phases where a row rejected by
a database constraint is skipped and reported in the summary. Other database
failures (lost connection, missing table) abort those phases too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from . import schema
from .aggregator import issue_label_names
from .content import convert_content
from .context import IssueRecord
from .exceptions import ConstraintViolationError
from .issue_builder import build_issue_body, milestone_dates
from .sequence import build_title
from .utils import to_unix

if TYPE_CHECKING:
    from collections.abc import Callable

    from .context import MigrationContext
    from .identities import IdentityResolver
    from .models import Issue
    from .sequence import SequenceAllocator
    from .sink import Sink

logger: logging.Logger = logging.getLogger(__name__)

# Gitea admin user, used when the Jira user could not be mapped
DEFAULT_POSTER_ID: Final[int] = 1
# Gitea CommentTypeComment
PLAIN_COMMENT_TYPE: Final[int] = 0


@dataclass(frozen=True)
class SkipReason:
    """Why a row was not written."""

    item: str
    reason: str


@dataclass
class PhaseSummary:
    """Outcome of one write phase."""

    name: str
    applied: int = 0
    skipped: list[SkipReason] = field(default_factory=list)

    def record(self, outcome: SkipReason | None) -> None:
        if outcome is None:
            self.applied += 1
        else:
            self.skipped.append(outcome)


class SchemaWriter:
    """Writes the contents of a MigrationContext through a Sink."""

    _sink: Sink
    _context: MigrationContext
    _identities: IdentityResolver
    _allocator: SequenceAllocator

    def __init__(
        self,
        sink: Sink,
        context: MigrationContext,
        identities: IdentityResolver,
        allocator: SequenceAllocator,
    ) -> None:
        self._sink = sink
        self._context = context
        self._identities = identities
        self._allocator = allocator

    @property
    def phases(self) -> list[tuple[str, Callable[[], PhaseSummary]]]:
        """The write phases in the order they must run."""
        return [
            ("labels", self.write_labels),
            ("milestones", self.write_milestones),
            ("issues", self.write_issues),
            ("issue labels", self.assign_labels),
            ("assignees", self.assign_assignees),
            ("dependencies", self.write_dependencies),
            ("comments", self.write_comments),
        ]

    # Phase 1

    def write_labels(self) -> PhaseSummary:
        summary = PhaseSummary("labels")
        repo_id = self._context.repo_id

        with self._sink.transaction():
            _ = self._sink.delete_for_repo(schema.label, repo_id)
            for name in self._context.labels:
                label_id = self._sink.insert(schema.label, repo_id=repo_id, name=name)
                self._context.label_ids[name] = label_id
                summary.record(None)
                logger.debug(f"Created label {name!r} (#{label_id})")

        logger.info(f"Migrated {summary.applied} labels")
        return summary

    # Phase 2

    def write_milestones(self) -> PhaseSummary:
        summary = PhaseSummary("milestones")
        repo_id = self._context.repo_id

        with self._sink.transaction():
            _ = self._sink.delete_for_repo(schema.milestone, repo_id)
            for version in self._context.milestones.values():
                dates = milestone_dates(version)
                milestone_id = self._sink.insert(
                    schema.milestone,
                    repo_id=repo_id,
                    name=version.name,
                    is_closed=version.released,
                    closed_date_unix=dates.closed_date_unix,
                    deadline_unix=dates.deadline_unix,
                    content=convert_content(version.description),
                )
                self._context.milestone_ids[version.name] = milestone_id
                summary.record(None)
                logger.debug(f"Created milestone {version.name!r} (#{milestone_id})")

        logger.info(f"Migrated {summary.applied} milestones")
        return summary

    # Phase 3

    def write_issues(self) -> PhaseSummary:
        summary = PhaseSummary("issues")
        repo_id = self._context.repo_id
        policy = self._allocator.policy

        with self._sink.transaction():
            if policy.deletes_existing_issues:
                deleted = self._sink.delete_for_repo(schema.issue, repo_id)
                logger.info(f"Deleted {deleted} existing issues")

            for issue in self._context.issues:
                index = self._allocator.next_index(issue.key)
                created_unix = to_unix(issue.created, context=f"{issue.key} created")
                updated_unix = to_unix(issue.updated, context=f"{issue.key} updated")
                poster_id = self._identities.resolve(issue.reporter) or DEFAULT_POSTER_ID

                issue_id = self._sink.insert(
                    schema.issue,
                    is_pull=False,
                    repo_id=repo_id,
                    index=index,
                    poster_id=poster_id,
                    name=build_title(policy, issue.key, convert_content(issue.summary)),
                    content=build_issue_body(issue),
                    is_closed=issue.resolved,
                    original_author="",
                    original_author_id=0,
                    created_unix=created_unix,
                    updated_unix=updated_unix,
                    closed_unix=updated_unix if issue.resolved else 0,
                    milestone_id=self._milestone_id(issue),
                )
                self._context.issue_records[issue.key] = IssueRecord(key=issue.key, issue_id=issue_id, index=index)
                summary.record(None)
                logger.debug(f"Created issue #{index} from {issue.key}")

        logger.info(f"Migrated {summary.applied} issues")
        return summary

    def _milestone_id(self, issue: Issue) -> int | None:
        if not issue.fix_versions:
            return None
        return self._context.milestone_ids.get(issue.fix_versions[0].name)

    # Phase 4

    def assign_labels(self) -> PhaseSummary:
        summary = PhaseSummary("issue labels")

        with self._sink.transaction():
            for issue in self._context.issues:
                assigned: set[int] = set()
                for name in issue_label_names(issue):
                    summary.record(self._assign_label(issue.key, name, assigned))

        self._log_summary(summary)
        return summary

    def _assign_label(self, key: str, name: str, assigned: set[int]) -> SkipReason | None:
        item = f"{key} -> {name}"
        record = self._context.issue_records.get(key)
        if record is None:
            return SkipReason(item, "issue was not migrated")

        label_id = self._context.label_ids.get(name)
        if label_id is None:
            logger.warning(f"Cannot add label {name!r} to {key}: label not found")
            return SkipReason(item, "label not found")

        if label_id in assigned:
            return SkipReason(item, "label already assigned")

        try:
            with self._sink.savepoint():
                _ = self._sink.insert(schema.issue_label, label_id=label_id, issue_id=record.issue_id)
        except ConstraintViolationError as e:
            logger.warning(f"Cannot add label {name!r} to {key}: {e}")
            return SkipReason(item, str(e))

        assigned.add(label_id)
        return None

    # Phase 5

    def assign_assignees(self) -> PhaseSummary:
        summary = PhaseSummary("assignees")

        with self._sink.transaction():
            for issue in self._context.issues:
                if issue.assignee is None:
                    continue
                assignee_id = self._identities.resolve(issue.assignee)
                record = self._context.issue_records.get(issue.key)
                if assignee_id is None or record is None:
                    summary.record(SkipReason(issue.key, "assignee or issue not migrated"))
                    continue

                _ = self._sink.insert(schema.issue_assignees, assignee_id=assignee_id, issue_id=record.issue_id)
                summary.record(None)

        self._log_summary(summary)
        return summary

    # Phase 6

    def write_dependencies(self) -> PhaseSummary:
        summary = PhaseSummary("dependencies")

        with self._sink.transaction():
            for issue in self._context.issues:
                record = self._context.issue_records.get(issue.key)
                for blocking_key in issue.blocked_by:
                    summary.record(self._add_dependency(issue.key, record, blocking_key))

        self._log_summary(summary)
        return summary

    def _add_dependency(self, key: str, record: IssueRecord | None, blocking_key: str) -> SkipReason | None:
        item = f"{key} blocked by {blocking_key}"
        blocking = self._context.issue_records.get(blocking_key)
        if record is None or blocking is None:
            logger.debug(f"Skipping dependency {item}: issue not migrated")
            return SkipReason(item, "issue not migrated")

        try:
            with self._sink.savepoint():
                _ = self._sink.insert(
                    schema.issue_dependency,
                    user_id=DEFAULT_POSTER_ID,
                    issue_id=record.issue_id,
                    dependency_id=blocking.issue_id,
                )
        except ConstraintViolationError as e:
            logger.warning(f"Cannot add dependency {item}: {e}")
            return SkipReason(item, str(e))

        return None

    # Phase 7

    def write_comments(self) -> PhaseSummary:
        summary = PhaseSummary("comments")

        with self._sink.transaction():
            for comment in self._context.comments:
                record = self._context.issue_records.get(comment.issue_key)
                if record is None:
                    logger.warning(f"Skipping comment on {comment.issue_key}: issue not migrated")
                    summary.record(SkipReason(comment.issue_key, "issue not migrated"))
                    continue

                _ = self._sink.insert(
                    schema.comment,
                    type=PLAIN_COMMENT_TYPE,
                    poster_id=self._identities.resolve(comment.author) or DEFAULT_POSTER_ID,
                    issue_id=record.issue_id,
                    created_unix=to_unix(comment.created, context=f"comment on {comment.issue_key}"),
                    updated_unix=to_unix(comment.updated, context=f"comment on {comment.issue_key}"),
                    content=convert_content(comment.body),
                )
                summary.record(None)

        self._log_summary(summary)
        return summary

    @staticmethod
    def _log_summary(summary: PhaseSummary) -> None:
        if summary.skipped:
            logger.info(f"Migrated {summary.applied} {summary.name}, skipped {len(summary.skipped)}")
        else:
            logger.info(f"Migrated {summary.applied} {summary.name}")
