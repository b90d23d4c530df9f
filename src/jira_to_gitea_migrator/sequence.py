"""Gitea issue index allocation.

Two policies exist:

PreserveExisting
    Existing Gitea issues are kept. New issues are numbered after the current
    highest index of the repository, in migration order. Since the Gitea index
    no longer matches the Jira key, the key is kept in the issue title.

DestructiveReimport
    All Gitea issues of the repository are deleted first and every issue gets
    the number of its Jira key ("PROJ-123" -> 123). Commit messages that
    mention Jira keys keep pointing at the right issue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Final

from sqlalchemy import func, select

from . import schema
from .exceptions import MigrationError

if TYPE_CHECKING:
    from .sink import Sink

logger: logging.Logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH: Final[int] = 255


@dataclass(frozen=True)
class PreserveExisting:
    deletes_existing_issues: ClassVar[bool] = False
    prefixes_title: ClassVar[bool] = True


@dataclass(frozen=True)
class DestructiveReimport:
    separator: str = "-"

    deletes_existing_issues: ClassVar[bool] = True
    prefixes_title: ClassVar[bool] = False


IndexPolicy = PreserveExisting | DestructiveReimport


def build_title(policy: IndexPolicy, key: str, summary: str) -> str:
    """Build the Gitea issue title, prefixed with the Jira key when the policy requires it."""
    title = f"[{key}] {summary}" if policy.prefixes_title else summary
    return title[:MAX_TITLE_LENGTH]


def index_from_key(key: str, separator: str = "-") -> int:
    """Return the number after the last separator of a Jira key."""
    _, sep, suffix = key.rpartition(separator)
    if not sep or not suffix.isdigit():
        msg = f"Cannot derive an issue index from Jira key {key!r}"
        raise MigrationError(msg)
    return int(suffix)


class SequenceAllocator:
    """Hands out Gitea issue indexes according to an IndexPolicy."""

    policy: IndexPolicy
    _next: int | None

    def __init__(self, policy: IndexPolicy, sink: Sink, repo_id: int) -> None:
        self.policy = policy
        self._sink = sink
        self._repo_id = repo_id
        self._next = None

    def start(self) -> None:
        """Read the current highest index of the repository.

        Only needed for PreserveExisting; called implicitly by the first
        next_index() otherwise.
        """
        if isinstance(self.policy, DestructiveReimport):
            return
        current = self._sink.scalar(
            select(func.max(schema.issue.c["index"])).where(schema.issue.c.repo_id == self._repo_id)
        )
        current_max = int(current) if current is not None else 0
        self._next = current_max + 1
        logger.info(f"Repository {self._repo_id} has max issue index {current_max}, continuing at {self._next}")

    def next_index(self, key: str) -> int:
        if isinstance(self.policy, DestructiveReimport):
            return index_from_key(key, self.policy.separator)

        if self._next is None:
            self.start()
        assert self._next is not None  # set by start()
        index = self._next
        self._next += 1
        return index
