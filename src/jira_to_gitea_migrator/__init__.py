"""
Jira to Gitea Migration Tool

Migrates Jira issues into a Gitea repository database, with users, labels,
milestones, assignees, dependencies and comments.
"""

from __future__ import annotations

from .cli import main
from .content import convert_content
from .exceptions import ConstraintViolationError, MalformedTimestampError, MigrationError, StoreWriteError
from .orchestrator import MigrationResult, Migrator
from .sequence import DestructiveReimport, IndexPolicy, PreserveExisting
from .sink import SqlAlchemySink
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ConstraintViolationError",
    "DestructiveReimport",
    "IndexPolicy",
    "MalformedTimestampError",
    "MigrationError",
    "MigrationResult",
    "Migrator",
    "PreserveExisting",
    "SqlAlchemySink",
    "StoreWriteError",
    "convert_content",
    "main",
    "setup_logging",
]
