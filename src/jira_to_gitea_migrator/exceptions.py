"""
Custom exception classes for the Jira to Gitea migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class StoreWriteError(MigrationError):
    """Raised when a write to the Gitea database fails."""


class ConstraintViolationError(StoreWriteError):
    """Raised when a write is rejected by a database constraint (duplicate row, missing foreign key)."""


class MalformedTimestampError(MigrationError):
    """Raised when a Jira timestamp is missing or cannot be parsed."""
