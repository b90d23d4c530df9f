"""
Utility functions for the Jira to Gitea migration tool.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
import subprocess
from subprocess import CompletedProcess

from .exceptions import MalformedTimestampError


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid."""


# Jira renders offsets without a colon (e.g. "2024-01-15T10:30:45.123+0300")
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the migration process."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler("migration.log", mode="a")],
    )


def _validate_pass_path(pass_path: str) -> None:
    """Validate the pass path format."""
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)


def get_pass_value(pass_path: str) -> str:
    """Get value from pass utility at specified path."""
    _validate_pass_path(pass_path)

    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", pass_path], capture_output=True, text=True, check=True
        )
    except subprocess.CalledProcessError as e:
        if e.returncode == 1 and "not in the password store" in e.stderr.lower():
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        msg = (
            f"Failed to get value from pass at '{pass_path}'.\n"
            f"Error: {e.stderr.strip()}\n"
            f"Return code: {e.returncode}"
        )
        raise PassError(msg) from e

    return result.stdout.strip()


def parse_timestamp(value: str | None, *, context: str = "") -> dt.datetime:
    """Parse a Jira timestamp into an aware datetime.

    Date-only values and naive timestamps are taken as UTC.

    Raises:
        MalformedTimestampError: If the value is missing or not ISO 8601
    """
    where = f" ({context})" if context else ""
    if not value:
        msg = f"Missing timestamp{where}"
        raise MalformedTimestampError(msg)

    normalized = _COMPACT_OFFSET_RE.sub(r"\1:\2", value.strip())
    try:
        parsed = dt.datetime.fromisoformat(normalized)
    except ValueError as e:
        msg = f"Malformed timestamp {value!r}{where}"
        raise MalformedTimestampError(msg) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def to_unix(value: str | None, *, context: str = "") -> int:
    """Parse a Jira timestamp and return it as Unix seconds."""
    return int(parse_timestamp(value, context=context).timestamp())
