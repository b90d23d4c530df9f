"""Tests for utility functions."""

from __future__ import annotations

import datetime as dt
import subprocess
from unittest.mock import Mock, patch

import pytest

from jira_to_gitea_migrator.exceptions import MalformedTimestampError
from jira_to_gitea_migrator.utils import InvalidPassPathError, get_pass_value, parse_timestamp, to_unix


@pytest.mark.unit
class TestParseTimestamp:
    def test_jira_compact_offset(self) -> None:
        parsed = parse_timestamp("2024-01-15T10:30:45.000+0300")
        assert parsed == dt.datetime(2024, 1, 15, 7, 30, 45, tzinfo=dt.UTC)

    def test_z_suffix(self) -> None:
        parsed = parse_timestamp("2024-01-15T10:30:45Z")
        assert parsed == dt.datetime(2024, 1, 15, 10, 30, 45, tzinfo=dt.UTC)

    def test_date_only_is_utc_midnight(self) -> None:
        parsed = parse_timestamp("2024-03-01")
        assert parsed == dt.datetime(2024, 3, 1, tzinfo=dt.UTC)

    def test_malformed(self) -> None:
        with pytest.raises(MalformedTimestampError, match="PROJ-1"):
            _ = parse_timestamp("yesterday", context="PROJ-1")

    def test_missing(self) -> None:
        with pytest.raises(MalformedTimestampError, match="Missing"):
            _ = parse_timestamp(None)

    def test_to_unix(self) -> None:
        expected = int(dt.datetime(2024, 1, 15, 7, 30, 45, tzinfo=dt.UTC).timestamp())
        assert to_unix("2024-01-15T10:30:45.000+0300") == expected


@pytest.mark.unit
class TestGetPassValue:
    def test_returns_stripped_output(self) -> None:
        completed = Mock(stdout="secret\n")
        with patch("jira_to_gitea_migrator.utils.subprocess.run", return_value=completed) as mock_run:
            assert get_pass_value("jira/password") == "secret"
        mock_run.assert_called_once()

    def test_invalid_path_format(self) -> None:
        with pytest.raises(ValueError, match="Invalid pass path"):
            _ = get_pass_value("../etc/passwd")

    def test_missing_entry(self) -> None:
        error = subprocess.CalledProcessError(1, ["pass"], stderr="Error: jira/x is not in the password store.")
        with (
            patch("jira_to_gitea_migrator.utils.subprocess.run", side_effect=error),
            pytest.raises(InvalidPassPathError),
        ):
            _ = get_pass_value("jira/x")
