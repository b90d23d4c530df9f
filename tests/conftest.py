"""
Pytest configuration and fixtures.

This module configures pytest behavior for different test types:
- Integration tests: Run against an in-memory SQLite Gitea schema and fail on
  any warnings from the code under test
- Unit tests: Allow warnings
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from typing_extensions import override

import pytest
from sqlalchemy import create_engine, event, select

from jira_to_gitea_migrator import schema
from jira_to_gitea_migrator.sink import SqlAlchemySink

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from sqlalchemy import Engine, Table

# Store warning records during test execution
_integration_test_warnings: dict[str, list[logging.LogRecord]] = {}


class IntegrationTestWarningHandler(logging.Handler):
    """Custom logging handler to capture warnings during integration tests."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__()
        self.test_nodeid = test_nodeid
        self.setLevel(logging.WARNING)

    @override
    def emit(self, record: logging.LogRecord) -> None:
        """Capture WARNING and above level logs."""
        if self.test_nodeid not in _integration_test_warnings:
            _integration_test_warnings[self.test_nodeid] = []
        _integration_test_warnings[self.test_nodeid].append(record)


@pytest.fixture(autouse=True)
def fail_on_log_warnings_for_integration_tests(
    request: pytest.FixtureRequest,
) -> Generator[None]:
    """
    Automatically fail integration tests if any WARNING level logs are emitted from the code under test.

    A clean migration skips nothing, so a warning in an integration test means
    a label, dependency or comment was silently dropped.
    Tests that provoke a skip on purpose opt out with @pytest.mark.allow_warnings.
    """
    is_integration_test = request.node.get_closest_marker("integration") is not None
    allows_warnings = request.node.get_closest_marker("allow_warnings") is not None

    if not is_integration_test or allows_warnings:
        yield
        return

    test_nodeid = request.node.nodeid
    _integration_test_warnings[test_nodeid] = []

    handler = IntegrationTestWarningHandler(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None]:  # type: ignore[misc]
    """
    Hook to check for warnings after test execution and mark test as failed if warnings were detected.
    """
    outcome = yield
    report = outcome.get_result()

    if call.when == "call" and report.outcome == "passed":
        test_nodeid = item.nodeid
        warning_records = _integration_test_warnings.get(test_nodeid, [])

        if warning_records:
            warning_messages = [
                f"{record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})"
                for record in warning_records
            ]

            report.outcome = "failed"
            report.longrepr = f"Integration test failed: {len(warning_records)} warning(s) detected:\n" + "\n".join(
                f"  - {msg}" for msg in warning_messages
            )

        _integration_test_warnings.pop(test_nodeid, None)


@pytest.fixture
def engine() -> Generator[Engine]:
    """In-memory SQLite database with the Gitea tables."""
    engine = create_engine("sqlite://")

    # Let SQLAlchemy control transactions so that SAVEPOINT works with pysqlite
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, _record: Any) -> None:  # noqa: ANN401
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Any) -> None:  # noqa: ANN401
        connection.exec_driver_sql("BEGIN")

    schema.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sink(engine: Engine) -> SqlAlchemySink:
    return SqlAlchemySink(engine)


@pytest.fixture
def fetch_rows(engine: Engine) -> Callable[[Table], list[dict[str, Any]]]:
    """Return all rows of a table as dicts, ordered by insertion."""

    def _fetch(table: Table) -> list[dict[str, Any]]:
        with engine.connect() as connection:
            return [dict(row) for row in connection.execute(select(table)).mappings()]

    return _fetch
