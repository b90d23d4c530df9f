"""Database access for the Gitea target.

The SchemaWriter talks to the database only through the Sink protocol, which
allows testing the writer with a mock sink. SqlAlchemySink is the real
implementation: every statement is built with SQLAlchemy Core and values are
bound as parameters.

Transactions
------------
``transaction()`` opens one database transaction; statements issued inside it
share a connection and are committed together when the block exits without
error. Statements issued outside any transaction run in their own short
transaction. ``savepoint()`` wraps a single best-effort row so that a
constraint violation can be rolled back without aborting the enclosing phase.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .exceptions import ConstraintViolationError, StoreWriteError

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from sqlalchemy import Connection, Engine, Executable, Table

logger: logging.Logger = logging.getLogger(__name__)


class Sink(Protocol):
    """Write access to the target database."""

    def transaction(self) -> AbstractContextManager[None]:
        """Group the enclosed statements into one committed unit."""
        ...

    def savepoint(self) -> AbstractContextManager[None]:
        """Roll back only the enclosed statements if they fail."""
        ...

    def insert(self, table: Table, **values: Any) -> int:  # noqa: ANN401
        """Insert one row and return its generated id.

        Raises:
            ConstraintViolationError: If the row violates a constraint
            StoreWriteError: If the write fails for any other reason
        """
        ...

    def scalar(self, statement: Executable) -> Any:  # noqa: ANN401
        """Run a query and return the first column of the first row, or None."""
        ...

    def delete_for_repo(self, table: Table, repo_id: int) -> int:
        """Delete all rows of a table belonging to a repository."""
        ...

    def execute(self, statement: Executable) -> int:
        """Run a write statement and return the number of affected rows."""
        ...


class SqlAlchemySink:
    """Sink backed by a SQLAlchemy engine."""

    _engine: Engine
    _connection: Connection | None

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._connection = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._connection is not None:
            # Already inside a transaction: join it
            yield
            return

        try:
            with self._engine.begin() as connection:
                self._connection = connection
                try:
                    yield
                finally:
                    self._connection = None
        except IntegrityError as e:
            raise ConstraintViolationError(str(e.orig)) from e
        except SQLAlchemyError as e:
            msg = f"Database transaction failed: {e}"
            raise StoreWriteError(msg) from e

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self.transaction(), self._active_connection().begin_nested():
            yield

    def insert(self, table: Table, **values: Any) -> int:  # noqa: ANN401
        with self.transaction():
            result = self._run(self._active_connection().execute, insert(table).values(**values), table.name)
            primary_key = result.inserted_primary_key
        if primary_key is None or primary_key[0] is None:
            msg = f"No id generated for insert into {table.name}"
            raise StoreWriteError(msg)
        logger.debug(f"Inserted {table.name} #{primary_key[0]}")
        return int(primary_key[0])

    def scalar(self, statement: Executable) -> Any:  # noqa: ANN401
        with self.transaction():
            return self._run(self._active_connection().scalar, statement, "query")

    def delete_for_repo(self, table: Table, repo_id: int) -> int:
        deleted = self.execute(delete(table).where(table.c.repo_id == repo_id))
        logger.debug(f"Deleted {deleted} rows from {table.name} for repository {repo_id}")
        return deleted

    def execute(self, statement: Executable) -> int:
        with self.transaction():
            result = self._run(self._active_connection().execute, statement, "statement")
            return result.rowcount

    def _active_connection(self) -> Connection:
        if self._connection is None:
            msg = "No active database transaction"
            raise StoreWriteError(msg)
        return self._connection

    @staticmethod
    def _run(method: Any, statement: Executable, what: str) -> Any:  # noqa: ANN401
        try:
            return method(statement)
        except IntegrityError as e:
            msg = f"Constraint violated by {what}: {e.orig}"
            raise ConstraintViolationError(msg) from e
        except SQLAlchemyError as e:
            msg = f"Database write failed for {what}: {e}"
            raise StoreWriteError(msg) from e
