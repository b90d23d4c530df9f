"""Gitea tables written by the migration.

Only the columns the migration reads or writes are declared. The real Gitea
tables have more columns, all of which have server-side defaults.
The unique constraints are the ones Gitea declares, so duplicate rows are
rejected the same way.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Column, Integer, MetaData, String, Table, Text, UniqueConstraint

metadata = MetaData()

# SQLite only auto-increments INTEGER PRIMARY KEY columns
_Id = BigInteger().with_variant(Integer(), "sqlite")


def _id_column() -> Column[int]:
    return Column("id", _Id, primary_key=True, autoincrement=True)


label = Table(
    "label",
    metadata,
    _id_column(),
    Column("repo_id", BigInteger, index=True),
    Column("name", String(255)),
)

milestone = Table(
    "milestone",
    metadata,
    _id_column(),
    Column("repo_id", BigInteger, index=True),
    Column("name", String(255)),
    Column("is_closed", Boolean),
    Column("closed_date_unix", BigInteger, nullable=True),
    Column("deadline_unix", BigInteger),
    Column("content", Text),
)

issue = Table(
    "issue",
    metadata,
    _id_column(),
    Column("is_pull", Boolean),
    Column("repo_id", BigInteger, index=True),
    Column("index", BigInteger),
    Column("poster_id", BigInteger),
    Column("name", String(255)),
    Column("content", Text),
    Column("is_closed", Boolean),
    Column("original_author", String(255)),
    Column("original_author_id", BigInteger),
    Column("created_unix", BigInteger),
    Column("updated_unix", BigInteger),
    Column("closed_unix", BigInteger),
    Column("milestone_id", BigInteger, nullable=True),
)

issue_label = Table(
    "issue_label",
    metadata,
    _id_column(),
    Column("label_id", BigInteger),
    Column("issue_id", BigInteger),
    UniqueConstraint("issue_id", "label_id", name="UQE_issue_label_s"),
)

issue_assignees = Table(
    "issue_assignees",
    metadata,
    _id_column(),
    Column("assignee_id", BigInteger),
    Column("issue_id", BigInteger),
)

issue_dependency = Table(
    "issue_dependency",
    metadata,
    _id_column(),
    Column("user_id", BigInteger),
    Column("issue_id", BigInteger),
    Column("dependency_id", BigInteger),
    UniqueConstraint("issue_id", "dependency_id", name="UQE_issue_dependency_issue_dependency"),
)

comment = Table(
    "comment",
    metadata,
    _id_column(),
    Column("type", Integer),
    Column("poster_id", BigInteger),
    Column("issue_id", BigInteger, index=True),
    Column("created_unix", BigInteger),
    Column("updated_unix", BigInteger),
    Column("content", Text),
)

user = Table(
    "user",
    metadata,
    _id_column(),
    Column("type", Integer),
    Column("name", String(255)),
    Column("lower_name", String(255)),
    Column("email", String(255), index=True),
    Column("passwd", String(255)),
    Column("avatar", String(2048)),
    Column("avatar_email", String(255)),
)

issue_index = Table(
    "issue_index",
    metadata,
    Column("group_id", BigInteger, primary_key=True, autoincrement=False),
    Column("max_index", BigInteger),
)
