"""Data models for issues read from the Jira REST API.

These models are the normalized form of the JSON returned by the Jira search
and issue endpoints. They are immutable once built: the Aggregator and the
SchemaWriter only read them.

Only the fields the migration needs are kept. Everything optional in the Jira
payload is optional here too, so that partially populated issues can still be
migrated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

# Custom fields of the source Jira instance
REPRODUCE_STEPS_FIELD: Final[str] = "customfield_10035"
FORUM_FIELD: Final[str] = "customfield_10100"
RELEASE_COMMENT_FIELD: Final[str] = "customfield_11100"


@dataclass(frozen=True)
class UserInfo:
    """A Jira user as referenced by an issue or comment.

    The email is the identity key: two Jira users sharing an email are
    migrated as a single Gitea user.
    """

    name: str
    email: str | None
    display_name: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> UserInfo | None:
        if not data:
            return None
        return cls(
            name=data.get("name") or data.get("displayName") or "",
            email=data.get("emailAddress") or None,
            display_name=data.get("displayName") or "",
        )


@dataclass(frozen=True)
class FixVersion:
    """A Jira release, migrated as a Gitea milestone."""

    name: str
    released: bool = False
    release_date: str | None = None
    description: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> FixVersion:
        return cls(
            name=data["name"],
            released=bool(data.get("released", False)),
            release_date=data.get("releaseDate"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Issue:
    """A Jira issue summary as returned by the search endpoint."""

    key: str
    self_url: str = ""
    summary: str = ""
    description: str | None = None
    reproduce_steps: str | None = None
    forum: str | None = None
    release_comment: str | None = None
    resolved: bool = False
    creator: UserInfo | None = None
    reporter: UserInfo | None = None
    assignee: UserInfo | None = None
    labels: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    fix_versions: tuple[FixVersion, ...] = ()
    issue_type: str | None = None
    blocked_by: tuple[str, ...] = ()
    """Keys of the inward issues this issue links to."""
    created: str | None = None
    updated: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Issue:
        fields: dict[str, Any] = data.get("fields") or {}

        components = tuple(c["name"] for c in fields.get("components") or [] if c.get("name"))
        links = tuple(
            link["inwardIssue"]["key"]
            for link in fields.get("issuelinks") or []
            if link.get("inwardIssue") and link["inwardIssue"].get("key")
        )
        issue_type = (fields.get("issuetype") or {}).get("name") or None

        return cls(
            key=data["key"],
            self_url=data.get("self", ""),
            summary=fields.get("summary") or "",
            description=fields.get("description"),
            reproduce_steps=fields.get(REPRODUCE_STEPS_FIELD),
            forum=fields.get(FORUM_FIELD),
            release_comment=fields.get(RELEASE_COMMENT_FIELD),
            resolved=fields.get("resolution") is not None,
            creator=UserInfo.from_json(fields.get("creator")),
            reporter=UserInfo.from_json(fields.get("reporter")),
            assignee=UserInfo.from_json(fields.get("assignee")),
            labels=tuple(fields.get("labels") or ()),
            components=components,
            fix_versions=tuple(FixVersion.from_json(v) for v in fields.get("fixVersions") or []),
            issue_type=issue_type,
            blocked_by=links,
            created=fields.get("created"),
            updated=fields.get("updated"),
        )


@dataclass(frozen=True)
class Comment:
    """A comment on a Jira issue, carrying the key of its parent issue."""

    issue_key: str
    author: UserInfo | None
    body: str
    created: str | None = None
    updated: str | None = None


@dataclass(frozen=True)
class IssueDetails:
    """Per-issue detail record; only the comments are used."""

    key: str
    comments: tuple[Comment, ...] = ()

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> IssueDetails:
        key: str = data["key"]
        fields: dict[str, Any] = data.get("fields") or {}
        raw_comments = (fields.get("comment") or {}).get("comments") or []
        comments = tuple(
            Comment(
                issue_key=key,
                author=UserInfo.from_json(c.get("author")),
                body=c.get("body") or "",
                created=c.get("created"),
                updated=c.get("updated"),
            )
            for c in raw_comments
        )
        return cls(key=key, comments=comments)
