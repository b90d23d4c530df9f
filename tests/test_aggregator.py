"""Tests for aggregating Jira issues."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from jira_to_gitea_migrator.aggregator import Aggregator, issue_label_names
from jira_to_gitea_migrator.context import MigrationContext
from jira_to_gitea_migrator.models import Comment, FixVersion, Issue, IssueDetails, UserInfo


def _make_aggregator() -> tuple[Aggregator, Mock]:
    identities = Mock()
    return Aggregator(MigrationContext(repo_id=1), identities), identities


@pytest.mark.unit
class TestIssueLabelNames:
    def test_all_sources(self) -> None:
        issue = Issue(key="PROJ-1", labels=("ui",), components=("core",), issue_type="Bug")
        assert issue_label_names(issue) == ["ui", "comp/core", "kind/Bug"]

    def test_no_labels(self) -> None:
        assert issue_label_names(Issue(key="PROJ-1")) == []


@pytest.mark.unit
class TestAggregator:
    def test_labels_are_deduplicated(self) -> None:
        aggregator, _ = _make_aggregator()

        aggregator.add_issue(Issue(key="PROJ-1", labels=("ui", "comp/core"), components=("core",), issue_type="Bug"))
        aggregator.add_issue(Issue(key="PROJ-2", labels=("ui",), components=("core",), issue_type="Bug"))

        assert list(aggregator.context.labels) == ["ui", "comp/core", "kind/Bug"]

    def test_first_milestone_wins(self) -> None:
        aggregator, _ = _make_aggregator()
        first = FixVersion(name="1.0", released=True, description="first")
        second = FixVersion(name="1.0", released=False, description="second")

        aggregator.add_issue(Issue(key="PROJ-1", fix_versions=(first,)))
        aggregator.add_issue(Issue(key="PROJ-2", fix_versions=(second, FixVersion(name="2.0"))))

        assert list(aggregator.context.milestones) == ["1.0", "2.0"]
        assert aggregator.context.milestones["1.0"] is first

    def test_issues_keep_order(self) -> None:
        aggregator, _ = _make_aggregator()
        for key in ("PROJ-3", "PROJ-1", "PROJ-2"):
            aggregator.add_issue(Issue(key=key))

        assert [i.key for i in aggregator.context.issues] == ["PROJ-3", "PROJ-1", "PROJ-2"]

    def test_registers_issue_users(self) -> None:
        aggregator, identities = _make_aggregator()
        reporter = UserInfo(name="a", email="a@x.com")
        assignee = UserInfo(name="b", email="b@x.com")

        aggregator.add_issue(Issue(key="PROJ-1", reporter=reporter, assignee=assignee))

        ensured = [call.args[0] for call in identities.ensure.call_args_list]
        assert reporter in ensured
        assert assignee in ensured

    def test_details_add_comments_and_authors(self) -> None:
        aggregator, identities = _make_aggregator()
        author = UserInfo(name="c", email="c@x.com")
        details = IssueDetails(
            key="PROJ-1",
            comments=(Comment(issue_key="PROJ-1", author=author, body="hi"),),
        )

        aggregator.add_details(details)

        assert aggregator.context.comments == list(details.comments)
        identities.ensure.assert_called_once_with(author)

    def test_details_without_comments(self) -> None:
        aggregator, identities = _make_aggregator()

        aggregator.add_details(IssueDetails(key="PROJ-1"))

        assert aggregator.context.comments == []
        identities.ensure.assert_not_called()
