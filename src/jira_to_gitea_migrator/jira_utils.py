from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urljoin

import requests

from . import utils
from .exceptions import MigrationError
from .models import Issue, IssueDetails

if TYPE_CHECKING:
    from collections.abc import Iterator

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_PASSWORD_ENV_VAR: Final[str] = "JIRA_PASSWORD"  # noqa: S105
_DEFAULT_PASSWORD_PASS_PATH: Final[str] = "jira/password"  # noqa: S105
_SEARCH_PATH: Final[str] = "/rest/api/2/search"
_REQUEST_TIMEOUT: Final[int] = 60


def get_password(pass_path: str | None = None) -> str | None:
    """Get Jira password from pass path, env var JIRA_PASSWORD, or default pass location."""
    if pass_path:
        return utils.get_pass_value(pass_path)

    password: str | None = os.environ.get(_PASSWORD_ENV_VAR)
    if password:
        return password

    try:
        return utils.get_pass_value(_DEFAULT_PASSWORD_PASS_PATH)
    except (utils.PassError, OSError):
        logger.warning("No Jira password specified nor found")
        return None


def get_session(user: str | None = None, password: str | None = None) -> requests.Session:
    """Get a requests session, authenticated with HTTP basic auth when a user is given."""
    session = requests.Session()
    if user:
        session.auth = (user, password or "")
    session.headers["Accept"] = "application/json"
    return session


def build_filter(filter_id: str) -> str:
    """Build the JQL selecting the issues of a saved Jira filter."""
    return f"filter = {filter_id}"


class JiraClient:
    """Reads issues from the Jira REST API (v2)."""

    server: str
    _session: requests.Session

    def __init__(self, server: str, session: requests.Session) -> None:
        self.server = server.rstrip("/") + "/"
        self._session = session

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:  # noqa: ANN401
        try:
            response = self._session.get(urljoin(self.server, url), params=params, timeout=_REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            msg = f"Jira request to {url} failed: {e}"
            raise MigrationError(msg) from e

    def iter_issue_pages(self, filter_id: str) -> Iterator[dict[str, Any]]:
        """Yield raw search result pages until Jira reports all issues delivered."""
        start = 0
        jql = build_filter(filter_id)

        while True:
            page = self._get_json(_SEARCH_PATH, params={"startAt": start, "jql": jql})
            if not page:
                return
            yield page

            received = int(page.get("startAt", start)) + int(page.get("maxResults", 0))
            if received >= int(page.get("total", 0)) or not page.get("issues"):
                return
            start = received

    def load_issues(self, filter_id: str, limit: int | None = None) -> list[Issue]:
        """Load all issues matched by a saved filter.

        Args:
            filter_id: Id of the saved Jira filter
            limit: Stop requesting pages once at least this many issues are loaded

        Returns:
            Issues in the order Jira returned them, leaving out issues without a key
        """
        issues: list[Issue] = []

        for page in self.iter_issue_pages(filter_id):
            for raw in page.get("issues") or []:
                if not raw or not raw.get("key"):
                    logger.debug(f"Skipping Jira issue without key: {raw!r}")
                    continue
                issues.append(Issue.from_json(raw))
            logger.info(f"Loaded {len(issues)} issues")

            if limit is not None and limit > 0 and len(issues) >= limit:
                break

        return issues

    def load_details(self, url: str) -> IssueDetails | None:
        """Load the detail record (with comments) of an issue from its self URL."""
        if not url:
            return None
        data = self._get_json(url)
        if not data or not data.get("key"):
            return None
        return IssueDetails.from_json(data)
