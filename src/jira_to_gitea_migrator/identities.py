"""Map Jira users to Gitea user ids, creating Gitea users on first sight."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sqlalchemy import select

from . import schema

if TYPE_CHECKING:
    from .models import UserInfo
    from .sink import Sink

logger: logging.Logger = logging.getLogger(__name__)

# Gitea UserTypeIndividual
IMPORTED_USER_TYPE: Final[int] = 0
# Not a valid password hash, so imported users cannot log in until reset
UNUSABLE_PASSWORD: Final[str] = "!imported"  # noqa: S105


class IdentityResolver:
    """Resolves Jira users to Gitea user ids, keyed by email.

    The first Jira user seen for an email decides the name of the created
    Gitea user; later users sharing that email map to the same id.
    """

    _sink: Sink
    _user_ids: dict[str, int]

    def __init__(self, sink: Sink, user_ids: dict[str, int] | None = None) -> None:
        self._sink = sink
        self._user_ids = user_ids if user_ids is not None else {}

    def ensure(self, user: UserInfo | None) -> int | None:
        """Return the Gitea id for a user, creating the Gitea user if needed.

        Returns None for users without an email, which cannot be matched.
        """
        if user is None or not user.email:
            return None

        cached = self._user_ids.get(user.email)
        if cached is not None:
            return cached

        existing = self._sink.scalar(select(schema.user.c.id).where(schema.user.c.email == user.email).limit(1))
        if existing is not None:
            user_id = int(existing)
            logger.debug(f"Matched Jira user {user.email} to existing Gitea user #{user_id}")
        else:
            # Login name first: Gitea user names cannot contain spaces, display names often do
            name = user.name or user.display_name or user.email.split("@", 1)[0]
            user_id = self._sink.insert(
                schema.user,
                type=IMPORTED_USER_TYPE,
                name=name,
                lower_name=name.lower(),
                email=user.email,
                passwd=UNUSABLE_PASSWORD,
                avatar="",
                avatar_email=user.email,
            )
            logger.info(f"Created Gitea user #{user_id} for {name} <{user.email}>")

        self._user_ids[user.email] = user_id
        return user_id

    def resolve(self, user: UserInfo | str | None) -> int | None:
        """Return the cached Gitea id for a user or email, without touching the database."""
        email = user if isinstance(user, str) or user is None else user.email
        if not email:
            return None
        return self._user_ids.get(email)

    @property
    def user_ids(self) -> dict[str, int]:
        return dict(self._user_ids)
