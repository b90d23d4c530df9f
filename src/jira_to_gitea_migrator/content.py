"""Convert Jira wiki markup to Gitea markdown."""

from __future__ import annotations

import re
from typing import Final

CODE_FENCE: Final[str] = "\n```\n"

# Applied in order. No replacement produces text matched by an earlier rule,
# so converting twice gives the same result as converting once.
_RULES: Final[list[tuple[re.Pattern[str], str]]] = [
    (re.compile(r"\{quote\}"), CODE_FENCE),
    (re.compile(r"\{noformat\}"), CODE_FENCE),
    (re.compile(r"^h2\.[ \t]+", re.MULTILINE), "## "),
    (re.compile(r"\[([^\[\]|]+)\|([^\[\]|]+)\]"), r"[\1](\2)"),
]


def convert_content(text: str | None) -> str:
    """Convert Jira markup in text to markdown.

    Handles quote and noformat blocks, level 2 headings and ``[text|url]``
    links. Anything else is passed through unchanged.
    """
    if not text:
        return ""

    result = text
    for pattern, replacement in _RULES:
        result = pattern.sub(replacement, result)
    return result
