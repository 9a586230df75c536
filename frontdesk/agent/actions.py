"""Split a trailing JSON action directive from a free-form agent reply."""

from __future__ import annotations

import json
from typing import Any, TypeAlias

ActionDirective: TypeAlias = dict[str, Any]


def _parse_directive(line: str) -> ActionDirective | None:
    try:
        parsed = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if isinstance(parsed, dict) and isinstance(parsed.get("action"), str):
        return parsed
    return None


def extract_action(raw_text: str) -> tuple[str, ActionDirective | None]:
    """
    Return ``(clean_text, action)`` for an agent reply.

    Only the last line (after trimming) is considered. When it is a JSON
    object with a string ``action`` field, it is removed and the remaining
    lines, joined and trimmed, become the clean text. Anything else leaves the
    original text untouched with no action. A reply made of the directive
    alone yields an empty clean text.
    """
    lines = raw_text.strip().split("\n")
    action = _parse_directive(lines[-1].strip())
    if action is None:
        return raw_text, None
    return "\n".join(lines[:-1]).strip(), action
