"""Action item extraction from note markdown.

Scans content line by line. Each line yields at most one item, from the
first pattern that matches:

1. Checkbox bullets: ``- [ ] text`` / ``* [x] text``.
2. Labelled lines: ``Action Item:``, ``Action:``, ``TODO:``, ``To-Do:``,
   ``To Do:`` (optionally bulleted, case-insensitive).
3. Mention-prefixed bullets: ``- @name: text`` or ``- @name - text``.

Assignee and due date are then derived from the item text. This is a
heuristic: anything that does not parse cleanly is simply left unset.

Usage example:
    items = extract_action_items("- [x] Finish report @alice due: 2024-03-01")
    assert items[0].assignee == "alice"
"""

from __future__ import annotations

import re
from datetime import date
from typing import List, Optional, Tuple

from .schemas import ParsedActionItem

CHECKBOX_RE = re.compile(r"^\s*[-*]\s*\[([ xX])\]\s*(.+)")
LABELLED_RE = re.compile(
    r"^\s*[-*]?\s*(?:Action\s*Item|Action|TODO|To-Do|To Do)\s*:\s*(.+)", re.IGNORECASE
)
MENTION_PREFIX_RE = re.compile(r"^\s*[-*]\s*(@\w+[\w\s]*?)\s*[-:]\s*(.+)")

MENTION_RE = re.compile(r"@(\w+)")
ISO_DUE_RE = re.compile(r"(?:due|by|deadline)\s*:?\s*(\d{4}-\d{2}-\d{2})", re.IGNORECASE)
US_DUE_RE = re.compile(
    r"(?:due|by|deadline)\s*:?\s*(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})\b", re.IGNORECASE
)


def normalize_us_date(month: str, day: str, year: str) -> Optional[str]:
    """Turn M/D/Y or M/D/YY parts into YYYY-MM-DD.

    Two-digit years are taken to be in the 2000s. Returns None for dates
    that do not exist.
    """

    if len(year) == 2:
        year = "20" + year
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def _valid_iso(value: str) -> Optional[str]:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        return None


def parse_due_date(text: str) -> Optional[str]:
    """ISO dates after due/by/deadline win over US-style ones."""

    iso = ISO_DUE_RE.search(text)
    if iso and _valid_iso(iso.group(1)):
        return iso.group(1)
    us = US_DUE_RE.search(text)
    if us:
        return normalize_us_date(*us.groups())
    return None


def parse_assignee_and_due_date(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(assignee, due_date)`` found anywhere in ``text``.

    The assignee is the first ``@word`` token.
    """

    mention = MENTION_RE.search(text)
    return (mention.group(1) if mention else None), parse_due_date(text)


def _match_line(line: str) -> Optional[ParsedActionItem]:
    m = CHECKBOX_RE.match(line)
    if m:
        content = m.group(2).strip()
        assignee, due = parse_assignee_and_due_date(content)
        return ParsedActionItem(
            content=content,
            assignee=assignee,
            due_date=due,
            is_completed=m.group(1).lower() == "x",
        )

    m = LABELLED_RE.match(line)
    if m:
        content = m.group(1).strip()
        assignee, due = parse_assignee_and_due_date(content)
        return ParsedActionItem(content=content, assignee=assignee, due_date=due)

    m = MENTION_PREFIX_RE.match(line)
    if m:
        # The prefix is the assignee; it may contain spaces ("@Jane Doe").
        assignee = m.group(1).replace("@", "", 1).strip()
        remainder = m.group(2).strip()
        return ParsedActionItem(
            content=f"@{assignee}: {remainder}",
            assignee=assignee,
            due_date=parse_due_date(remainder),
        )
    return None


def extract_action_items(content: Optional[str]) -> List[ParsedActionItem]:
    """Extract action items from markdown, in document order."""

    if not content:
        return []
    items: List[ParsedActionItem] = []
    for line in content.splitlines():
        item = _match_line(line)
        if item is not None:
            items.append(item)
    return items
