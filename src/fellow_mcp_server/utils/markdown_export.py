"""Markdown rendering helpers.

Turns notes, transcripts, action items and cache statistics into the
plain Markdown text returned by the MCP tools.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from ..schemas import ActionItemRow, ParsedActionItem, StoreStats, SyncResult, Transcript

SNIPPET_CONTEXT = 50


def format_time(seconds: float) -> str:
    """Format a transcript offset as ``MM:SS``."""
    total = max(0, int(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


def render_transcript(transcript: Optional[Transcript]) -> str:
    if transcript is None or not transcript.speech_segments:
        return "No transcript available."
    lines = [f"Language: {transcript.language_code}", ""]
    for seg in transcript.speech_segments:
        lines.append(
            f"[{format_time(seg.start_time)} - {format_time(seg.end_time)}] "
            f"{seg.speaker}: {seg.text}"
        )
    return "\n".join(lines) + "\n"


def render_header(
    kind: str, title: str, id_label: str, item_id: str, event_start: Optional[str]
) -> str:
    return (
        f"# {kind}: {title}\n\n"
        f"{id_label}: {item_id}\n"
        f"Event Start: {event_start or 'N/A'}\n\n"
    )


def _action_line(item: ParsedActionItem) -> str:
    return f"{'[x]' if item.is_completed else '[ ]'} {item.content}"


def render_action_items(items: Sequence[ParsedActionItem]) -> str:
    """Numbered list used for a single meeting."""
    if not items:
        return "No action items found in this meeting."
    lines = []
    for i, item in enumerate(items, 1):
        line = f"{i}. {_action_line(item)}"
        if item.assignee:
            line += f" (assignee: @{item.assignee})"
        if item.due_date:
            line += f" (due: {item.due_date})"
        lines.append(line)
    return "\n".join(lines)


def render_grouped_action_items(rows: Iterable[ActionItemRow]) -> List[str]:
    """One ``##`` section per meeting, in the order rows arrive."""
    sections: List[str] = []
    current: Optional[str] = None
    for row in rows:
        if row.note_id != current:
            if current is not None:
                sections.append("")
            current = row.note_id
            sections.append(f"## {row.note_title}")
            sections.append(f"Date: {row.event_start or 'N/A'}")
            sections.append("")
        line = f"- {_action_line(row)}"
        if row.assignee:
            line += f" (@{row.assignee})"
        if row.due_date:
            line += f" [due: {row.due_date}]"
        sections.append(line)
    return sections


def snippet(text: Optional[str], query: str, context: int = SNIPPET_CONTEXT) -> Optional[str]:
    """Single-line excerpt of ``text`` around the first match of ``query``.

    Matching is case-insensitive. Returns None when there is no match.
    """
    if not text or not query:
        return None
    match = re.search(re.escape(query), text, re.IGNORECASE)
    if match is None:
        return None
    start = max(0, match.start() - context)
    end = min(len(text), match.end() + context)
    excerpt = text[start:end]
    if start > 0:
        excerpt = "..." + excerpt
    if end < len(text):
        excerpt = excerpt + "..."
    return excerpt.replace("\n", " ")


def render_stats(stats: StoreStats) -> str:
    return (
        f"- Total notes: {stats.notes}\n"
        f"- Total recordings: {stats.recordings}\n"
        f"- Total action items: {stats.action_items}\n"
        f"- Unique participants: {stats.participants}\n"
    )


def render_sync_result(result: SyncResult) -> str:
    return (
        f"- Notes synced: {result.notes_synced}\n"
        f"- Recordings synced: {result.recordings_synced}\n"
        f"- Action items found: {result.action_items_found}\n"
        f"- Participants synced: {result.participants_synced}\n"
    )
