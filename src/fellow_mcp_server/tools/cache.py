"""Tools that answer from the local cache.

`get_all_action_items` refreshes the cache with an incremental sync
first; the other tools only read.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from ..context import ServerContext
from ..errors import AppError
from ..schemas import (
    AllActionItemsInput,
    ParticipantsSearchInput,
    SearchNotesInput,
    SyncResult,
)
from ..utils import normalize_date_input, render_grouped_action_items, snippet

logger = structlog.get_logger(__name__)


def get_all_action_items(ctx: ServerContext, params: AllActionItemsInput) -> str:
    """Action items across all cached meetings, grouped by meeting.

    A failing auto-sync does not fail the tool: the error is logged,
    mentioned in the output, and whatever is cached is returned.
    """

    since = normalize_date_input(params.since, field="since")

    sync_error: Optional[str] = None
    sync_result: Optional[SyncResult] = None
    try:
        sync_result = ctx.sync.incremental_sync()
    except AppError as exc:
        sync_error = exc.message
        logger.warning("auto_sync_failed", tool="get_all_action_items", error=exc.message)

    rows = ctx.store.query_action_items(
        assignee=params.assignee,
        is_completed=None if params.show_completed else False,
        since=since,
    )

    if not rows:
        msg = "No action items found matching the criteria."
        if sync_error:
            msg += f"\n\n⚠️ Sync error: {sync_error}"
        elif sync_result:
            msg += (
                f"\n\nSync completed: {sync_result.notes_synced} notes, "
                f"{sync_result.action_items_found} action items found."
            )
        stats = ctx.store.stats()
        msg += f"\n\nDB stats: {stats.notes} notes, {stats.action_items} action items total."
        return msg

    meetings = len({row.note_id for row in rows})
    lines: List[str] = ["# All Action Items", ""]
    if sync_error:
        lines += [f"⚠️ Sync error, showing cached results: {sync_error}", ""]
    lines.append(f"Total: {len(rows)} items from {meetings} meetings")
    if params.assignee:
        lines.append(f"Filtered by assignee: {params.assignee}")
    if since:
        lines.append(f"Since: {since}")
    lines.append(f"Showing: {'all' if params.show_completed else 'incomplete only'}")
    lines.append("")
    lines += render_grouped_action_items(rows)
    return "\n".join(lines) + "\n"


def get_meetings_by_participants(ctx: ServerContext, params: ParticipantsSearchInput) -> str:
    """Cached meetings attended by any (or all) of the given emails."""

    if not params.emails:
        return "Please provide at least one email address."

    mode = "all of" if params.require_all else "any of"
    who = ", ".join(params.emails)
    notes = (
        ctx.store.notes_by_all_participants(params.emails)
        if params.require_all
        else ctx.store.notes_by_any_participant(params.emails)
    )
    if not notes:
        return f"No meetings found with {mode}: {who}"

    parts = [f"# Meetings with {mode}: {who}\n", f"Found {len(notes)} meetings:\n"]
    for note in notes:
        count = len(ctx.store.participants_for_note(note.id))
        parts.append(
            f"## {note.title}\n"
            f"- Date: {note.event_start or 'N/A'}\n"
            f"- Note ID: {note.id}\n"
            f"- Participants: {count}\n"
        )
    return "\n".join(parts)


def search_cached_notes(ctx: ServerContext, params: SearchNotesInput) -> str:
    """Substring search over cached titles and note content."""

    query = params.query.strip()
    if not query:
        return "Please provide a search query."

    notes = ctx.store.search_notes(query)
    if not notes:
        return f'No meetings found matching: "{query}"'

    parts = [f'# Search Results for: "{query}"\n', f"Found {len(notes)} meetings:\n"]
    for note in notes:
        entry = (
            f"## {note.title}\n"
            f"- Date: {note.event_start or 'N/A'}\n"
            f"- Note ID: {note.id}\n"
        )
        excerpt = snippet(note.content_markdown, query)
        if excerpt:
            entry += f"- Snippet: {excerpt}\n"
        parts.append(entry)
    return "\n".join(parts)
