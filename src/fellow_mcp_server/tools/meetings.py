"""Meeting lookup tools backed by the Fellow API.

These functions implement the per-meeting surface: search, transcript,
summary, action items and participants. Lookups by id check the local
cache first and fall back to the API; lookups by title go to the API
first and fall back to the cache.
"""

from __future__ import annotations

from typing import List, Optional

from ..context import ServerContext
from ..errors import FellowApiError
from ..extractor import extract_action_items
from ..schemas import (
    ListFilters,
    Note,
    NoteLookupInput,
    Recording,
    SearchMeetingsInput,
    StoredNote,
    SummaryInput,
    Transcript,
    TranscriptInput,
)
from ..utils import normalize_date_input, render_action_items, render_header, render_transcript

NOTE_NOT_FOUND = "Note not found. Please provide a valid note_id or meeting_title."


def _from_cache(ctx: ServerContext, stored: Optional[StoredNote]) -> Optional[Note]:
    if stored is None:
        return None
    attendees = ctx.store.participants_for_note(stored.id)
    return Note(**stored.model_dump(), event_attendees=attendees or None)


def _fetch_note(ctx: ServerContext, note_id: str) -> Optional[Note]:
    """GET a note, treating 404 as "no such note"."""
    try:
        return ctx.client.get_note(note_id)
    except FellowApiError as exc:
        if exc.status_code == 404:
            return None
        raise


def _resolve_note(
    ctx: ServerContext,
    params: NoteLookupInput,
    *,
    need_content: bool = False,
    need_attendees: bool = False,
) -> Optional[Note]:
    if params.note_id:
        cached = _from_cache(ctx, ctx.store.get_note(params.note_id))
        if (
            cached is not None
            and (cached.content_markdown or not need_content)
            and (cached.event_attendees or not need_attendees)
        ):
            return cached
        remote = _fetch_note(ctx, params.note_id)
        if remote is None:
            return cached
        if cached is not None:
            # Keep what the cache knows when the single-note endpoint omits it.
            remote.content_markdown = remote.content_markdown or cached.content_markdown
            remote.event_attendees = remote.event_attendees or cached.event_attendees
        return remote

    if params.meeting_title:
        page = ctx.client.list_notes(
            ListFilters(title=params.meeting_title),
            include_content=need_content,
            include_attendees=need_attendees,
            page_size=1,
        )
        if page.data:
            return page.data[0]
        return _from_cache(ctx, ctx.store.find_note_by_title(params.meeting_title))
    return None


def search_meetings(ctx: ServerContext, params: SearchMeetingsInput) -> str:
    """List recordings matching title / creation-date filters (first page only)."""

    filters = ListFilters(
        title=params.title,
        created_at_start=normalize_date_input(params.created_at_start, field="created_at_start"),
        created_at_end=normalize_date_input(params.created_at_end, field="created_at_end"),
    )
    page = ctx.client.list_recordings(filters, page_size=params.limit)
    if not page.data:
        return "No meetings found matching the criteria."

    more = " (more available)" if page.page_info.cursor else ""
    parts: List[str] = [f"# Meetings\n\nFound {len(page.data)} meetings{more}:\n"]
    for rec in page.data:
        when = rec.event_start or "N/A"
        if rec.event_end:
            when += f" → {rec.event_end}"
        lines = [
            f"## {rec.title}",
            f"- Recording ID: {rec.id}",
            f"- Note ID: {rec.note_id or 'N/A'}",
            f"- When: {when}",
            f"- Created: {rec.created_at}",
        ]
        if rec.call_url:
            lines.append(f"- Call URL: {rec.call_url}")
        parts.append("\n".join(lines) + "\n")
    return "\n".join(parts)


def get_meeting_transcript(ctx: ServerContext, params: TranscriptInput) -> str:
    """Speaker-labelled transcript of one recording."""

    recording: Optional[Recording] = None
    transcript: Optional[Transcript] = None

    if params.recording_id:
        cached = ctx.store.get_recording(params.recording_id)
        if cached is not None and cached.transcript is not None:
            recording = Recording(**cached.model_dump())
            transcript = cached.transcript
        else:
            try:
                recording = ctx.client.get_recording(params.recording_id)
            except FellowApiError as exc:
                if exc.status_code != 404:
                    raise
            if recording is not None:
                transcript = recording.transcript
    elif params.meeting_title:
        page = ctx.client.list_recordings(
            ListFilters(title=params.meeting_title), include_transcript=True, page_size=1
        )
        if page.data:
            recording = page.data[0]
            transcript = recording.transcript

    if recording is None:
        return "Recording not found. Please provide a valid recording_id or meeting_title."

    body = (
        render_transcript(transcript)
        if transcript is not None
        else "No transcript available for this recording."
    )
    return (
        render_header("Transcript", recording.title, "Recording ID", recording.id, recording.event_start)
        + body
    )


def get_meeting_summary(ctx: ServerContext, params: SummaryInput) -> str:
    """Meeting notes markdown, located by note id, recording id or title."""

    lookup = NoteLookupInput(note_id=params.note_id, meeting_title=params.meeting_title)
    if not lookup.note_id and params.recording_id:
        cached = ctx.store.get_recording(params.recording_id)
        if cached is not None:
            lookup.note_id = cached.note_id
        else:
            try:
                lookup.note_id = ctx.client.get_recording(params.recording_id).note_id
            except FellowApiError as exc:
                if exc.status_code != 404:
                    raise

    if not lookup.note_id and not lookup.meeting_title:
        return "Note not found. Please provide a valid note_id, recording_id, or meeting_title."

    note = _resolve_note(ctx, lookup, need_content=True)
    if note is None:
        return NOTE_NOT_FOUND
    return render_header("Meeting Summary", note.title, "Note ID", note.id, note.event_start) + (
        note.content_markdown or "No content available."
    )


def get_action_items(ctx: ServerContext, params: NoteLookupInput) -> str:
    """Action items parsed from one meeting's notes."""

    note = _resolve_note(ctx, params, need_content=True)
    if note is None:
        return NOTE_NOT_FOUND
    items = extract_action_items(note.content_markdown)
    return render_header(
        "Action Items", note.title, "Note ID", note.id, note.event_start
    ) + render_action_items(items)


def get_meeting_participants(ctx: ServerContext, params: NoteLookupInput) -> str:
    """Calendar attendees (emails) of one meeting."""

    note = _resolve_note(ctx, params, need_attendees=True)
    if note is None:
        return NOTE_NOT_FOUND
    attendees = [a.strip() for a in note.event_attendees or [] if a.strip()]
    if attendees:
        body = f"Total participants: {len(attendees)}\n\n" + "\n".join(
            f"- {email}" for email in attendees
        )
    else:
        body = "No participant information available for this meeting."
    return render_header("Participants", note.title, "Note ID", note.id, note.event_start) + body
