"""Pydantic schemas for Fellow API payloads and cached rows.

Remote models mirror the JSON returned by the Fellow v1 API and ignore
unknown fields. Stored models describe rows read back from the local
SQLite cache.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SpeechSegment(_RemoteModel):
    """One diarized chunk of a transcript. Times are in seconds."""

    speaker: str = ""
    text: str = ""
    start_time: float = 0.0
    end_time: float = 0.0


class Transcript(_RemoteModel):
    language_code: str = ""
    speech_segments: List[SpeechSegment] = Field(default_factory=list)


class Note(_RemoteModel):
    """A Fellow meeting note.

    `content_markdown` and `event_attendees` are only populated when the
    list request asks for them through the `include` flags.
    """

    id: str
    title: str = ""
    created_at: str
    updated_at: str
    event_start: Optional[str] = None
    event_end: Optional[str] = None
    event_guid: Optional[str] = None
    call_url: Optional[str] = None
    recording_ids: List[str] = Field(default_factory=list)
    content_markdown: Optional[str] = None
    event_attendees: Optional[List[str]] = None

    @field_validator("event_attendees", mode="before")
    @classmethod
    def _keep_string_attendees(cls, v):
        if isinstance(v, list):
            return [a for a in v if isinstance(a, str)]
        return v


class Recording(_RemoteModel):
    id: str
    title: str = ""
    note_id: Optional[str] = None
    created_at: str
    updated_at: str
    event_start: Optional[str] = None
    event_end: Optional[str] = None
    recording_start: Optional[str] = None
    recording_end: Optional[str] = None
    event_guid: Optional[str] = None
    call_url: Optional[str] = None
    transcript: Optional[Transcript] = None


class PageInfo(_RemoteModel):
    cursor: Optional[str] = None
    page_size: int = 0


class NotesPage(_RemoteModel):
    page_info: PageInfo = Field(default_factory=PageInfo)
    data: List[Note] = Field(default_factory=list)


class RecordingsPage(_RemoteModel):
    page_info: PageInfo = Field(default_factory=PageInfo)
    data: List[Recording] = Field(default_factory=list)


class ListFilters(BaseModel):
    """Filters accepted by the list endpoints. Unset fields are not sent."""

    title: Optional[str] = None
    created_at_start: Optional[str] = None
    created_at_end: Optional[str] = None
    updated_at_start: Optional[str] = None
    updated_at_end: Optional[str] = None
    event_guid: Optional[str] = None
    channel_id: Optional[str] = None

    def to_wire(self) -> Dict[str, str]:
        return {k: v for k, v in self.model_dump().items() if v}


# Cached rows


class StoredNote(BaseModel):
    id: str
    title: str
    created_at: str
    updated_at: str
    event_start: Optional[str] = None
    event_end: Optional[str] = None
    event_guid: Optional[str] = None
    call_url: Optional[str] = None
    content_markdown: Optional[str] = None
    synced_at: str


class StoredRecording(BaseModel):
    id: str
    note_id: Optional[str] = None
    title: str
    created_at: str
    updated_at: str
    event_start: Optional[str] = None
    event_end: Optional[str] = None
    recording_start: Optional[str] = None
    recording_end: Optional[str] = None
    event_guid: Optional[str] = None
    call_url: Optional[str] = None
    transcript: Optional[Transcript] = None
    synced_at: str


class ParsedActionItem(BaseModel):
    """An action item pulled out of note markdown, before it is stored."""

    content: str
    assignee: Optional[str] = None
    due_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    is_completed: bool = False


class StoredActionItem(ParsedActionItem):
    id: int
    note_id: str
    created_at: str


class ActionItemRow(StoredActionItem):
    """Action item joined with the title and start of its owning note."""

    note_title: str
    event_start: Optional[str] = None


class StoreStats(BaseModel):
    notes: int = 0
    recordings: int = 0
    action_items: int = 0
    participants: int = 0


class SyncResult(BaseModel):
    mode: Literal["full", "incremental"] = "full"
    notes_synced: int = 0
    recordings_synced: int = 0
    action_items_found: int = 0
    participants_synced: int = 0


# Tool inputs


class SearchMeetingsInput(BaseModel):
    title: Optional[str] = None
    created_at_start: Optional[str] = None
    created_at_end: Optional[str] = None
    limit: int = Field(default=20, ge=1, le=50)


class TranscriptInput(BaseModel):
    recording_id: Optional[str] = None
    meeting_title: Optional[str] = None


class NoteLookupInput(BaseModel):
    note_id: Optional[str] = None
    meeting_title: Optional[str] = None


class SummaryInput(NoteLookupInput):
    recording_id: Optional[str] = None


class SyncInput(BaseModel):
    force: bool = False
    include_transcripts: bool = False


class AllActionItemsInput(BaseModel):
    assignee: Optional[str] = None
    show_completed: bool = False
    since: Optional[str] = Field(default=None, description="YYYY-MM-DD")


class ParticipantsSearchInput(BaseModel):
    emails: List[str]
    require_all: bool = False

    @field_validator("emails")
    @classmethod
    def _clean_emails(cls, v: List[str]) -> List[str]:
        return [e.strip() for e in v if e and e.strip()]


class SearchNotesInput(BaseModel):
    query: str
