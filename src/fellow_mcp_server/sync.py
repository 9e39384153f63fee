"""Fellow → local cache synchronization.

A sync pass pages through notes (with content and attendees), then
recordings (optionally with transcripts), writing every page to the store
before the next one is requested. The watermark is only advanced once
both loops have finished, so a failed pass is simply retried from the old
watermark next time.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Union

import structlog

from .client import FellowClient
from .errors import SyncError
from .extractor import extract_action_items
from .schemas import ListFilters, Note, NotesPage, Recording, RecordingsPage, SyncResult
from .store import FellowStore
from .utils import utc_now_iso

logger = structlog.get_logger(__name__)


class SyncOrchestrator:
    """Drives full and incremental syncs between a client and a store.

    Args:
        client: Remote API client.
        store: Local cache; the orchestrator is its only writer.
        page_size: Items requested per page.
        max_pages: Ceiling on pages per list loop. A remote that keeps
            returning cursors past this raises `SyncError`.
    """

    def __init__(
        self,
        client: FellowClient,
        store: FellowStore,
        *,
        page_size: int = 50,
        max_pages: int = 1000,
    ) -> None:
        self.client = client
        self.store = store
        self.page_size = page_size
        self.max_pages = max_pages

    def full_sync(self, include_transcripts: bool = False) -> SyncResult:
        return self._run(since=None, include_transcripts=include_transcripts, mode="full")

    def incremental_sync(self, include_transcripts: bool = False) -> SyncResult:
        """Sync only what changed since the watermark; full sync if there is none."""

        since = self.store.get_last_sync()
        if since is None:
            logger.info("sync_no_watermark", fallback="full")
            return self.full_sync(include_transcripts)
        return self._run(
            since=since, include_transcripts=include_transcripts, mode="incremental"
        )

    # ---------------------- Internals ----------------------

    def _run(
        self, *, since: Optional[str], include_transcripts: bool, mode: str
    ) -> SyncResult:
        log = logger.bind(mode=mode, since=since)
        log.info("sync_started", include_transcripts=include_transcripts)
        result = SyncResult(mode=mode)
        filters = ListFilters(updated_at_start=since)

        for note in self._pages(
            lambda cursor: self.client.list_notes(
                filters,
                include_content=True,
                include_attendees=True,
                cursor=cursor,
                page_size=self.page_size,
            ),
            "notes",
        ):
            self._sync_note(note, result)

        for recording in self._pages(
            lambda cursor: self.client.list_recordings(
                filters,
                include_transcript=include_transcripts,
                cursor=cursor,
                page_size=self.page_size,
            ),
            "recordings",
        ):
            self._sync_recording(recording, result)

        self.store.set_last_sync(utc_now_iso())
        log.info("sync_finished", **result.model_dump(exclude={"mode"}))
        return result

    def _pages(
        self,
        fetch: Callable[[Optional[str]], Union[NotesPage, RecordingsPage]],
        kind: str,
    ) -> Iterator[Union[Note, Recording]]:
        """Yield items page by page until the remote cursor runs out."""

        cursor: Optional[str] = None
        for page_number in range(1, self.max_pages + 1):
            page = fetch(cursor)
            items = page.data
            logger.debug("sync_page", kind=kind, page=page_number, items=len(items))
            yield from items
            cursor = page.page_info.cursor
            if not cursor:
                return
        raise SyncError(
            f"Gave up paging {kind} after {self.max_pages} pages; the cursor never ended",
            {"kind": kind, "max_pages": self.max_pages},
        )

    def _sync_note(self, note: Note, result: SyncResult) -> None:
        self.store.upsert_note(note)
        result.notes_synced += 1

        if note.content_markdown:
            items = extract_action_items(note.content_markdown)
            result.action_items_found += self.store.replace_action_items(note.id, items)

        emails = [e.strip() for e in (note.event_attendees or []) if e and e.strip()]
        if emails:
            result.participants_synced += self.store.replace_participants(note.id, emails)

    def _sync_recording(self, recording: Recording, result: SyncResult) -> None:
        if self.store.upsert_recording(recording):
            result.recordings_synced += 1
        else:
            logger.info(
                "recording_skipped_orphan",
                recording_id=recording.id,
                note_id=recording.note_id,
            )
