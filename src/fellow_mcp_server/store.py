"""SQLite cache of Fellow notes, recordings, action items and participants.

The store is the only writer of the cache file. Each public method is its
own short transaction; nothing spans a whole sync pass, so an interrupted
sync leaves already-written rows in place and the next sync repairs the
rest (every upsert is idempotent per entity).

Public API:
    - FellowStore

Usage example:
    with FellowStore("~/.fellow-mcp/fellow.db") as store:
        store.upsert_note(note)
        hits = store.search_notes("roadmap")
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from .schemas import (
    ActionItemRow,
    Note,
    ParsedActionItem,
    Recording,
    StoredNote,
    StoredRecording,
    StoreStats,
    Transcript,
)
from .utils import utc_now_iso

logger = structlog.get_logger(__name__)

MEMORY = ":memory:"
LAST_SYNC_KEY = "last_sync"

SCHEMA = """
CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    event_start TEXT,
    event_end TEXT,
    event_guid TEXT,
    call_url TEXT,
    content_markdown TEXT,
    synced_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS recordings (
    id TEXT PRIMARY KEY,
    note_id TEXT,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    event_start TEXT,
    event_end TEXT,
    recording_start TEXT,
    recording_end TEXT,
    event_guid TEXT,
    call_url TEXT,
    transcript_json TEXT,
    synced_at TEXT NOT NULL,
    FOREIGN KEY (note_id) REFERENCES notes(id)
);

CREATE TABLE IF NOT EXISTS action_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    note_id TEXT NOT NULL,
    content TEXT NOT NULL,
    assignee TEXT,
    due_date TEXT,
    is_completed INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    FOREIGN KEY (note_id) REFERENCES notes(id)
);

CREATE TABLE IF NOT EXISTS participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    note_id TEXT NOT NULL,
    email TEXT NOT NULL,
    FOREIGN KEY (note_id) REFERENCES notes(id),
    UNIQUE (note_id, email)
);

CREATE TABLE IF NOT EXISTS sync_status (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notes_event_start ON notes(event_start);
CREATE INDEX IF NOT EXISTS idx_notes_title ON notes(title);
CREATE INDEX IF NOT EXISTS idx_recordings_note_id ON recordings(note_id);
CREATE INDEX IF NOT EXISTS idx_action_items_note_id ON action_items(note_id);
CREATE INDEX IF NOT EXISTS idx_action_items_assignee ON action_items(assignee);
CREATE INDEX IF NOT EXISTS idx_participants_note_id ON participants(note_id);
CREATE INDEX IF NOT EXISTS idx_participants_email ON participants(email);
"""

# Most recent meetings first; notes without an event time sort last.
RECENT_FIRST = "n.event_start IS NULL, n.event_start DESC"


def _casefold(value: Optional[str]) -> Optional[str]:
    """SQL function `casefold(x)`: Unicode-aware lowering for substring matches."""
    return value.casefold() if value is not None else None


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


class FellowStore:
    """Local relational cache.

    Args:
        db_path: SQLite file path, or ``":memory:"``. Missing parent
            directories are created.
    """

    def __init__(self, db_path: str | Path = MEMORY) -> None:
        self.db_path = str(db_path)
        if self.db_path != MEMORY:
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        # One consumer at a time; the connection may still be used from a
        # worker thread of the MCP runtime.
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.executescript(SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> FellowStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---------------------- Coalescing upsert ----------------------

    def _coalescing_upsert(
        self,
        table: str,
        row: Dict[str, Any],
        *,
        coalesce: Sequence[str] = (),
        immutable: Sequence[str] = ("created_at",),
        key: str = "id",
    ) -> None:
        """Insert ``row`` or update the existing row with the same key.

        Columns in ``coalesce`` keep their stored value when the incoming
        value is NULL. Columns in ``immutable`` are only written on insert.
        """

        columns = list(row)
        assignments = []
        for col in columns:
            if col == key or col in immutable:
                continue
            if col in coalesce:
                assignments.append(f"{col} = COALESCE(excluded.{col}, {table}.{col})")
            else:
                assignments.append(f"{col} = excluded.{col}")
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT({key}) DO UPDATE SET {', '.join(assignments)}"
        )
        with self._conn:
            self._conn.execute(sql, [row[c] for c in columns])

    # ---------------------- Notes ----------------------

    def upsert_note(self, note: Note) -> None:
        """Store a note. Absent content never replaces cached content."""

        self._coalescing_upsert(
            "notes",
            {
                "id": note.id,
                "title": note.title,
                "created_at": note.created_at,
                "updated_at": note.updated_at,
                "event_start": note.event_start,
                "event_end": note.event_end,
                "event_guid": note.event_guid,
                "call_url": note.call_url,
                "content_markdown": note.content_markdown,
                "synced_at": utc_now_iso(),
            },
            coalesce=("content_markdown",),
        )

    def get_note(self, note_id: str) -> Optional[StoredNote]:
        row = self._conn.execute("SELECT * FROM notes WHERE id = ?", (note_id,)).fetchone()
        return StoredNote(**dict(row)) if row else None

    def has_note(self, note_id: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM notes WHERE id = ?", (note_id,)).fetchone()
        return row is not None

    def list_notes(self) -> List[StoredNote]:
        rows = self._conn.execute(f"SELECT n.* FROM notes n ORDER BY {RECENT_FIRST}")
        return [StoredNote(**dict(r)) for r in rows]

    def search_notes(self, query: str) -> List[StoredNote]:
        """Case-insensitive substring match on title or content."""

        needle = query.casefold()
        rows = self._conn.execute(
            f"""
            SELECT n.* FROM notes n
            WHERE instr(casefold(n.title), ?) > 0
               OR instr(casefold(n.content_markdown), ?) > 0
            ORDER BY {RECENT_FIRST}
            """,
            (needle, needle),
        )
        return [StoredNote(**dict(r)) for r in rows]

    def find_note_by_title(self, title: str) -> Optional[StoredNote]:
        """Most recent cached note whose title contains ``title``."""

        row = self._conn.execute(
            f"SELECT n.* FROM notes n WHERE instr(casefold(n.title), ?) > 0 "
            f"ORDER BY {RECENT_FIRST} LIMIT 1",
            (title.casefold(),),
        ).fetchone()
        return StoredNote(**dict(row)) if row else None

    # ---------------------- Recordings ----------------------

    def upsert_recording(self, recording: Recording) -> bool:
        """Store a recording unless it points at a note we do not have.

        Returns:
            False when the recording was skipped as an orphan.
        """

        if recording.note_id and not self.has_note(recording.note_id):
            return False
        self._coalescing_upsert(
            "recordings",
            {
                "id": recording.id,
                "note_id": recording.note_id,
                "title": recording.title,
                "created_at": recording.created_at,
                "updated_at": recording.updated_at,
                "event_start": recording.event_start,
                "event_end": recording.event_end,
                "recording_start": recording.recording_start,
                "recording_end": recording.recording_end,
                "event_guid": recording.event_guid,
                "call_url": recording.call_url,
                "transcript_json": (
                    recording.transcript.model_dump_json() if recording.transcript else None
                ),
                "synced_at": utc_now_iso(),
            },
            coalesce=("transcript_json",),
        )
        return True

    def get_recording(self, recording_id: str) -> Optional[StoredRecording]:
        row = self._conn.execute(
            "SELECT * FROM recordings WHERE id = ?", (recording_id,)
        ).fetchone()
        if not row:
            return None
        data = dict(row)
        raw = data.pop("transcript_json")
        data["transcript"] = Transcript.model_validate_json(raw) if raw else None
        return StoredRecording(**data)

    # ---------------------- Action items ----------------------

    def replace_action_items(
        self, note_id: str, items: Sequence[ParsedActionItem]
    ) -> int:
        """Swap all of a note's action items for ``items`` in one transaction."""

        created_at = utc_now_iso()
        with self._conn:
            self._conn.execute("DELETE FROM action_items WHERE note_id = ?", (note_id,))
            self._conn.executemany(
                """
                INSERT INTO action_items
                    (note_id, content, assignee, due_date, is_completed, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        note_id,
                        item.content,
                        item.assignee,
                        item.due_date,
                        int(item.is_completed),
                        created_at,
                    )
                    for item in items
                ],
            )
        return len(items)

    def query_action_items(
        self,
        *,
        assignee: Optional[str] = None,
        is_completed: Optional[bool] = None,
        since: Optional[str] = None,
        note_id: Optional[str] = None,
    ) -> List[ActionItemRow]:
        """Action items joined with their note, most recent meetings first.

        Args:
            assignee: Substring of the assignee name.
            is_completed: Only items with this completion state.
            since: Only items from notes whose event starts on/after this.
            note_id: Only items belonging to this note.
        """

        clauses: List[str] = []
        params: List[Any] = []
        if assignee:
            clauses.append("instr(casefold(a.assignee), ?) > 0")
            params.append(assignee.casefold())
        if is_completed is not None:
            clauses.append("a.is_completed = ?")
            params.append(int(is_completed))
        if since:
            clauses.append("n.event_start >= ?")
            params.append(since)
        if note_id:
            clauses.append("a.note_id = ?")
            params.append(note_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        rows = self._conn.execute(
            f"""
            SELECT a.*, n.title AS note_title, n.event_start AS event_start
            FROM action_items a
            JOIN notes n ON a.note_id = n.id
            {where}
            ORDER BY {RECENT_FIRST}, a.id
            """,
            params,
        )
        return [ActionItemRow(**dict(r)) for r in rows]

    # ---------------------- Participants ----------------------

    def replace_participants(self, note_id: str, emails: Iterable[str]) -> int:
        """Swap a note's participant rows; returns how many rows were inserted."""

        unique = _dedupe(emails)
        with self._conn:
            self._conn.execute("DELETE FROM participants WHERE note_id = ?", (note_id,))
            self._conn.executemany(
                "INSERT OR IGNORE INTO participants (note_id, email) VALUES (?, ?)",
                [(note_id, email) for email in unique],
            )
        return len(unique)

    def participants_for_note(self, note_id: str) -> List[str]:
        rows = self._conn.execute(
            "SELECT email FROM participants WHERE note_id = ? ORDER BY id", (note_id,)
        )
        return [r["email"] for r in rows]

    def notes_by_any_participant(self, emails: Sequence[str]) -> List[StoredNote]:
        """Notes attended by at least one of ``emails``, each listed once."""

        wanted = _dedupe(emails)
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        rows = self._conn.execute(
            f"""
            SELECT n.* FROM notes n
            WHERE n.id IN (
                SELECT p.note_id FROM participants p WHERE p.email IN ({placeholders})
            )
            ORDER BY {RECENT_FIRST}
            """,
            wanted,
        )
        return [StoredNote(**dict(r)) for r in rows]

    def notes_by_all_participants(self, emails: Sequence[str]) -> List[StoredNote]:
        """Notes that have a participant row for every one of ``emails``."""

        wanted = _dedupe(emails)
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        rows = self._conn.execute(
            f"""
            SELECT n.* FROM notes n
            WHERE (
                SELECT COUNT(DISTINCT p.email) FROM participants p
                WHERE p.note_id = n.id AND p.email IN ({placeholders})
            ) = ?
            ORDER BY {RECENT_FIRST}
            """,
            [*wanted, len(wanted)],
        )
        return [StoredNote(**dict(r)) for r in rows]

    # ---------------------- Sync state ----------------------

    def get_last_sync(self) -> Optional[str]:
        row = self._conn.execute(
            "SELECT value FROM sync_status WHERE key = ?", (LAST_SYNC_KEY,)
        ).fetchone()
        return row["value"] if row else None

    def set_last_sync(self, timestamp: str) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO sync_status (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (LAST_SYNC_KEY, timestamp),
            )

    # ---------------------- Stats ----------------------

    def stats(self) -> StoreStats:
        def count(sql: str) -> int:
            return int(self._conn.execute(sql).fetchone()[0])

        return StoreStats(
            notes=count("SELECT COUNT(*) FROM notes"),
            recordings=count("SELECT COUNT(*) FROM recordings"),
            action_items=count("SELECT COUNT(*) FROM action_items"),
            participants=count("SELECT COUNT(DISTINCT email) FROM participants"),
        )
