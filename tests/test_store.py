"""Tests for the SQLite cache."""

import sqlite3

import pytest

from fellow_mcp_server.schemas import Note, ParsedActionItem, Recording, Transcript
from fellow_mcp_server.store import FellowStore


def note(note_id="n1", **overrides) -> Note:
    data = {
        "id": note_id,
        "title": f"Meeting {note_id}",
        "created_at": "2024-03-01T09:00:00Z",
        "updated_at": "2024-03-01T09:00:00Z",
        "event_start": "2024-03-01T10:00:00Z",
    }
    data.update(overrides)
    return Note(**data)


def recording(rec_id="r1", note_id="n1", **overrides) -> Recording:
    data = {
        "id": rec_id,
        "title": f"Recording {rec_id}",
        "note_id": note_id,
        "created_at": "2024-03-01T10:00:00Z",
        "updated_at": "2024-03-01T10:00:00Z",
    }
    data.update(overrides)
    return Recording(**data)


class TestSchema:
    def test_creates_parent_directory_and_tables(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "fellow.db"
        with FellowStore(path):
            pass
        conn = sqlite3.connect(path)
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert {"notes", "recordings", "action_items", "participants", "sync_status"} <= tables

    def test_uses_wal_journal(self, tmp_path):
        path = tmp_path / "fellow.db"
        with FellowStore(path):
            pass
        conn = sqlite3.connect(path)
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        conn.close()

    def test_in_memory(self):
        with FellowStore(":memory:") as store:
            assert store.stats().notes == 0


class TestNotes:
    def test_upsert_keeps_content_when_new_value_is_absent(self, store):
        store.upsert_note(note(content_markdown="original body"))
        store.upsert_note(note(title="Renamed", content_markdown=None))

        stored = store.get_note("n1")
        assert stored.title == "Renamed"
        assert stored.content_markdown == "original body"

    def test_upsert_replaces_content_when_present(self, store):
        store.upsert_note(note(content_markdown="v1"))
        store.upsert_note(note(content_markdown="v2"))
        assert store.get_note("n1").content_markdown == "v2"

    def test_created_at_is_not_rewritten(self, store):
        store.upsert_note(note(created_at="2024-01-01T00:00:00Z"))
        store.upsert_note(note(created_at="2030-01-01T00:00:00Z"))
        assert store.get_note("n1").created_at == "2024-01-01T00:00:00Z"

    def test_get_missing_note(self, store):
        assert store.get_note("nope") is None

    def test_list_orders_by_event_start_desc_with_nulls_last(self, store):
        store.upsert_note(note("old", event_start="2024-01-01T10:00:00Z"))
        store.upsert_note(note("undated", event_start=None))
        store.upsert_note(note("new", event_start="2024-06-01T10:00:00Z"))
        assert [n.id for n in store.list_notes()] == ["new", "old", "undated"]

    def test_search_matches_title_or_content_case_insensitively(self, store):
        store.upsert_note(note("a", title="Budget planning"))
        store.upsert_note(note("b", title="Standup", content_markdown="We reviewed the BUDGET."))
        store.upsert_note(note("c", title="Retro", content_markdown="Nothing relevant"))
        assert {n.id for n in store.search_notes("budget")} == {"a", "b"}

    def test_search_treats_wildcards_literally(self, store):
        store.upsert_note(note("a", title="100% done"))
        store.upsert_note(note("b", title="1000 items"))
        assert [n.id for n in store.search_notes("100%")] == ["a"]
        assert store.search_notes("_") == []

    def test_search_folds_non_ascii_case(self, store):
        store.upsert_note(note("a", title="Über planning"))
        store.upsert_note(note("b", title="Retro", content_markdown="Notes from STRASSE office"))
        assert [n.id for n in store.search_notes("über")] == ["a"]
        assert [n.id for n in store.search_notes("straße")] == ["b"]
        assert store.find_note_by_title("ÜBER").id == "a"

    def test_find_note_by_title_prefers_most_recent(self, store):
        store.upsert_note(note("old", title="Weekly Sync", event_start="2024-01-01T10:00:00Z"))
        store.upsert_note(note("new", title="Weekly Sync", event_start="2024-02-01T10:00:00Z"))
        assert store.find_note_by_title("weekly").id == "new"
        assert store.find_note_by_title("nothing") is None


class TestRecordings:
    def test_orphan_recording_is_skipped(self, store):
        assert store.upsert_recording(recording(note_id="unknown")) is False
        assert store.get_recording("r1") is None

    def test_recording_without_note_is_stored(self, store):
        assert store.upsert_recording(recording(note_id=None)) is True
        assert store.get_recording("r1").note_id is None

    def test_transcript_survives_partial_update(self, store):
        store.upsert_note(note())
        transcript = Transcript(
            language_code="en",
            speech_segments=[{"speaker": "A", "text": "hi", "start_time": 0, "end_time": 1}],
        )
        store.upsert_recording(recording(transcript=transcript))
        store.upsert_recording(recording(title="Renamed", transcript=None))

        stored = store.get_recording("r1")
        assert stored.title == "Renamed"
        assert stored.transcript == transcript


class TestActionItems:
    def test_replace_returns_exactly_the_new_set(self, store):
        store.upsert_note(note())
        store.replace_action_items("n1", [ParsedActionItem(content="old 1"), ParsedActionItem(content="old 2")])
        count = store.replace_action_items(
            "n1",
            [ParsedActionItem(content="new", assignee="alice", due_date="2024-03-01", is_completed=True)],
        )

        rows = store.query_action_items(note_id="n1")
        assert count == 1
        assert [(r.content, r.assignee, r.due_date, r.is_completed) for r in rows] == [
            ("new", "alice", "2024-03-01", True)
        ]
        assert rows[0].note_title == "Meeting n1"

    def test_replace_with_nothing_clears(self, store):
        store.upsert_note(note())
        store.replace_action_items("n1", [ParsedActionItem(content="x")])
        store.replace_action_items("n1", [])
        assert store.query_action_items(note_id="n1") == []

    def test_filters(self, store):
        store.upsert_note(note("early", event_start="2024-01-10T10:00:00Z"))
        store.upsert_note(note("late", event_start="2024-05-10T10:00:00Z"))
        store.replace_action_items(
            "early",
            [
                ParsedActionItem(content="e1", assignee="alice"),
                ParsedActionItem(content="e2", assignee="bob", is_completed=True),
            ],
        )
        store.replace_action_items("late", [ParsedActionItem(content="l1", assignee="Alicia")])

        assert [r.content for r in store.query_action_items()] == ["l1", "e1", "e2"]
        assert [r.content for r in store.query_action_items(assignee="ali")] == ["l1", "e1"]
        assert [r.content for r in store.query_action_items(is_completed=True)] == ["e2"]
        assert [r.content for r in store.query_action_items(since="2024-03-01")] == ["l1"]

    def test_assignee_filter_folds_non_ascii_case(self, store):
        store.upsert_note(note())
        store.replace_action_items("n1", [ParsedActionItem(content="x", assignee="Émile")])
        assert [r.assignee for r in store.query_action_items(assignee="émi")] == ["Émile"]


class TestParticipants:
    @pytest.fixture
    def populated(self, store):
        store.upsert_note(note("both", event_start="2024-03-03T10:00:00Z"))
        store.upsert_note(note("only_a", event_start="2024-03-02T10:00:00Z"))
        store.upsert_note(note("only_c", event_start="2024-03-01T10:00:00Z"))
        store.replace_participants("both", ["a@x.com", "b@x.com"])
        store.replace_participants("only_a", ["a@x.com", "c@x.com"])
        store.replace_participants("only_c", ["c@x.com"])
        return store

    def test_all_requires_every_email(self, populated):
        notes = populated.notes_by_all_participants(["a@x.com", "b@x.com"])
        assert [n.id for n in notes] == ["both"]

    def test_any_is_a_deduplicated_union(self, populated):
        notes = populated.notes_by_any_participant(["a@x.com", "b@x.com"])
        assert [n.id for n in notes] == ["both", "only_a"]

    def test_duplicate_input_emails_do_not_break_all(self, populated):
        notes = populated.notes_by_all_participants(["a@x.com", "a@x.com"])
        assert [n.id for n in notes] == ["both", "only_a"]

    def test_empty_input(self, populated):
        assert populated.notes_by_any_participant([]) == []
        assert populated.notes_by_all_participants([]) == []

    def test_replace_dedupes_and_overwrites(self, populated):
        inserted = populated.replace_participants("both", ["d@x.com", "d@x.com"])
        assert inserted == 1
        assert populated.participants_for_note("both") == ["d@x.com"]


class TestSyncStateAndStats:
    def test_watermark_roundtrip(self, store):
        assert store.get_last_sync() is None
        store.set_last_sync("2024-03-01T00:00:00.000Z")
        store.set_last_sync("2024-03-02T00:00:00.000Z")
        assert store.get_last_sync() == "2024-03-02T00:00:00.000Z"

    def test_stats_count_distinct_emails(self, store):
        store.upsert_note(note("a"))
        store.upsert_note(note("b"))
        store.upsert_recording(recording(note_id="a"))
        store.replace_action_items("a", [ParsedActionItem(content="x")])
        store.replace_participants("a", ["p@x.com", "q@x.com"])
        store.replace_participants("b", ["p@x.com"])

        stats = store.stats()
        assert (stats.notes, stats.recordings, stats.action_items, stats.participants) == (2, 1, 1, 2)
