"""Shared fixtures: a fake Fellow API behind httpx.MockTransport.

The fake honours the parts of the wire contract the server relies on:
``updated_at_start`` filtering, ``include`` flags, cursor pagination and
GET-by-id with 404s.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from fellow_mcp_server.client import FellowClient
from fellow_mcp_server.config import AppConfig
from fellow_mcp_server.context import ServerContext
from fellow_mcp_server.store import FellowStore
from fellow_mcp_server.sync import SyncOrchestrator

WEEKLY_SYNC_CONTENT = """# Weekly Sync
- [x] Finish report @alice due: 2024-03-01
- [ ] Review PR by 3/5/24
TODO: update the wiki
Some discussion about the launch plan.
"""

ROADMAP_CONTENT = """Discuss the Q3 roadmap and hiring.
- @bob: draft the plan by 3/8/24
"""


def make_notes() -> List[Dict[str, Any]]:
    return [
        {
            "id": "n1",
            "title": "Weekly Sync",
            "created_at": "2024-02-28T09:00:00Z",
            "updated_at": "2024-03-01T12:00:00Z",
            "event_start": "2024-03-01T10:00:00Z",
            "event_end": "2024-03-01T10:30:00Z",
            "event_guid": "evt-1",
            "call_url": "https://meet.example.com/abc",
            "recording_ids": ["r1"],
            "content_markdown": WEEKLY_SYNC_CONTENT,
            "event_attendees": ["a@x.com", "b@x.com"],
        },
        {
            "id": "n2",
            "title": "Roadmap Review",
            "created_at": "2024-03-04T09:00:00Z",
            "updated_at": "2024-03-05T12:00:00Z",
            "event_start": "2024-03-05T10:00:00Z",
            "content_markdown": ROADMAP_CONTENT,
            "event_attendees": ["a@x.com", " ", "c@x.com"],
        },
        {
            "id": "n3",
            "title": "1:1",
            "created_at": "2024-03-06T09:00:00Z",
            "updated_at": "2024-03-06T09:00:00Z",
            "content_markdown": None,
            "event_attendees": [],
        },
    ]


def make_recordings() -> List[Dict[str, Any]]:
    return [
        {
            "id": "r1",
            "title": "Weekly Sync",
            "note_id": "n1",
            "created_at": "2024-03-01T10:00:00Z",
            "updated_at": "2024-03-01T11:00:00Z",
            "event_start": "2024-03-01T10:00:00Z",
            "recording_start": "2024-03-01T10:01:00Z",
            "recording_end": "2024-03-01T10:29:00Z",
            "transcript": {
                "language_code": "en",
                "speech_segments": [
                    {"speaker": "Alice", "text": "Let's start.", "start_time": 0, "end_time": 2.5},
                    {"speaker": "Bob", "text": "Sounds good.", "start_time": 65, "end_time": 67},
                ],
            },
        },
        {
            "id": "r2",
            "title": "Someone else's meeting",
            "note_id": "missing-note",
            "created_at": "2024-03-02T10:00:00Z",
            "updated_at": "2024-03-02T11:00:00Z",
        },
        {
            "id": "r3",
            "title": "Ad hoc call",
            "note_id": None,
            "created_at": "2024-03-03T10:00:00Z",
            "updated_at": "2024-03-03T11:00:00Z",
        },
    ]


class FakeFellowApi:
    """In-memory stand-in for https://{subdomain}.fellow.app/api/v1."""

    def __init__(self) -> None:
        self.notes = make_notes()
        self.recordings = make_recordings()
        self.requests: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self.failures: Dict[str, Tuple[int, str]] = {}
        self.endless_cursor = False

    # ---- helpers ----

    def list_bodies(self, path: str) -> List[Dict[str, Any]]:
        return [body for method, p, body in self.requests if method == "POST" and p == path and body]

    def _page(self, items: List[Dict[str, Any]], body: Dict[str, Any]) -> Dict[str, Any]:
        filters = body.get("filters", {})
        since = filters.get("updated_at_start")
        if since:
            items = [i for i in items if i["updated_at"] >= since]
        title = filters.get("title")
        if title:
            items = [i for i in items if title.lower() in i["title"].lower()]
        pagination = body["pagination"]
        start = int(pagination["cursor"] or 0)
        size = pagination["page_size"]
        chunk = items[start : start + size]
        end = start + size
        if self.endless_cursor:
            next_cursor: Optional[str] = str(end)
        else:
            next_cursor = str(end) if end < len(items) else None
        return {"page_info": {"cursor": next_cursor, "page_size": size}, "data": chunk}

    @staticmethod
    def _strip(item: Dict[str, Any], field: str, keep: bool) -> Dict[str, Any]:
        item = copy.deepcopy(item)
        if not keep:
            item.pop(field, None)
        return item

    # ---- transport ----

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if request.headers.get("X-API-KEY") != "test-key":
            return httpx.Response(401, text="Invalid API key")
        if path in self.failures:
            status, text = self.failures[path]
            return httpx.Response(status, text=text)

        if request.method == "POST" and path == "/notes":
            include = body.get("include", {})
            notes = [
                self._strip(
                    self._strip(n, "content_markdown", include.get("content_markdown", False)),
                    "event_attendees",
                    include.get("event_attendees", False),
                )
                for n in self.notes
            ]
            return httpx.Response(200, json={"notes": self._page(notes, body)})

        if request.method == "POST" and path == "/recordings":
            include = body.get("include", {})
            recs = [self._strip(r, "transcript", include.get("transcript", False)) for r in self.recordings]
            return httpx.Response(200, json={"recordings": self._page(recs, body)})

        if request.method == "GET" and path.startswith("/note/"):
            note_id = path.split("/")[-1]
            for n in self.notes:
                if n["id"] == note_id:
                    return httpx.Response(200, json=n)
            return httpx.Response(404, json={"error": "Note not found"})

        if request.method == "GET" and path.startswith("/recording/"):
            rec_id = path.split("/")[-1]
            for r in self.recordings:
                if r["id"] == rec_id:
                    return httpx.Response(200, json=self._strip(r, "transcript", False))
            return httpx.Response(404, json={"error": "Recording not found"})

        return httpx.Response(404, text="Unknown endpoint")


@pytest.fixture
def api() -> FakeFellowApi:
    return FakeFellowApi()


@pytest.fixture
def client(api: FakeFellowApi):
    c = FellowClient("test-key", "acme", transport=httpx.MockTransport(api.handler))
    yield c
    c.close()


@pytest.fixture
def store(tmp_path):
    s = FellowStore(tmp_path / "cache" / "fellow.db")
    yield s
    s.close()


@pytest.fixture
def orchestrator(client: FellowClient, store: FellowStore) -> SyncOrchestrator:
    # Small pages so every loop crosses a page boundary.
    return SyncOrchestrator(client, store, page_size=2, max_pages=10)


@pytest.fixture
def ctx(tmp_path, client: FellowClient, store: FellowStore, orchestrator: SyncOrchestrator):
    config = AppConfig(api_key="test-key", subdomain="acme", db_path=tmp_path / "cache" / "fellow.db")
    return ServerContext(config=config, client=client, store=store, sync=orchestrator)
