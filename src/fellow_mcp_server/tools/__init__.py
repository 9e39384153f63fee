"""MCP tools for Fellow meetings, sync and the local cache.

Each tool is exposed as a plain Python function taking a `ServerContext`
and an input model, and returning Markdown text, to facilitate testing.
An MCP runtime adapter (see `server.py`) registers these with the
FastMCP runtime.
"""

from .cache import get_all_action_items, get_meetings_by_participants, search_cached_notes
from .meetings import (
    get_action_items,
    get_meeting_participants,
    get_meeting_summary,
    get_meeting_transcript,
    search_meetings,
)
from .refresh import sync_meetings
from .status import get_sync_status

__all__ = [
    "search_meetings",
    "get_meeting_transcript",
    "get_meeting_summary",
    "get_action_items",
    "get_meeting_participants",
    "sync_meetings",
    "get_all_action_items",
    "get_meetings_by_participants",
    "search_cached_notes",
    "get_sync_status",
]
