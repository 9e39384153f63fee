"""FastMCP server entrypoint.

Registers tools for the Fellow MCP Server. Tool implementations live in
`tools/` and take an explicit `ServerContext`, so they can be unit-tested
without the runtime. This module only declares the flat tool parameters,
converts application errors into failed tool calls, and owns the process
lifecycle (configure, serve, close).
"""

from __future__ import annotations

import argparse
import sys
from typing import Annotated, Callable, List, Optional

import structlog
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field, ValidationError

from . import __version__
from .config import load_config
from .context import ServerContext
from .errors import AppError, ConfigError, to_error_payload
from .log import configure_logging
from .schemas import (
    AllActionItemsInput,
    NoteLookupInput,
    ParticipantsSearchInput,
    SearchMeetingsInput,
    SearchNotesInput,
    SummaryInput,
    SyncInput,
    TranscriptInput,
)
from .tools import (
    get_action_items,
    get_all_action_items,
    get_meeting_participants,
    get_meeting_summary,
    get_meeting_transcript,
    get_meetings_by_participants,
    get_sync_status,
    search_cached_notes,
    search_meetings,
    sync_meetings,
)

logger = structlog.get_logger(__name__)

NoteId = Annotated[Optional[str], Field(description="The ID of the note")]
MeetingTitle = Annotated[
    Optional[str],
    Field(description="Alternatively, search by meeting title (partial match)"),
]


def _run_tool(name: str, call: Callable[[], str]) -> str:
    """Run a tool body, turning application errors into a failed tool call."""
    try:
        return call()
    except AppError as exc:
        logger.warning("tool_failed", tool=name, **to_error_payload(exc))
        raise ToolError(exc.message) from exc
    except ValidationError as exc:
        logger.warning("tool_bad_arguments", tool=name, error=str(exc))
        raise ToolError(f"Invalid arguments: {exc}") from exc


def _register_fastmcp_tools(app: FastMCP, ctx: ServerContext) -> None:
    @app.tool(
        name="search_meetings",
        description=(
            "Search for meetings/recordings in Fellow. Can filter by title or "
            "creation date range. Returns meetings with basic metadata."
        ),
    )
    def search_meetings_tool(
        title: Annotated[
            Optional[str], Field(description="Filter by meeting title (case-insensitive partial match)")
        ] = None,
        created_at_start: Annotated[
            Optional[str], Field(description="Created on/after (YYYY-MM-DD or ISO 8601)")
        ] = None,
        created_at_end: Annotated[
            Optional[str], Field(description="Created on/before (YYYY-MM-DD or ISO 8601)")
        ] = None,
        limit: Annotated[int, Field(ge=1, le=50, description="Maximum results (1-50)")] = 20,
    ) -> str:
        return _run_tool(
            "search_meetings",
            lambda: search_meetings(
                ctx,
                SearchMeetingsInput(
                    title=title,
                    created_at_start=created_at_start,
                    created_at_end=created_at_end,
                    limit=limit,
                ),
            ),
        )

    @app.tool(
        name="get_meeting_transcript",
        description=(
            "Get the full transcript of a meeting recording, with speaker labels "
            "and timestamps."
        ),
    )
    def get_meeting_transcript_tool(
        recording_id: Annotated[
            Optional[str], Field(description="The ID of the recording")
        ] = None,
        meeting_title: MeetingTitle = None,
    ) -> str:
        return _run_tool(
            "get_meeting_transcript",
            lambda: get_meeting_transcript(
                ctx, TranscriptInput(recording_id=recording_id, meeting_title=meeting_title)
            ),
        )

    @app.tool(
        name="get_meeting_summary",
        description=(
            "Get the meeting summary/notes content: agenda items, discussion "
            "topics and decisions."
        ),
    )
    def get_meeting_summary_tool(
        note_id: NoteId = None,
        recording_id: Annotated[
            Optional[str],
            Field(description="Alternatively, a recording ID whose note to return"),
        ] = None,
        meeting_title: MeetingTitle = None,
    ) -> str:
        return _run_tool(
            "get_meeting_summary",
            lambda: get_meeting_summary(
                ctx,
                SummaryInput(
                    note_id=note_id, recording_id=recording_id, meeting_title=meeting_title
                ),
            ),
        )

    @app.tool(
        name="get_action_items",
        description="Get action items extracted from one meeting's notes.",
    )
    def get_action_items_tool(
        note_id: NoteId = None, meeting_title: MeetingTitle = None
    ) -> str:
        return _run_tool(
            "get_action_items",
            lambda: get_action_items(
                ctx, NoteLookupInput(note_id=note_id, meeting_title=meeting_title)
            ),
        )

    @app.tool(
        name="get_meeting_participants",
        description="Get the email addresses of people invited to a meeting.",
    )
    def get_meeting_participants_tool(
        note_id: NoteId = None, meeting_title: MeetingTitle = None
    ) -> str:
        return _run_tool(
            "get_meeting_participants",
            lambda: get_meeting_participants(
                ctx, NoteLookupInput(note_id=note_id, meeting_title=meeting_title)
            ),
        )

    @app.tool(
        name="sync_meetings",
        description=(
            "Sync meetings from Fellow to the local database. Incremental by "
            "default (only changes since the last sync); force=true re-fetches everything."
        ),
    )
    def sync_meetings_tool(
        force: Annotated[bool, Field(description="Full re-sync instead of incremental")] = False,
        include_transcripts: Annotated[
            bool, Field(description="Also fetch and store transcripts (slower)")
        ] = False,
    ) -> str:
        return _run_tool(
            "sync_meetings",
            lambda: sync_meetings(
                ctx, SyncInput(force=force, include_transcripts=include_transcripts)
            ),
        )

    @app.tool(
        name="get_all_action_items",
        description=(
            "Get action items across all cached meetings. Runs an incremental "
            "sync first. Filter by assignee, completion status or date."
        ),
    )
    def get_all_action_items_tool(
        assignee: Annotated[
            Optional[str], Field(description="Filter by assignee name (partial match)")
        ] = None,
        show_completed: Annotated[
            bool, Field(description="Include completed items (default: incomplete only)")
        ] = False,
        since: Annotated[
            Optional[str],
            Field(description="Only meetings on or after this date (YYYY-MM-DD)"),
        ] = None,
    ) -> str:
        return _run_tool(
            "get_all_action_items",
            lambda: get_all_action_items(
                ctx,
                AllActionItemsInput(
                    assignee=assignee, show_completed=show_completed, since=since
                ),
            ),
        )

    @app.tool(
        name="get_meetings_by_participants",
        description="Find cached meetings that included specific participants.",
    )
    def get_meetings_by_participants_tool(
        emails: Annotated[List[str], Field(description="Email addresses to search for")],
        require_all: Annotated[
            bool, Field(description="Only meetings where ALL emails attended (default: any)")
        ] = False,
    ) -> str:
        return _run_tool(
            "get_meetings_by_participants",
            lambda: get_meetings_by_participants(
                ctx, ParticipantsSearchInput(emails=emails, require_all=require_all)
            ),
        )

    @app.tool(
        name="search_cached_notes",
        description="Search titles and content of all cached meeting notes.",
    )
    def search_cached_notes_tool(
        query: Annotated[str, Field(description="Text to find in titles or content")],
    ) -> str:
        return _run_tool(
            "search_cached_notes",
            lambda: search_cached_notes(ctx, SearchNotesInput(query=query)),
        )

    @app.tool(
        name="get_sync_status",
        description="Get the last sync time and local database statistics.",
    )
    def get_sync_status_tool() -> str:
        return _run_tool("get_sync_status", lambda: get_sync_status(ctx))


def build_app(ctx: ServerContext) -> FastMCP:
    """Create the FastMCP application with every tool bound to ``ctx``."""

    app = FastMCP("fellow-mcp")
    _register_fastmcp_tools(app, ctx)
    return app


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fellow-mcp", description=__doc__.splitlines()[0])
    parser.add_argument("--api-key", help="Fellow API key (env: FELLOW_API_KEY)")
    parser.add_argument("--subdomain", help="Fellow workspace subdomain (env: FELLOW_SUBDOMAIN)")
    parser.add_argument("--db-path", help="SQLite cache path (env: FELLOW_DB_PATH)")
    parser.add_argument("--log-level", help="Log level (env: FELLOW_LOG_LEVEL)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    """Run the FastMCP application over stdio.

    Configuration errors are fatal here, before any tool is registered.
    The client and cache are closed when the server stops.
    """

    argv = argv if argv is not None else sys.argv[1:]
    args = _parse_args(argv)
    try:
        config = load_config(
            api_key=args.api_key,
            subdomain=args.subdomain,
            db_path=args.db_path,
            log_level=args.log_level,
        )
    except ValidationError as exc:
        # Logging is not configured yet; the exit message goes to stderr.
        raise SystemExit(f"Configuration error: {exc}") from exc
    configure_logging(config.log_level)

    try:
        ctx = ServerContext.from_config(config)
    except ConfigError as exc:
        logger.error("config_invalid", error=exc.message)
        raise SystemExit(f"Configuration error: {exc.message}") from exc

    app = build_app(ctx)
    logger.info("mcp_server_starting", name="fellow-mcp", db_path=str(config.db_path))
    try:
        app.run()
    finally:
        ctx.close()
        logger.info("mcp_server_stopped")


if __name__ == "__main__":  # pragma: no cover
    main()
