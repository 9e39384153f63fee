"""Utility functions for parsing and formatting.

This package includes helpers for ISO 8601 date handling and the
Markdown rendering used by the MCP tools.
"""

from .date_parser import ensure_iso8601, normalize_date_input, parse_iso8601, utc_now_iso
from .markdown_export import (
    render_action_items,
    render_grouped_action_items,
    render_header,
    render_stats,
    render_sync_result,
    render_transcript,
    snippet,
)

__all__ = [
    "ensure_iso8601",
    "normalize_date_input",
    "parse_iso8601",
    "utc_now_iso",
    "render_action_items",
    "render_grouped_action_items",
    "render_header",
    "render_stats",
    "render_sync_result",
    "render_transcript",
    "snippet",
]
