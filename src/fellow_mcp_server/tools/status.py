"""Sync status tool function."""

from __future__ import annotations

from ..context import ServerContext
from ..utils import render_stats


def get_sync_status(ctx: ServerContext) -> str:
    """Report the watermark, cache totals and cache location."""

    stats = ctx.store.stats()
    last_sync = ctx.store.get_last_sync()
    return (
        "# Sync Status\n\n"
        f"Last sync: {last_sync or 'Never'}\n\n"
        "## Database Statistics:\n"
        f"{render_stats(stats)}\n"
        "## Database Location:\n"
        f"{ctx.config.db_path}"
    )
