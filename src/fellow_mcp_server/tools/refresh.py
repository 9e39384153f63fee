"""Sync tool: pull notes and recordings from Fellow into the local cache."""

from __future__ import annotations

from ..context import ServerContext
from ..schemas import SyncInput
from ..utils import render_stats, render_sync_result


def sync_meetings(ctx: ServerContext, params: SyncInput) -> str:
    """Run a full (``force``) or incremental sync and report cache totals.

    Remote failures propagate so the caller sees a failed tool call; rows
    written before the failure stay in the cache and the watermark is not
    advanced.
    """

    if params.force:
        result = ctx.sync.full_sync(include_transcripts=params.include_transcripts)
    else:
        result = ctx.sync.incremental_sync(include_transcripts=params.include_transcripts)

    stats = ctx.store.stats()
    return (
        "# Sync Complete\n\n"
        f"Mode: {'Full' if result.mode == 'full' else 'Incremental'}\n\n"
        "## This Sync:\n"
        f"{render_sync_result(result)}\n"
        "## Database Totals:\n"
        f"{render_stats(stats)}\n"
        f"Last sync: {ctx.store.get_last_sync()}"
    )
