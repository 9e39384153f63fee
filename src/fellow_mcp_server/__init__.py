"""Fellow MCP Server package.

This package provides an MCP server exposing Fellow.ai meeting notes,
recordings and transcripts as a set of tools, backed by a local SQLite
cache for offline search and cross-meeting queries (action items,
participants).

Usage example:
    from fellow_mcp_server.server import main
    if __name__ == "__main__":
        main()

Note: Tools can also be imported and called directly with a
`ServerContext`, without the MCP runtime.
"""

__all__ = [
    "__version__",
]

__version__ = "1.0.0"
