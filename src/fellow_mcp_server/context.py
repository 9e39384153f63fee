"""Process-wide collaborators, built once at startup and passed to tools."""

from __future__ import annotations

from dataclasses import dataclass

from .client import FellowClient
from .config import AppConfig
from .store import FellowStore
from .sync import SyncOrchestrator


@dataclass
class ServerContext:
    config: AppConfig
    client: FellowClient
    store: FellowStore
    sync: SyncOrchestrator

    @classmethod
    def from_config(cls, config: AppConfig) -> ServerContext:
        """Open the client and cache described by ``config``.

        Raises:
            ConfigError: If the API key or subdomain is missing.
        """

        config.require_credentials()
        client = FellowClient(
            config.api_key or "", config.subdomain or "", timeout=config.timeout_seconds
        )
        store = FellowStore(config.db_path)
        sync = SyncOrchestrator(
            client, store, page_size=config.page_size, max_pages=config.max_pages
        )
        return cls(config=config, client=client, store=store, sync=sync)

    def close(self) -> None:
        self.client.close()
        self.store.close()
