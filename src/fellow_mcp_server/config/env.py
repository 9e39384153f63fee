"""Environment configuration for the Fellow MCP Server.

All variables are prefixed with ``FELLOW_``:

```bash
export FELLOW_API_KEY="..."
export FELLOW_SUBDOMAIN="acme"          # -> https://acme.fellow.app/api/v1
export FELLOW_DB_PATH="~/.fellow-mcp/fellow.db"
```

These are rendered to the AppConfig class and can be accessed like this:

```python
from fellow_mcp_server.config import load_config
cfg = load_config()
print(cfg.db_path)
```
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigError


def _expand_path(p: str | Path | None) -> Path | None:
    """Expand ~ and environment variables in a path-like value."""
    if p is None:
        return None
    if isinstance(p, Path):
        s = str(p)
    else:
        s = p
    if s == ":memory:":
        return Path(s)
    return Path(os.path.expanduser(os.path.expandvars(s)))


class AppConfig(BaseSettings):
    """Application configuration settings loaded from environment variables.

    All environment variables are prefixed with FELLOW_ (e.g., FELLOW_API_KEY).
    Paths are automatically expanded to resolve ~ and environment variables.
    """

    # ---- credentials ----
    api_key: Optional[str] = Field(
        default=None, description="Static API key sent as the X-API-KEY header"
    )
    subdomain: Optional[str] = Field(
        default=None, description="Workspace subdomain, e.g. 'acme' for acme.fellow.app"
    )

    # ---- local cache ----
    db_path: Path = Field(
        default="~/.fellow-mcp/fellow.db",
        validate_default=True,
        description="Path to the SQLite cache file",
    )

    # ---- network / sync tuning ----
    timeout_seconds: float = Field(
        default=30.0, description="Network request timeout in seconds"
    )
    page_size: int = Field(
        default=50, ge=1, le=50, description="Page size used by sync passes"
    )
    max_pages: int = Field(
        default=1000,
        ge=1,
        description="Hard ceiling on pages fetched per list loop during sync",
    )

    # ---- logging ----
    log_level: str = Field(default="INFO", description="Minimum log level")

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_prefix="FELLOW_",
        case_sensitive=False,
        env_file=(".env",),  # will read if present
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,  # make settings immutable
    )

    # ---- validators ----
    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_all_paths(cls, v):
        return _expand_path(v)

    @field_validator("api_key", "subdomain", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    # ---- checks ----
    def require_credentials(self) -> None:
        """Raise ConfigError unless both the API key and subdomain are set."""
        if not self.api_key:
            raise ConfigError(
                "API key required: use --api-key <key> or set FELLOW_API_KEY"
            )
        if not self.subdomain:
            raise ConfigError(
                "Subdomain required: use --subdomain <subdomain> or set FELLOW_SUBDOMAIN"
            )


def load_config(**overrides: object) -> AppConfig:
    """Load and validate application configuration from environment variables.

    • All variables are prefixed with FELLOW_ (e.g., FELLOW_API_KEY).
    • Missing values fall back to the documented defaults.
    • Explicit keyword overrides (e.g. from CLI flags) win over the environment;
      overrides set to None are ignored.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    return AppConfig(**values)
