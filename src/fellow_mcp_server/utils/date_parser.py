"""Date/time parsing helpers.

Provides tolerant ISO 8601 parsing and normalization, including support
for 'Z' suffix normalization to '+00:00' and bare ``YYYY-MM-DD`` dates.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from ..errors import BadRequestError

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _replace_z_suffix(value: str) -> str:
    if value.endswith("Z"):
        return value[:-1] + "+00:00"
    return value


def parse_iso8601(value: str) -> datetime:
    """Parse an ISO 8601 string into a timezone-aware datetime.

    Accepts values ending with 'Z' by converting to '+00:00'. Naive
    values are assumed to be UTC.

    Raises:
        ValueError: If the timestamp cannot be parsed.
    """

    normalized = _replace_z_suffix(value.strip())
    dt = datetime.fromisoformat(normalized)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def ensure_iso8601(value: str) -> str:
    """Return a normalized ISO 8601 string with explicit offset.

    Example:
        >>> ensure_iso8601("2025-09-01T10:00:00Z")
        '2025-09-01T10:00:00+00:00'
    """

    return parse_iso8601(value).isoformat()


def normalize_date_input(value: str | None, *, field: str) -> str | None:
    """Validate a user-supplied date filter.

    ``YYYY-MM-DD`` is returned unchanged; full timestamps are normalized
    with `ensure_iso8601`. Blank input means no filter.

    Raises:
        BadRequestError: If the value is neither form.
    """

    if value is None or not value.strip():
        return None
    value = value.strip()
    try:
        if _DATE_ONLY.match(value):
            datetime.strptime(value, "%Y-%m-%d")
            return value
        return ensure_iso8601(value)
    except ValueError as exc:
        raise BadRequestError(
            f"'{field}' must be YYYY-MM-DD or an ISO 8601 timestamp",
            {"field": field, "value": value},
        ) from exc


def utc_now_iso() -> str:
    """Current UTC time in the same shape Fellow uses (``...Z``)."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
