"""HTTP client for the Fellow v1 API.

Thin, synchronous wrapper around `httpx.Client`. List endpoints are POST
requests carrying ``filters``, ``include`` and ``pagination`` in the JSON
body; get-by-id endpoints are plain GETs. Every request is attempted
exactly once; a non-2xx status or an undecodable body is raised as
`FellowApiError`.

Usage example:
    with FellowClient(api_key, "acme") as client:
        page = client.list_notes(include_content=True, page_size=20)
        for note in page.data:
            print(note.title)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, TypeVar

import httpx
import structlog

from .errors import FellowApiError
from .schemas import ListFilters, Note, NotesPage, Recording, RecordingsPage

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 20

T = TypeVar("T")


def _envelope(payload: Any, key: str) -> Any:
    """The list object under ``key`` of a list response."""
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object with a '{key}' member")
    return payload.get(key) or {}


class FellowClient:
    """Client for one Fellow workspace.

    Args:
        api_key: Static key sent as the ``X-API-KEY`` header.
        subdomain: Workspace subdomain; the base URL is
            ``https://{subdomain}.fellow.app/api/v1``.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests to serve
            canned responses.
    """

    def __init__(
        self,
        api_key: str,
        subdomain: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = f"https://{subdomain}.fellow.app/api/v1"
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> FellowClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---------------------- Transport ----------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        decode: Callable[[Any], T],
        body: Optional[Dict[str, Any]] = None,
    ) -> T:
        """Send one request and decode its JSON body with ``decode``.

        A 2xx response whose body is not JSON, or does not fit the
        expected model, is raised as `FellowApiError` with the response
        status and text.
        """

        try:
            response = self._http.request(method, endpoint, json=body)
        except httpx.HTTPError as exc:
            logger.warning("fellow_request_failed", method=method, endpoint=endpoint, error=str(exc))
            raise FellowApiError(0, str(exc)) from exc

        if not response.is_success:
            logger.warning(
                "fellow_request_rejected",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise FellowApiError(response.status_code, response.text)

        # JSONDecodeError and pydantic ValidationError are ValueError subclasses.
        try:
            return decode(response.json())
        except ValueError as exc:
            logger.warning(
                "fellow_response_invalid",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                error=str(exc),
            )
            raise FellowApiError(response.status_code, response.text) from exc

    @staticmethod
    def _list_body(
        filters: Optional[ListFilters],
        include: Dict[str, bool],
        cursor: Optional[str],
        page_size: int,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        wire_filters = filters.to_wire() if filters else {}
        if wire_filters:
            body["filters"] = wire_filters
        include = {k: v for k, v in include.items() if v}
        if include:
            body["include"] = include
        body["pagination"] = {"cursor": cursor, "page_size": page_size}
        return body

    # ---------------------- Notes ----------------------

    def list_notes(
        self,
        filters: Optional[ListFilters] = None,
        *,
        include_content: bool = False,
        include_attendees: bool = False,
        cursor: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> NotesPage:
        """Fetch one page of notes. A None cursor starts from the beginning."""

        body = self._list_body(
            filters,
            {"content_markdown": include_content, "event_attendees": include_attendees},
            cursor,
            page_size,
        )
        return self._request(
            "POST",
            "/notes",
            lambda payload: NotesPage.model_validate(_envelope(payload, "notes")),
            body,
        )

    def get_note(self, note_id: str) -> Note:
        return self._request("GET", f"/note/{note_id}", Note.model_validate)

    # ---------------------- Recordings ----------------------

    def list_recordings(
        self,
        filters: Optional[ListFilters] = None,
        *,
        include_transcript: bool = False,
        cursor: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> RecordingsPage:
        """Fetch one page of recordings, optionally with transcripts."""

        body = self._list_body(
            filters, {"transcript": include_transcript}, cursor, page_size
        )
        return self._request(
            "POST",
            "/recordings",
            lambda payload: RecordingsPage.model_validate(_envelope(payload, "recordings")),
            body,
        )

    def get_recording(self, recording_id: str) -> Recording:
        return self._request("GET", f"/recording/{recording_id}", Recording.model_validate)
