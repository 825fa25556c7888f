"""
HTTP client for the remote matching and storage service.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Callable, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from gazette_matcher.config import Settings
from gazette_matcher.errors import NetworkError, RemoteError
from gazette_matcher.records.models import (
    Document,
    MatchResult,
    Record,
    ResultSummary,
    SubmissionParameters,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Optional[int]], None]

UPLOAD_CHUNK_SIZE = 64 * 1024
DEFAULT_MATCH_ERROR = "Error processing files"
DEFAULT_FETCH_ERROR = "Failed to fetch records. Please check the server."
DEFAULT_CLEAR_ERROR = "Failed to clear records."


def _noop(done: int, total: Optional[int]) -> None:
    return None


def error_message(content: bytes, fallback: str) -> str:
    """Pull the ``error`` string out of a JSON error body, else use the fallback."""
    try:
        payload = json.loads(content or b"null")
    except ValueError:
        return fallback
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"].strip():
        return payload["error"]
    return fallback


def _content_length(response: httpx.Response) -> Optional[int]:
    raw = response.headers.get("Content-Length")
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


class MatcherClient:
    """Async adapter for ``POST match``, ``GET records`` and ``POST clear-records``."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
            transport=transport,
        )

    async def close(self) -> None:
        await self.http.aclose()

    async def match(
        self,
        pdf: Document,
        excel: Document,
        params: SubmissionParameters,
        *,
        on_upload: ProgressCallback = _noop,
        on_download: ProgressCallback = _noop,
    ) -> MatchResult:
        files = {
            "pdfFile": (pdf.filename, pdf.content, pdf.content_type),
            "excelFile": (excel.filename, excel.content, excel.content_type),
        }
        # Encode once so the upload can be streamed with a known length.
        encoded = self.http.build_request("POST", "match", params=params.as_query(), files=files)
        body = encoded.read()
        request = self.http.build_request(
            "POST",
            "match",
            params=params.as_query(),
            content=self._stream_body(body, on_upload),
            headers={
                "Content-Type": encoded.headers["Content-Type"],
                "Content-Length": str(len(body)),
            },
            # The server may take minutes before the first response byte.
            timeout=httpx.Timeout(self.settings.submit_timeout_seconds, connect=10.0),
        )
        logger.debug("POST %s (%d bytes)", request.url, len(body))
        payload = await self._send_tracked(request, on_download, fallback=DEFAULT_MATCH_ERROR)
        if not isinstance(payload, dict):
            raise RemoteError(DEFAULT_MATCH_ERROR, status_code=200)
        try:
            summary = ResultSummary.model_validate(payload)
        except PydanticValidationError as exc:
            logger.error("Unexpected match response: %s", json.dumps(payload)[:200])
            raise RemoteError(DEFAULT_MATCH_ERROR, status_code=200) from exc
        rows = payload.get("matchedRows") or []
        return MatchResult(
            summary=summary,
            records=tuple(Record.from_payload(row) for row in rows if isinstance(row, dict)),
        )

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=8),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(NetworkError),
        reraise=True,
    )
    async def fetch_records(self) -> List[Record]:
        response = await self._request("GET", "records", fallback=DEFAULT_FETCH_ERROR)
        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteError(DEFAULT_FETCH_ERROR, status_code=response.status_code) from exc
        if not isinstance(data, list):
            raise RemoteError(DEFAULT_FETCH_ERROR, status_code=response.status_code)
        return [Record.from_payload(row) for row in data if isinstance(row, dict)]

    async def clear_records(self) -> None:
        await self._request("POST", "clear-records", fallback=DEFAULT_CLEAR_ERROR)

    # --- Transport helpers -----------------------------------------------

    async def _stream_body(self, body: bytes, on_upload: ProgressCallback) -> AsyncIterator[bytes]:
        total = len(body)
        for start in range(0, total, UPLOAD_CHUNK_SIZE):
            chunk = body[start : start + UPLOAD_CHUNK_SIZE]
            yield chunk
            on_upload(start + len(chunk), total)

    async def _send_tracked(
        self, request: httpx.Request, on_download: ProgressCallback, *, fallback: str
    ) -> Any:
        try:
            response = await self.http.send(request, stream=True)
        except httpx.TimeoutException as exc:
            raise NetworkError("The matching service timed out.", timed_out=True) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(fallback) from exc

        try:
            total = _content_length(response)
            chunks: list[bytes] = []
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                on_download(response.num_bytes_downloaded, total)
            content = b"".join(chunks)
        except httpx.TimeoutException as exc:
            raise NetworkError("The matching service timed out.", timed_out=True) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(fallback) from exc
        finally:
            await response.aclose()

        if not response.is_success:
            raise RemoteError(error_message(content, fallback), status_code=response.status_code)
        try:
            return json.loads(content)
        except ValueError as exc:
            raise RemoteError(fallback, status_code=response.status_code) from exc

    async def _request(self, method: str, url: str, *, fallback: str) -> httpx.Response:
        try:
            response = await self.http.request(method, url)
        except httpx.TimeoutException as exc:
            raise NetworkError(fallback, timed_out=True) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(fallback) from exc
        if not response.is_success:
            raise RemoteError(error_message(response.content, fallback), status_code=response.status_code)
        return response
