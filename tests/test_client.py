from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from conftest import json_response, make_settings, match_payload

from gazette_matcher.client import MatcherClient, error_message
from gazette_matcher.errors import NetworkError, RemoteError
from gazette_matcher.records.models import MatchMode, Record, SubmissionParameters


def _client(handler) -> MatcherClient:
    return MatcherClient(make_settings(), transport=httpx.MockTransport(handler))


def test_match_sends_multipart_with_mode_and_threshold(pdf, excel) -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = request.content
        seen["content_type"] = request.headers["Content-Type"]
        return httpx.Response(200, json=match_payload([{"id": 7, "name_of_deceased": "Jane"}], mode="fuzzy"))

    async def scenario():
        client = _client(handler)
        try:
            return await client.match(pdf, excel, SubmissionParameters(MatchMode.FUZZY, 0.9))
        finally:
            await client.close()

    result = asyncio.run(scenario())
    assert seen["url"].path == "/api/match"
    assert seen["url"].params["mode"] == "fuzzy"
    assert seen["url"].params["threshold"] == "0.90"
    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="pdfFile"; filename="gazette.pdf"' in seen["body"]
    assert b'name="excelFile"; filename="registry.xlsx"' in seen["body"]
    assert result.records == (Record(id="7", name_of_deceased="Jane"),)
    assert result.summary.mode == "fuzzy"
    assert result.summary.matched_count == 1


def test_match_reports_upload_and_download_progress(pdf, excel) -> None:
    uploads: list = []
    downloads: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        return json_response(200, match_payload([]))

    async def scenario():
        client = _client(handler)
        try:
            await client.match(
                pdf,
                excel,
                SubmissionParameters(),
                on_upload=lambda done, total: uploads.append((done, total)),
                on_download=lambda done, total: downloads.append((done, total)),
            )
        finally:
            await client.close()

    asyncio.run(scenario())
    assert uploads
    assert uploads[-1][0] == uploads[-1][1]
    assert downloads
    body_size = len(json.dumps(match_payload([])).encode())
    assert downloads[-1] == (body_size, body_size)
    assert [done for done, _ in downloads] == sorted(done for done, _ in downloads)


def test_match_read_timeout_follows_submit_bound(pdf, excel) -> None:
    timeouts: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts[request.url.path] = request.extensions["timeout"]
        if request.url.path.endswith("/match"):
            return json_response(200, match_payload([]))
        return httpx.Response(200, json=[])

    async def scenario():
        client = MatcherClient(
            make_settings(SUBMIT_TIMEOUT_SECONDS=5, REQUEST_TIMEOUT_SECONDS=0.2),
            transport=httpx.MockTransport(handler),
        )
        try:
            await client.match(pdf, excel, SubmissionParameters())
            await client.fetch_records()
        finally:
            await client.close()

    asyncio.run(scenario())
    assert timeouts["/api/match"]["read"] == 5
    assert timeouts["/api/match"]["connect"] == 10.0
    assert timeouts["/api/records"]["read"] == 0.2


def test_slow_match_outlasts_request_timeout(pdf, excel) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        # MockTransport does not enforce timeouts; emulate a read timeout from the extension.
        delay = 0.3
        if delay > request.extensions["timeout"]["read"]:
            raise httpx.ReadTimeout("read timed out", request=request)
        await asyncio.sleep(delay)
        return json_response(200, match_payload([{"id": 1}]))

    async def scenario():
        client = MatcherClient(
            make_settings(SUBMIT_TIMEOUT_SECONDS=5, REQUEST_TIMEOUT_SECONDS=0.1),
            transport=httpx.MockTransport(handler),
        )
        try:
            return await client.match(pdf, excel, SubmissionParameters())
        finally:
            await client.close()

    result = asyncio.run(scenario())
    assert [r.id for r in result.records] == ["1"]


def test_match_surfaces_remote_error_message(pdf, excel) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"error": "Gazette PDF could not be read"})

    async def scenario():
        client = _client(handler)
        try:
            await client.match(pdf, excel, SubmissionParameters())
        finally:
            await client.close()

    with pytest.raises(RemoteError) as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.message == "Gazette PDF could not be read"
    assert excinfo.value.status_code == 422


def test_match_transport_failure_is_network_error(pdf, excel) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        client = _client(handler)
        try:
            await client.match(pdf, excel, SubmissionParameters())
        finally:
            await client.close()

    with pytest.raises(NetworkError) as excinfo:
        asyncio.run(scenario())
    assert not excinfo.value.timed_out


def test_fetch_records_parses_array() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/records"
        return httpx.Response(200, json=[{"id": 1, "cause_no": "E5/2023", "extra": "ignored"}, "junk"])

    async def scenario():
        client = _client(handler)
        try:
            return await client.fetch_records()
        finally:
            await client.close()

    assert asyncio.run(scenario()) == [Record(id="1", cause_no="E5/2023")]


def test_clear_records_posts_and_raises_on_failure() -> None:
    calls: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        return httpx.Response(500, text="boom")

    async def scenario():
        client = _client(handler)
        try:
            await client.clear_records()
        finally:
            await client.close()

    with pytest.raises(RemoteError) as excinfo:
        asyncio.run(scenario())
    assert calls == [("POST", "/api/clear-records")]
    assert excinfo.value.message == "Failed to clear records."


def test_error_message_fallbacks() -> None:
    assert error_message(b'{"error": "bad file"}', "fallback") == "bad file"
    assert error_message(b'{"error": ""}', "fallback") == "fallback"
    assert error_message(b'{"detail": "x"}', "fallback") == "fallback"
    assert error_message(b"<html>oops</html>", "fallback") == "fallback"
    assert error_message(b"", "fallback") == "fallback"
