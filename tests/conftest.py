from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from gazette_matcher.client import MatcherClient
from gazette_matcher.config import Settings
from gazette_matcher.records.models import Document, Record
from gazette_matcher.session import MatcherSession

API_BASE = "http://matcher.test/api"


def make_settings(**overrides) -> Settings:
    values = {
        "MATCHER_API_BASE": API_BASE,
        "PROGRESS_RESET_DELAY": 0.01,
        "SUBMIT_TIMEOUT_SECONDS": 5,
        "FETCH_ON_START": False,
        "REFETCH_AFTER_FAILED_CLEAR": False,
    }
    values.update(overrides)
    return Settings(**values)


def make_record(**fields) -> Record:
    base = {
        "court_station": "Nairobi",
        "cause_no": "E001/2024",
        "name_of_deceased": "John Doe",
        "status_at_gp": "Published",
        "volume_no": "Vol. CXXVI-No. 1",
        "date_published": "2024-01-01",
    }
    base.update(fields)
    return Record(**base)


def match_payload(rows: list[dict], **overrides) -> dict:
    payload = {
        "matchedRows": rows,
        "mode": "tokens",
        "threshold": 0.85,
        "totalGazette": 10,
        "totalExcel": 20,
        "matchedCount": len(rows),
        "insertedCount": len(rows),
    }
    payload.update(overrides)
    return payload


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


def make_session(handler: Callable[[httpx.Request], httpx.Response], **overrides) -> tuple[MatcherSession, RecordingTransport]:
    settings = make_settings(**overrides)
    transport = RecordingTransport(handler)
    return MatcherSession(settings, MatcherClient(settings, transport=transport)), transport


def json_response(status_code: int, payload) -> httpx.Response:
    """JSON response whose body is streamed, so byte counts advance as it is read."""
    body = json.dumps(payload).encode()
    return httpx.Response(
        status_code,
        headers={"Content-Type": "application/json", "Content-Length": str(len(body))},
        stream=httpx.ByteStream(body),
    )


@pytest.fixture
def pdf() -> Document:
    return Document("gazette.pdf", b"%PDF-1.4 fake gazette", "application/pdf")


@pytest.fixture
def excel() -> Document:
    return Document(
        "registry.xlsx",
        b"PK fake workbook",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
