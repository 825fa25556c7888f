"""
Upload lifecycle: validate, send both documents, track progress, commit results.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional

from gazette_matcher.client import DEFAULT_MATCH_ERROR, MatcherClient
from gazette_matcher.config import Settings
from gazette_matcher.errors import (
    NetworkError,
    SubmissionError,
    SubmissionInProgressError,
    ValidationError,
)
from gazette_matcher.progress import SubmissionProgress
from gazette_matcher.records.models import Document, MatchResult, SubmissionParameters
from gazette_matcher.records.store import RecordStore

logger = logging.getLogger(__name__)

MISSING_FILES_MESSAGE = "Upload both PDF & Excel files."
TIMEOUT_MESSAGE = "The matching service did not respond in time."


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class SubmissionController:
    """
    Drives ``IDLE -> SUBMITTING -> {SUCCESS, ERROR} -> IDLE``.

    Only one submission may be in flight. A failed submission leaves the
    previously committed records and summary in place.
    """

    def __init__(self, settings: Settings, client: MatcherClient, store: RecordStore) -> None:
        self.settings = settings
        self.client = client
        self.store = store
        self.state = SubmissionState.IDLE
        self.last_outcome: Optional[SubmissionState] = None
        self._progress = SubmissionProgress.start()
        self._display_progress = 0.0
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    @property
    def progress(self) -> float:
        return self._display_progress

    @property
    def can_submit(self) -> bool:
        return self.state is not SubmissionState.SUBMITTING

    async def submit(
        self,
        pdf: Optional[Document],
        excel: Optional[Document],
        params: Optional[SubmissionParameters] = None,
    ) -> MatchResult:
        if not self.can_submit:
            raise SubmissionInProgressError("A submission is already in progress.")
        if pdf is None or excel is None:
            self.store.set_error(MISSING_FILES_MESSAGE)
            raise ValidationError(MISSING_FILES_MESSAGE)
        params = params or SubmissionParameters()

        self._begin()
        logger.info(
            "Submitting %s and %s (mode=%s, threshold=%.2f)",
            pdf.filename,
            excel.filename,
            params.mode.value,
            params.threshold,
        )
        try:
            result = await asyncio.wait_for(
                self.client.match(
                    pdf,
                    excel,
                    params,
                    on_upload=self._on_upload,
                    on_download=self._on_download,
                ),
                timeout=self.settings.submit_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._fail(TIMEOUT_MESSAGE)
            raise NetworkError(TIMEOUT_MESSAGE, timed_out=True) from exc
        except SubmissionError as exc:
            self._fail(exc.message or DEFAULT_MATCH_ERROR)
            raise
        except Exception:
            self._fail(DEFAULT_MATCH_ERROR)
            raise

        self.store.replace(result.records, result.summary)
        self.store.clear_error()
        self._display_progress = self._progress.complete()
        self._finish(SubmissionState.SUCCESS)
        logger.info(
            "Submission complete: matched=%s inserted=%s rows=%d",
            result.summary.matched_count,
            result.summary.inserted_count,
            len(result.records),
        )
        return result

    # --- State transitions -----------------------------------------------

    def _begin(self) -> None:
        self._cancel_progress_reset()
        self.state = SubmissionState.SUBMITTING
        self.store.clear_error()
        self._progress = SubmissionProgress.start()
        self._display_progress = 0.0

    def _fail(self, message: str) -> None:
        logger.error("Submission failed: %s", message)
        self.store.set_error(message)
        self._finish(SubmissionState.ERROR)

    def _finish(self, outcome: SubmissionState) -> None:
        self.last_outcome = outcome
        self.state = SubmissionState.IDLE
        self._schedule_progress_reset()

    def _on_upload(self, sent: int, total: Optional[int]) -> None:
        self._display_progress = self._progress.on_upload(sent, total)
        logger.debug("Upload progress %.1f%%", self._display_progress)

    def _on_download(self, received: int, total: Optional[int]) -> None:
        self._display_progress = self._progress.on_download(received, total)
        logger.debug("Download progress %.1f%%", self._display_progress)

    # --- Cosmetic progress reset -----------------------------------------

    def _schedule_progress_reset(self) -> None:
        self._cancel_progress_reset()
        delay = self.settings.progress_reset_delay
        if delay <= 0:
            self._display_progress = 0.0
            return
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(delay, self._reset_progress)

    def _cancel_progress_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _reset_progress(self) -> None:
        self._reset_handle = None
        self._display_progress = 0.0
