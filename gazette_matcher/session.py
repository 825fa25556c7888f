"""
One user's matcher session: record store, controllers and exporter wired together.
"""

from __future__ import annotations

import logging

from gazette_matcher.client import DEFAULT_FETCH_ERROR, MatcherClient
from gazette_matcher.config import Settings
from gazette_matcher.controllers import ResetController, SubmissionController
from gazette_matcher.errors import MatcherError
from gazette_matcher.export import ExportAdapter
from gazette_matcher.records.models import Record
from gazette_matcher.records.store import RecordStore

logger = logging.getLogger(__name__)


class MatcherSession:
    def __init__(self, settings: Settings, client: MatcherClient) -> None:
        self.settings = settings
        self.client = client
        self.store = RecordStore(page_size=settings.rows_per_page)
        self.submission = SubmissionController(settings, client, self.store)
        self.reset = ResetController(settings, client, self.store)
        self.exporter = ExportAdapter(self.store)

    async def refresh(self) -> list[Record]:
        """Replace the local list with everything the service has persisted."""
        try:
            records = await self.client.fetch_records()
        except MatcherError:
            logger.exception("Error fetching records")
            self.store.set_error(DEFAULT_FETCH_ERROR)
            raise
        self.store.replace(records, self.store.summary)
        logger.info("Fetched %d stored records", len(records))
        return records

    async def close(self) -> None:
        await self.client.close()
