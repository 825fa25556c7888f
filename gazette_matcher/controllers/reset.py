"""
Confirmed, destructive clear of the remote store and all client state.
"""

from __future__ import annotations

import logging
from typing import Callable, Union

from gazette_matcher.client import DEFAULT_CLEAR_ERROR, MatcherClient
from gazette_matcher.config import Settings
from gazette_matcher.errors import ClearError, MatcherError
from gazette_matcher.records.store import RecordStore

logger = logging.getLogger(__name__)

Confirmation = Union[bool, Callable[[], bool]]


class ResetController:
    def __init__(self, settings: Settings, client: MatcherClient, store: RecordStore) -> None:
        self.settings = settings
        self.client = client
        self.store = store

    async def clear(self, confirm: Confirmation) -> bool:
        """
        Clear all stored matches once the user has confirmed.

        Returns ``False`` without touching anything when the user declines. On
        failure the local records are kept and ``ClearError`` is raised; with
        ``refetch_after_failed_clear`` the list is first reconciled from
        ``GET records``.
        """

        approved = confirm() if callable(confirm) else bool(confirm)
        if not approved:
            logger.info("Clear declined; nothing sent.")
            return False

        try:
            await self.client.clear_records()
        except MatcherError as exc:
            logger.error("Clear failed: %s", exc.message)
            if self.settings.refetch_after_failed_clear:
                await self._reconcile()
            self.store.set_error(DEFAULT_CLEAR_ERROR)
            raise ClearError(DEFAULT_CLEAR_ERROR) from exc

        self.store.reset()
        logger.warning("All stored matches cleared.")
        return True

    async def _reconcile(self) -> None:
        try:
            records = await self.client.fetch_records()
        except MatcherError as exc:
            logger.warning("Could not reconcile records after failed clear: %s", exc.message)
            return
        self.store.replace(records, self.store.summary)
