"""
Single-writer container for the raw records, the last summary and view state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from gazette_matcher.records import pipeline
from gazette_matcher.records.models import Record, ResultSummary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ViewState:
    search: str = ""
    sort: pipeline.SortSpec = pipeline.DEFAULT_SORT
    expanded: dict[str, bool] = field(default_factory=dict)
    pages: dict[str, int] = field(default_factory=dict)

    def expanded_keys(self) -> frozenset[str]:
        return frozenset(key for key, is_open in self.expanded.items() if is_open)


class RecordStore:
    """Holds the committed snapshot the dataset pipeline reads from."""

    def __init__(self, page_size: int = pipeline.PAGE_SIZE) -> None:
        self.page_size = page_size
        self.records: tuple[Record, ...] = ()
        self.summary: Optional[ResultSummary] = None
        self.error: str = ""
        self.view_state = ViewState()
        self._view_cache: Optional[tuple[tuple[Record, ...], tuple, pipeline.DatasetView]] = None

    @property
    def is_empty(self) -> bool:
        return not self.records

    # --- Writers ---------------------------------------------------------

    def replace(self, records: Iterable[Record], summary: Optional[ResultSummary] = None) -> None:
        """Swap in a new record list; the previous summary is superseded, never merged."""
        self.records = tuple(records)
        self.summary = summary
        self.view_state = ViewState()
        self._view_cache = None
        logger.debug("Record store replaced with %d records", len(self.records))

    def reset(self) -> None:
        self.replace(())
        self.error = ""

    def set_error(self, message: str) -> None:
        self.error = message

    def clear_error(self) -> None:
        self.error = ""

    def set_search(self, text: str) -> None:
        self.view_state.search = text

    def toggle_sort(self, key: str) -> pipeline.SortSpec:
        self.view_state.sort = pipeline.toggle_sort(self.view_state.sort, key)
        return self.view_state.sort

    def toggle_group(self, key: str) -> bool:
        expanded = not self.view_state.expanded.get(key, False)
        self.view_state.expanded[key] = expanded
        return expanded

    def set_page(self, key: str, page: int) -> int:
        """Move a group's cursor, clamped against the group's current size."""
        group = self.view().group(key)
        size = group.size if group else 0
        clamped = pipeline.clamp_page(page, size, self.page_size)
        self.view_state.pages[key] = clamped
        return clamped

    # --- Readers ---------------------------------------------------------

    def view(self) -> pipeline.DatasetView:
        """Derived view of the current snapshot; recomputed only when an input changes."""
        state = self.view_state
        key = (
            pipeline.normalize_query(state.search),
            state.sort,
            tuple(sorted(state.pages.items())),
            state.expanded_keys(),
            self.page_size,
        )
        cached = self._view_cache
        if cached is not None and cached[0] is self.records and cached[1] == key:
            return cached[2]
        view = pipeline.build_view(
            self.records,
            query=state.search,
            sort=state.sort,
            pages=state.pages,
            expanded=state.expanded_keys(),
            page_size=self.page_size,
        )
        self._view_cache = (self.records, key, view)
        return view

    def filtered(self) -> tuple[Record, ...]:
        """Search-applied records in their original order."""
        return pipeline.filter_records(self.records, self.view_state.search)
