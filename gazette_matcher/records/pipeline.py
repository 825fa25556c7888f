"""
Pure transforms that turn the raw record list into the displayed view.

The stages run in a fixed order: filter, sort, group by publication date, then
paginate each group. Every stage takes and returns immutable sequences, so a
view computed from a snapshot can be reused by its owner safely.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from math import ceil
from typing import Iterable, Mapping, Sequence

from gazette_matcher.records.models import SEARCHABLE_FIELDS, SORTABLE_FIELDS, Record

PAGE_SIZE = 50
ASC = "asc"
DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: str = "date_published"
    direction: str = DESC

    def __post_init__(self) -> None:
        if self.key not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {self.key!r}")
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Unknown sort direction {self.direction!r}")


DEFAULT_SORT = SortSpec()


@dataclass(frozen=True, slots=True)
class RecordGroup:
    key: str
    records: tuple[Record, ...]
    page: int = 1
    total_pages: int = 1
    page_size: int = PAGE_SIZE
    expanded: bool = False

    @property
    def size(self) -> int:
        return len(self.records)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def visible(self) -> tuple[Record, ...]:
        return self.records[self.offset : self.offset + self.page_size]


@dataclass(frozen=True, slots=True)
class DatasetView:
    query: str
    sort: SortSpec
    filtered: tuple[Record, ...]
    ordered: tuple[Record, ...]
    groups: tuple[RecordGroup, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.filtered)

    def group(self, key: str) -> RecordGroup | None:
        for group in self.groups:
            if group.key == key:
                return group
        return None


def normalize_query(query: str | None) -> str:
    return (query or "").strip().casefold()


def filter_records(records: Sequence[Record], query: str | None) -> tuple[Record, ...]:
    """Keep records where any searchable field contains the query, ignoring case."""
    needle = normalize_query(query)
    if not needle:
        return tuple(records)
    return tuple(
        record
        for record in records
        if any(needle in record.value(name).casefold() for name in SEARCHABLE_FIELDS)
    )


def collation_key(value: str) -> tuple[str, str]:
    """Accent- and case-insensitive primary key with the raw text as tiebreaker."""
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value


def sort_records(records: Sequence[Record], sort: SortSpec = DEFAULT_SORT) -> tuple[Record, ...]:
    return tuple(
        sorted(
            records,
            key=lambda record: collation_key(record.value(sort.key)),
            reverse=sort.direction == DESC,
        )
    )


def toggle_sort(current: SortSpec, key: str) -> SortSpec:
    """Flip the direction for the active key; a new key always starts ascending."""
    if current.key == key and current.direction == ASC:
        return SortSpec(key, DESC)
    return SortSpec(key, ASC)


def page_count(size: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, ceil(size / page_size))


def clamp_page(page: int | None, size: int, page_size: int = PAGE_SIZE) -> int:
    if page is None:
        return 1
    return min(max(page, 1), page_count(size, page_size))


def group_records(
    records: Iterable[Record],
    *,
    pages: Mapping[str, int] | None = None,
    expanded: Iterable[str] = (),
    page_size: int = PAGE_SIZE,
) -> tuple[RecordGroup, ...]:
    """
    Partition by publication date in first-appearance order.

    Page cursors are clamped here so an out-of-range cursor never leaves the
    pipeline.
    """

    pages = pages or {}
    expanded = set(expanded)
    buckets: dict[str, list[Record]] = {}
    for record in records:
        buckets.setdefault(record.group_key, []).append(record)

    return tuple(
        RecordGroup(
            key=key,
            records=tuple(members),
            page=clamp_page(pages.get(key), len(members), page_size),
            total_pages=page_count(len(members), page_size),
            page_size=page_size,
            expanded=key in expanded,
        )
        for key, members in buckets.items()
    )


def build_view(
    records: Sequence[Record],
    *,
    query: str | None = "",
    sort: SortSpec = DEFAULT_SORT,
    pages: Mapping[str, int] | None = None,
    expanded: Iterable[str] = (),
    page_size: int = PAGE_SIZE,
) -> DatasetView:
    """Run filter, sort, group and paginate over a snapshot of the inputs."""
    query = normalize_query(query)
    filtered = filter_records(tuple(records), query)
    ordered = sort_records(filtered, sort)
    groups = group_records(ordered, pages=pages, expanded=frozenset(expanded), page_size=page_size)
    return DatasetView(query=query, sort=sort, filtered=filtered, ordered=ordered, groups=groups)
