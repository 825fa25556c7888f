"""
CSV export of the search-filtered record set.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from pathlib import Path

from gazette_matcher.errors import ExportUnavailableError
from gazette_matcher.records.models import Record
from gazette_matcher.records.store import RecordStore

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [f.name for f in fields(Record)]
EXPORT_PREFIX = "matches"
TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S%f"


@dataclass(frozen=True, slots=True)
class ExportArtifact:
    filename: str
    content: bytes
    media_type: str = "text/csv"
    row_count: int = 0

    def write_to(self, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename
        path.write_bytes(self.content)
        return path


def records_to_csv(records: list[Record] | tuple[Record, ...]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for record in records:
        writer.writerow({key: value if value is not None else "" for key, value in record.as_row().items()})
    # Leading BOM so spreadsheet apps read accented names as UTF-8.
    return buffer.getvalue().encode("utf-8-sig")


class ExportAdapter:
    """Serializes the filtered view; every artifact gets a fresh timestamped name."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self._last_stamp: datetime | None = None

    def export_current_view(self) -> ExportArtifact:
        if self.store.is_empty:
            raise ExportUnavailableError("There are no records to export.")
        records = self.store.filtered()
        artifact = ExportArtifact(
            filename=f"{EXPORT_PREFIX}_{self._next_stamp():{TIMESTAMP_FORMAT}}.csv",
            content=records_to_csv(records),
            row_count=len(records),
        )
        logger.info("Exported %d records to %s", artifact.row_count, artifact.filename)
        return artifact

    def _next_stamp(self) -> datetime:
        stamp = datetime.now(timezone.utc)
        if self._last_stamp is not None and stamp <= self._last_stamp:
            stamp = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = stamp
        return stamp
