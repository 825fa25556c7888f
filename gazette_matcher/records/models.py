"""
Record, parameter and summary types exchanged with the matching service.
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from gazette_matcher.errors import ValidationError

UNKNOWN_DATE = "Unknown Date"
SEARCHABLE_FIELDS = (
    "court_station",
    "cause_no",
    "name_of_deceased",
    "status_at_gp",
    "volume_no",
    "date_published",
)
SORTABLE_FIELDS = ("id",) + SEARCHABLE_FIELDS
THRESHOLD_MIN = 0.5
THRESHOLD_MAX = 0.99


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True, slots=True)
class Record:
    id: Optional[str] = None
    court_station: Optional[str] = None
    cause_no: Optional[str] = None
    name_of_deceased: Optional[str] = None
    status_at_gp: Optional[str] = None
    volume_no: Optional[str] = None
    date_published: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Record":
        """Build a record from a JSON object, ignoring keys the client does not know."""
        return cls(**{f.name: _as_text(payload.get(f.name)) for f in fields(cls)})

    def value(self, field: str) -> str:
        """Field coerced to text with absent values as the empty string."""
        return getattr(self, field, None) or ""

    @property
    def group_key(self) -> str:
        return self.date_published or UNKNOWN_DATE

    def as_row(self) -> dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class MatchMode(str, Enum):
    EXACT = "exact"
    TOKENS = "tokens"
    FUZZY = "fuzzy"


@dataclass(frozen=True, slots=True)
class SubmissionParameters:
    mode: MatchMode = MatchMode.TOKENS
    threshold: float = 0.85

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "mode", MatchMode(self.mode))
        except ValueError as exc:
            allowed = ", ".join(m.value for m in MatchMode)
            raise ValidationError(f"Unknown matching mode {self.mode!r}; expected one of {allowed}.") from exc
        if not THRESHOLD_MIN <= self.threshold <= THRESHOLD_MAX:
            raise ValidationError(
                f"Threshold must be between {THRESHOLD_MIN:.2f} and {THRESHOLD_MAX:.2f}."
            )

    def as_query(self) -> dict[str, str]:
        return {"mode": self.mode.value, "threshold": f"{self.threshold:.2f}"}


class ResultSummary(BaseModel):
    """Statistics echoed back by the most recent successful submission."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mode: Optional[str] = None
    threshold: Optional[float] = None
    total_gazette: Optional[int] = Field(None, alias="totalGazette")
    total_excel: Optional[int] = Field(None, alias="totalExcel")
    matched_count: Optional[int] = Field(None, alias="matchedCount")
    inserted_count: Optional[int] = Field(None, alias="insertedCount")


@dataclass(frozen=True, slots=True)
class MatchResult:
    summary: ResultSummary
    records: tuple[Record, ...]


@dataclass(frozen=True, slots=True)
class Document:
    """An uploaded file held in memory."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> "Document":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return len(self.content)
