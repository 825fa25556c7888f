"""
Matched-record model, dataset pipeline and cell rendering.
"""

from .highlight import NOT_AVAILABLE, render_cell
from .models import (
    Document,
    MatchMode,
    MatchResult,
    Record,
    ResultSummary,
    SubmissionParameters,
    UNKNOWN_DATE,
)
from .pipeline import DatasetView, RecordGroup, SortSpec, build_view
from .store import RecordStore, ViewState

__all__ = [
    "DatasetView",
    "Document",
    "MatchMode",
    "MatchResult",
    "NOT_AVAILABLE",
    "Record",
    "RecordGroup",
    "RecordStore",
    "ResultSummary",
    "SortSpec",
    "SubmissionParameters",
    "UNKNOWN_DATE",
    "ViewState",
    "build_view",
    "render_cell",
]
