"""
FastAPI routes for submission, progress, the derived record view, export and clear.
"""

from __future__ import annotations

from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile
from pydantic import BaseModel, Field

from gazette_matcher.errors import (
    ClearError,
    ExportUnavailableError,
    MatcherError,
    NetworkError,
    SubmissionInProgressError,
    ValidationError,
)
from gazette_matcher.records.highlight import render_cell
from gazette_matcher.records.models import (
    SEARCHABLE_FIELDS,
    SORTABLE_FIELDS,
    Document,
    MatchMode,
    SubmissionParameters,
)
from gazette_matcher.session import MatcherSession

router = APIRouter()
view_router = APIRouter(prefix="/view", tags=["view"])


def get_session(request: Request) -> MatcherSession:
    return request.app.state.session


def raise_http(exc: MatcherError) -> NoReturn:
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, (SubmissionInProgressError, ExportUnavailableError)):
        status = 409
    elif isinstance(exc, NetworkError) and exc.timed_out:
        status = 504
    else:
        status = 502
    raise HTTPException(status_code=status, detail=exc.message) from exc


class SearchRequest(BaseModel):
    query: str = Field("", description="Free-text search across the record fields.")


class PageRequest(BaseModel):
    page: int = Field(..., description="1-based page number; clamped to the group's range.")


async def _to_document(upload: Optional[UploadFile]) -> Optional[Document]:
    if upload is None or not upload.filename:
        return None
    content = await upload.read()
    return Document(
        filename=upload.filename,
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


def serialize_view(session: MatcherSession) -> dict:
    store = session.store
    view = store.view()
    query = store.view_state.search
    groups = []
    for group in view.groups:
        entry = {
            "key": group.key,
            "count": group.size,
            "expanded": group.expanded,
            "page": group.page,
            "total_pages": group.total_pages,
        }
        if group.expanded:
            entry["rows"] = [
                {
                    "number": group.offset + idx,
                    "id": record.id,
                    "cells": {name: render_cell(getattr(record, name), query) for name in SEARCHABLE_FIELDS},
                }
                for idx, record in enumerate(group.visible, start=1)
            ]
        groups.append(entry)

    return {
        "summary": store.summary.model_dump(by_alias=True) if store.summary else None,
        "error": store.error or None,
        "search": query,
        "sort": {"key": view.sort.key, "dir": view.sort.direction},
        "total": len(store.records),
        "filtered": view.total,
        "can_export": not store.is_empty,
        "groups": groups,
    }


@router.post("/submit")
async def submit_documents(
    pdf_file: Optional[UploadFile] = File(None, alias="pdfFile"),
    excel_file: Optional[UploadFile] = File(None, alias="excelFile"),
    mode: MatchMode = Query(MatchMode.TOKENS),
    threshold: float = Query(0.85, ge=0.5, le=0.99),
    session: MatcherSession = Depends(get_session),
):
    pdf = await _to_document(pdf_file)
    excel = await _to_document(excel_file)
    try:
        result = await session.submission.submit(pdf, excel, SubmissionParameters(mode, threshold))
    except MatcherError as exc:
        raise_http(exc)
    return {
        "summary": result.summary.model_dump(by_alias=True),
        "rows": len(result.records),
    }


@router.get("/progress")
async def submission_progress(session: MatcherSession = Depends(get_session)):
    controller = session.submission
    return {
        "state": controller.state.value,
        "last_outcome": controller.last_outcome.value if controller.last_outcome else None,
        "progress": round(controller.progress, 1),
        "can_submit": controller.can_submit,
        "error": session.store.error or None,
    }


@router.post("/refresh")
async def refresh_records(session: MatcherSession = Depends(get_session)):
    try:
        records = await session.refresh()
    except MatcherError as exc:
        raise_http(exc)
    return {"records": len(records)}


@router.post("/clear")
async def clear_records(
    confirm: bool = Query(False, description="Must be true to clear every stored match."),
    session: MatcherSession = Depends(get_session),
):
    try:
        cleared = await session.reset.clear(confirm)
    except ClearError as exc:
        raise_http(exc)
    return {"cleared": cleared}


@router.get("/export")
async def export_records(session: MatcherSession = Depends(get_session)):
    try:
        artifact = session.exporter.export_current_view()
    except ExportUnavailableError as exc:
        raise_http(exc)
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


# --- View state endpoints ---

@view_router.get("")
async def get_view(session: MatcherSession = Depends(get_session)):
    return serialize_view(session)


@view_router.post("/search")
async def set_search(payload: SearchRequest, session: MatcherSession = Depends(get_session)):
    session.store.set_search(payload.query)
    return serialize_view(session)


@view_router.post("/sort/{key}")
async def toggle_sort(key: str, session: MatcherSession = Depends(get_session)):
    if key not in SORTABLE_FIELDS:
        raise HTTPException(status_code=404, detail=f"Unknown sort key: {key}")
    session.store.toggle_sort(key)
    return serialize_view(session)


@view_router.post("/groups/{key:path}/toggle")
async def toggle_group(key: str, session: MatcherSession = Depends(get_session)):
    session.store.toggle_group(key)
    return serialize_view(session)


@view_router.post("/groups/{key:path}/page")
async def set_group_page(key: str, payload: PageRequest, session: MatcherSession = Depends(get_session)):
    session.store.set_page(key, payload.page)
    return serialize_view(session)
