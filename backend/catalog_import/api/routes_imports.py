"""Import API routes: one-shot imports and interactive sessions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from catalog_import.api.dependencies import get_coordinator, get_session_registry
from catalog_import.core.errors import MalformedInputError, RunInProgress, SessionNotFound
from catalog_import.importer.coordinator import ImportCoordinator
from catalog_import.importer.sessions import ImportSessionRegistry
from catalog_import.importer.sources import entries_from_payload
from catalog_import.importer.types import ImportPolicy
from catalog_import.models.dto import (
    CommitRequest,
    EditRequest,
    ImportRequest,
    ReportResponse,
    SessionCreateRequest,
    SessionResponse,
)

router = APIRouter()


@router.post("", response_model=ReportResponse, summary="Parse and import a folder tree in one run")
async def run_import(
    request: ImportRequest,
    coordinator: ImportCoordinator = Depends(get_coordinator),
) -> ReportResponse:
    entries = entries_from_payload(entry.model_dump() for entry in request.entries)
    try:
        report = await coordinator.run(entries, request.policy)
    except MalformedInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RunInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return ReportResponse(**report.to_dict())


@router.post("/sessions", response_model=SessionResponse, summary="Parse a folder tree for review")
async def open_session(
    request: SessionCreateRequest,
    coordinator: ImportCoordinator = Depends(get_coordinator),
    registry: ImportSessionRegistry = Depends(get_session_registry),
) -> SessionResponse:
    entries = entries_from_payload(entry.model_dump() for entry in request.entries)
    try:
        result = await coordinator.parse(entries)
    except MalformedInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RunInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    session = registry.open(result)
    return SessionResponse(**session.to_dict())


@router.get("/sessions/{session_id}", response_model=SessionResponse, summary="Current tree of a session")
async def get_session(
    session_id: str,
    registry: ImportSessionRegistry = Depends(get_session_registry),
) -> SessionResponse:
    try:
        session = registry.get(session_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SessionResponse(**session.to_dict())


@router.post("/sessions/{session_id}/edits", response_model=SessionResponse, summary="Edit the session tree")
async def edit_session(
    session_id: str,
    request: EditRequest,
    registry: ImportSessionRegistry = Depends(get_session_registry),
) -> SessionResponse:
    if request.action not in {"expand_all", "collapse_all"} and not request.node_id:
        raise HTTPException(status_code=422, detail=f"node_id is required for {request.action}")
    try:
        session = registry.apply_edit(session_id, request.action, request.node_id, request.name)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SessionResponse(**session.to_dict())


@router.post("/sessions/{session_id}/commit", response_model=ReportResponse, summary="Import the reviewed tree")
async def commit_session(
    session_id: str,
    request: CommitRequest,
    coordinator: ImportCoordinator = Depends(get_coordinator),
    registry: ImportSessionRegistry = Depends(get_session_registry),
) -> ReportResponse:
    try:
        session = registry.get(session_id)
        report = await coordinator.commit(session.forest, request.policy, warnings=session.warnings)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except RunInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    # A preview keeps the session open so the user can still pick merge or replace.
    if request.policy != ImportPolicy.PREVIEW:
        registry.close(session_id)
    return ReportResponse(**report.to_dict())


@router.delete("/sessions/{session_id}", summary="Discard a session")
async def discard_session(
    session_id: str,
    registry: ImportSessionRegistry = Depends(get_session_registry),
) -> dict[str, str]:
    try:
        registry.close(session_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"status": "ok"}


__all__ = ["router"]
