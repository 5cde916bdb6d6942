"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from catalog_import.importer.types import ImportPolicy


class EntryPayload(BaseModel):
    relative_path: str
    is_directory: bool = False
    content_b64: str | None = Field(default=None, description="Base64 file content; ignored for folders")


class SessionCreateRequest(BaseModel):
    entries: list[EntryPayload]


class SessionResponse(BaseModel):
    session_id: str
    tree: list[dict[str, Any]]
    stats: dict[str, int]
    warnings: list[str]


class EditRequest(BaseModel):
    action: Literal["toggle", "rename", "delete", "select", "expand_all", "collapse_all"]
    node_id: str | None = None
    name: str | None = None


class CommitRequest(BaseModel):
    policy: ImportPolicy = ImportPolicy.MERGE


class ImportRequest(BaseModel):
    entries: list[EntryPayload]
    policy: ImportPolicy = ImportPolicy.MERGE


class LevelCountersModel(BaseModel):
    created: int
    matched: int


class FileCountersModel(BaseModel):
    created: int
    replaced: int
    imported: int
    errors: int


class ReportResponse(BaseModel):
    run_id: str
    policy: ImportPolicy
    stages: LevelCountersModel
    types: LevelCountersModel
    lecons: LevelCountersModel
    headings: LevelCountersModel
    files: FileCountersModel
    warnings: list[str]
    duration_ms: int
    incomplete: bool


class CatalogResponse(BaseModel):
    stages: list[dict[str, Any]]


__all__ = [
    "EntryPayload",
    "SessionCreateRequest",
    "SessionResponse",
    "EditRequest",
    "CommitRequest",
    "ImportRequest",
    "ReportResponse",
    "CatalogResponse",
]
