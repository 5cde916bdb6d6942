"""Internal dataclasses representing persisted catalog entities."""

from __future__ import annotations

from dataclasses import dataclass

from catalog_import.importer.types import FileKind, HierarchyLevel


@dataclass(slots=True)
class CatalogEntity:
    id: str
    level: HierarchyLevel
    parent_id: str | None
    name: str
    created_at: int
    updated_at: int


@dataclass(slots=True)
class CatalogFile:
    id: str
    heading_id: str
    name: str
    title: str
    kind: FileKind
    size_bytes: int
    sha256: str
    created_at: int
    updated_at: int
