"""Catalog store contract and its SQLite implementation."""

from __future__ import annotations

import sqlite3
from typing import Protocol

from catalog_import.core.logging import get_logger
from catalog_import.db.sqlite import SQLiteDatabase
from catalog_import.importer.types import HierarchyLevel, ImportFile
from catalog_import.models.entities import CatalogEntity, CatalogFile
from catalog_import.utils.ids import new_id, payload_digest
from catalog_import.utils.time import now_ms

logger = get_logger(__name__)

_ID_PREFIX: dict[HierarchyLevel, str] = {
    "stage": "stg",
    "courseType": "typ",
    "lecon": "lec",
    "heading": "hdg",
}


class CatalogStore(Protocol):
    """Persistence collaborator consumed by the import coordinator.

    Every write is atomic: it is either fully applied or not at all.
    """

    async def list_stages(self) -> list[CatalogEntity]: ...

    async def list_course_types(self, stage_id: str) -> list[CatalogEntity]: ...

    async def list_lecons_of(self, type_id: str) -> list[CatalogEntity]: ...

    async def list_headings_of(self, lecon_id: str) -> list[CatalogEntity]: ...

    async def list_files_of(self, heading_id: str) -> list[CatalogFile]: ...

    async def create_stage(self, name: str) -> str: ...

    async def create_course_type(self, stage_id: str, name: str) -> str: ...

    async def create_lecon(self, type_id: str, name: str) -> str: ...

    async def create_heading(self, lecon_id: str, name: str) -> str: ...

    async def delete_scope(self, entity_id: str) -> None: ...

    async def put_file(self, heading_id: str, file: ImportFile, title: str) -> str: ...


class SQLiteCatalogStore:
    """CatalogStore backed by the ``entities`` and ``files`` tables."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self.db = database

    async def list_stages(self) -> list[CatalogEntity]:
        return self._children("stage", None)

    async def list_course_types(self, stage_id: str) -> list[CatalogEntity]:
        return self._children("courseType", stage_id)

    async def list_lecons_of(self, type_id: str) -> list[CatalogEntity]:
        return self._children("lecon", type_id)

    async def list_headings_of(self, lecon_id: str) -> list[CatalogEntity]:
        return self._children("heading", lecon_id)

    async def list_files_of(self, heading_id: str) -> list[CatalogFile]:
        rows = self.db.query(
            """
            SELECT id, heading_id, name, title, kind, size_bytes, sha256, created_at, updated_at
            FROM files WHERE heading_id = ? ORDER BY rowid
            """,
            [heading_id],
        )
        return [_row_to_file(row) for row in rows]

    async def create_stage(self, name: str) -> str:
        return self._create("stage", None, name)

    async def create_course_type(self, stage_id: str, name: str) -> str:
        return self._create("courseType", stage_id, name)

    async def create_lecon(self, type_id: str, name: str) -> str:
        return self._create("lecon", type_id, name)

    async def create_heading(self, lecon_id: str, name: str) -> str:
        return self._create("heading", lecon_id, name)

    async def delete_scope(self, entity_id: str) -> None:
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM entities WHERE id = ?", [entity_id])
            deleted = cursor.rowcount
        logger.debug("Deleted scope %s (%s row)", entity_id, deleted)

    async def put_file(self, heading_id: str, file: ImportFile, title: str) -> str:
        """Create a file under the heading, or overwrite the one whose name casefolds equal."""
        if file.payload is None:
            raise ValueError(f"File {file.name} has no payload")
        now = now_ms()
        digest = payload_digest(file.payload)
        name_key = file.name.casefold()
        with self.db.transaction() as cursor:
            existing = cursor.execute(
                "SELECT id FROM files WHERE heading_id = ? AND name_key = ?",
                [heading_id, name_key],
            ).fetchone()
            if existing:
                file_id = existing["id"]
                cursor.execute(
                    """
                    UPDATE files SET name = ?, name_key = ?, title = ?, kind = ?, payload = ?, size_bytes = ?,
                      sha256 = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    [file.name, name_key, title, file.kind, file.payload, file.size_bytes, digest, now, file_id],
                )
            else:
                file_id = new_id("fil")
                cursor.execute(
                    """
                    INSERT INTO files (
                      id, heading_id, name, name_key, title, kind, payload, size_bytes, sha256, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        file_id, heading_id, file.name, name_key, title, file.kind,
                        file.payload, file.size_bytes, digest, now, now,
                    ],
                )
        return file_id

    def read_payload(self, file_id: str) -> bytes | None:
        row = self.db.execute("SELECT payload FROM files WHERE id = ?", [file_id]).fetchone()
        return bytes(row["payload"]) if row else None

    # Internal helpers -------------------------------------------------

    def _children(self, level: HierarchyLevel, parent_id: str | None) -> list[CatalogEntity]:
        if parent_id is None:
            rows = self.db.query(
                "SELECT id, level, parent_id, name, created_at, updated_at FROM entities "
                "WHERE level = ? AND parent_id IS NULL ORDER BY rowid",
                [level],
            )
        else:
            rows = self.db.query(
                "SELECT id, level, parent_id, name, created_at, updated_at FROM entities "
                "WHERE level = ? AND parent_id = ? ORDER BY rowid",
                [level, parent_id],
            )
        return [_row_to_entity(row) for row in rows]

    def _create(self, level: HierarchyLevel, parent_id: str | None, name: str) -> str:
        entity_id = new_id(_ID_PREFIX[level])
        now = now_ms()
        with self.db.transaction() as cursor:
            cursor.execute(
                "INSERT INTO entities (id, level, parent_id, name, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                [entity_id, level, parent_id, name, now, now],
            )
        return entity_id


def _row_to_entity(row: sqlite3.Row) -> CatalogEntity:
    return CatalogEntity(
        id=row["id"],
        level=row["level"],
        parent_id=row["parent_id"],
        name=row["name"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_file(row: sqlite3.Row) -> CatalogFile:
    return CatalogFile(
        id=row["id"],
        heading_id=row["heading_id"],
        name=row["name"],
        title=row["title"],
        kind=row["kind"],
        size_bytes=row["size_bytes"],
        sha256=row["sha256"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = ["CatalogStore", "SQLiteCatalogStore"]
