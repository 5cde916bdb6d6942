"""In-memory view of the persisted catalog taken before reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from catalog_import.catalog.store import CatalogStore
from catalog_import.importer.types import HierarchyLevel, child_level
from catalog_import.models.entities import CatalogEntity, CatalogFile

ScopeKey = tuple[HierarchyLevel, str | None]


@dataclass(slots=True)
class CatalogSnapshot:
    """Entities grouped by (level, parent id) and files grouped by heading id."""

    entities: dict[ScopeKey, list[CatalogEntity]] = field(default_factory=dict)
    files: dict[str, list[CatalogFile]] = field(default_factory=dict)

    def children(self, level: HierarchyLevel, parent_id: str | None) -> list[CatalogEntity]:
        return self.entities.get((level, parent_id), [])

    def files_of(self, heading_id: str) -> list[CatalogFile]:
        return self.files.get(heading_id, [])

    def add(self, entity: CatalogEntity) -> None:
        self.entities.setdefault((entity.level, entity.parent_id), []).append(entity)

    @classmethod
    async def capture(cls, store: CatalogStore) -> "CatalogSnapshot":
        """Read the whole catalog tree, one awaited store call per scope."""
        snapshot = cls()
        for stage in await store.list_stages():
            snapshot.add(stage)
            for course_type in await store.list_course_types(stage.id):
                snapshot.add(course_type)
                for lecon in await store.list_lecons_of(course_type.id):
                    snapshot.add(lecon)
                    for heading in await store.list_headings_of(lecon.id):
                        snapshot.add(heading)
                        snapshot.files[heading.id] = await store.list_files_of(heading.id)
        return snapshot

    def to_tree(self) -> list[dict[str, Any]]:
        """Nested, payload-free representation of the catalog."""
        return [self._entity_tree(stage) for stage in self.children("stage", None)]

    def _entity_tree(self, entity: CatalogEntity) -> dict[str, Any]:
        data: dict[str, Any] = {"id": entity.id, "level": entity.level, "name": entity.name}
        if entity.level == "heading":
            data["files"] = [
                {"id": item.id, "name": item.name, "title": item.title, "kind": item.kind, "size_bytes": item.size_bytes}
                for item in self.files_of(entity.id)
            ]
            return data
        child = child_level(entity.level)
        data["children"] = [self._entity_tree(item) for item in self.children(child, entity.id)]
        return data


__all__ = ["CatalogSnapshot"]
