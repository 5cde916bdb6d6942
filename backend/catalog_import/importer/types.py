"""Common import data structures."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Mapping

HierarchyLevel = Literal["stage", "courseType", "lecon", "heading"]
NodeLevel = Literal["stage", "courseType", "lecon", "heading", "file"]
FileKind = Literal["ppt", "word", "pdf", "video", "unknown"]
ImportPhase = Literal["parsing", "importing"]

HIERARCHY_LEVELS: tuple[HierarchyLevel, ...] = ("stage", "courseType", "lecon", "heading")
NODE_LEVELS: tuple[NodeLevel, ...] = (*HIERARCHY_LEVELS, "file")

# Report keys for each hierarchy level.
COUNTER_KEYS: Mapping[HierarchyLevel, str] = {
    "stage": "stages",
    "courseType": "types",
    "lecon": "lecons",
    "heading": "headings",
}

PayloadReader = Callable[[], Awaitable[bytes]]


def child_level(level: NodeLevel) -> NodeLevel | None:
    """Level directly below ``level``, or None for files."""
    index = NODE_LEVELS.index(level)
    return NODE_LEVELS[index + 1] if index + 1 < len(NODE_LEVELS) else None


class ImportPolicy(str, enum.Enum):
    MERGE = "merge"
    REPLACE = "replace"
    PREVIEW = "preview"


@dataclass(slots=True)
class RawEntry:
    """One item of a dropped or picked folder tree."""

    relative_path: str
    is_directory: bool = False
    reader: PayloadReader | None = None


@dataclass(frozen=True, slots=True)
class ImportFile:
    """A leaf document extracted from the input tree."""

    id: str
    name: str
    path: str
    kind: FileKind
    payload: bytes | None
    size_bytes: int
    read_error: str | None = None


@dataclass(frozen=True, slots=True)
class ImportNode:
    """Node of the editable import hierarchy. Never mutated; edits copy."""

    id: str
    name: str
    level: NodeLevel
    children: tuple["ImportNode", ...] = ()
    expanded: bool = True
    file: ImportFile | None = None
    selected: bool = False

    @property
    def is_file(self) -> bool:
        return self.level == "file"

    def to_dict(self) -> dict[str, Any]:
        """Payload-free representation for API responses."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "level": self.level,
            "expanded": self.expanded,
            "selected": self.selected,
            "children": [child.to_dict() for child in self.children],
        }
        if self.file is not None:
            data["file"] = {
                "name": self.file.name,
                "path": self.file.path,
                "kind": self.file.kind,
                "size_bytes": self.file.size_bytes,
                "read_error": self.file.read_error,
            }
        return data


Forest = tuple[ImportNode, ...]


@dataclass(slots=True)
class TreeStats:
    stages: int = 0
    types: int = 0
    lecons: int = 0
    headings: int = 0
    files: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "stages": self.stages,
            "types": self.types,
            "lecons": self.lecons,
            "headings": self.headings,
            "files": self.files,
        }


@dataclass(slots=True)
class BuildResult:
    """Outcome of the parsing phase."""

    forest: Forest
    warnings: list[str] = field(default_factory=list)
    stats: TreeStats = field(default_factory=TreeStats)
    incomplete: bool = False


@dataclass(slots=True)
class LevelCounters:
    created: int = 0
    matched: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"created": self.created, "matched": self.matched}


@dataclass(slots=True)
class FileCounters:
    created: int = 0
    replaced: int = 0
    imported: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "replaced": self.replaced,
            "imported": self.imported,
            "errors": self.errors,
        }


@dataclass(slots=True)
class ReconciliationCounters:
    """Aggregated create/match statistics per level."""

    stages: LevelCounters = field(default_factory=LevelCounters)
    types: LevelCounters = field(default_factory=LevelCounters)
    lecons: LevelCounters = field(default_factory=LevelCounters)
    headings: LevelCounters = field(default_factory=LevelCounters)
    files: FileCounters = field(default_factory=FileCounters)

    def level(self, level: HierarchyLevel) -> LevelCounters:
        return getattr(self, COUNTER_KEYS[level])

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {
            "stages": self.stages.to_dict(),
            "types": self.types.to_dict(),
            "lecons": self.lecons.to_dict(),
            "headings": self.headings.to_dict(),
            "files": self.files.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class ImportReport:
    """Final, write-once result of an import run."""

    run_id: str
    policy: ImportPolicy
    counters: ReconciliationCounters
    warnings: tuple[str, ...]
    duration_ms: int
    incomplete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "policy": self.policy.value,
            **self.counters.to_dict(),
            "warnings": list(self.warnings),
            "duration_ms": self.duration_ms,
            "incomplete": self.incomplete,
        }


@dataclass(frozen=True, slots=True)
class ImportProgress:
    phase: ImportPhase
    processed: int
    total: int
    current_label: str | None = None


ProgressCallback = Callable[[ImportProgress], None]


class CancellationToken:
    """Cooperative cancellation flag checked between units of work."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


__all__ = [
    "HierarchyLevel",
    "NodeLevel",
    "FileKind",
    "ImportPhase",
    "HIERARCHY_LEVELS",
    "NODE_LEVELS",
    "COUNTER_KEYS",
    "PayloadReader",
    "child_level",
    "ImportPolicy",
    "RawEntry",
    "ImportFile",
    "ImportNode",
    "Forest",
    "TreeStats",
    "BuildResult",
    "LevelCounters",
    "FileCounters",
    "ReconciliationCounters",
    "ImportReport",
    "ImportProgress",
    "ProgressCallback",
    "CancellationToken",
]
