"""Path classification: hierarchy level and file kind from a relative path."""

from __future__ import annotations

from dataclasses import dataclass

from catalog_import.core.errors import MalformedInputError
from catalog_import.importer.types import HIERARCHY_LEVELS, FileKind, NodeLevel

_KIND_BY_SUFFIX: dict[str, FileKind] = {
    "ppt": "ppt",
    "pptx": "ppt",
    "doc": "word",
    "docx": "word",
    "pdf": "pdf",
    "mp4": "video",
    "avi": "video",
    "mov": "video",
    "mkv": "video",
    "webm": "video",
    "wmv": "video",
    "flv": "video",
    "m4v": "video",
}


@dataclass(frozen=True, slots=True)
class Classification:
    level: NodeLevel
    segments: tuple[str, ...]
    kind: FileKind | None = None
    folded: bool = False

    @property
    def depth(self) -> int:
        """Number of directory segments above the entry itself."""
        return len(self.segments) - 1

    @property
    def name(self) -> str:
        return self.segments[-1]

    @property
    def directories(self) -> tuple[str, ...]:
        return self.segments if self.level != "file" else self.segments[:-1]


def split_path(relative_path: str) -> tuple[str, ...]:
    """Split on either separator, dropping empty and ``.`` segments."""
    parts = relative_path.replace("\\", "/").split("/")
    return tuple(part.strip() for part in parts if part.strip() and part.strip() != ".")


def file_kind(name: str) -> FileKind:
    if "." not in name:
        return "unknown"
    return _KIND_BY_SUFFIX.get(name.rsplit(".", 1)[1].lower(), "unknown")


def is_supported(name: str) -> bool:
    return file_kind(name) != "unknown"


def classify(relative_path: str, is_directory: bool = False) -> Classification:
    """Map a path to its hierarchy level (and file kind for files).

    Directories deeper than the heading level are folded into ``heading``.
    """
    segments = split_path(relative_path)
    if not segments:
        raise MalformedInputError(relative_path)
    if not is_directory:
        return Classification(level="file", segments=segments, kind=file_kind(segments[-1]))
    depth = len(segments) - 1
    if depth >= len(HIERARCHY_LEVELS):
        return Classification(level="heading", segments=segments, folded=True)
    return Classification(level=HIERARCHY_LEVELS[depth], segments=segments)


__all__ = ["Classification", "classify", "file_kind", "is_supported", "split_path"]
