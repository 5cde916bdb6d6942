"""Build the editable import forest from raw folder entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from catalog_import.core.config import Settings
from catalog_import.core.errors import MalformedInputError
from catalog_import.core.logging import get_logger
from catalog_import.importer.classifier import Classification, classify, is_supported, split_path
from catalog_import.importer.naming import apply_alias
from catalog_import.importer.types import (
    HIERARCHY_LEVELS,
    BuildResult,
    CancellationToken,
    ImportFile,
    ImportNode,
    ImportProgress,
    NodeLevel,
    ProgressCallback,
    RawEntry,
    TreeStats,
)
from catalog_import.utils.ids import new_id
from catalog_import.utils.text import grouping_key

logger = get_logger(__name__)

# Files with fewer directories above them than this are outside the expected layout.
_EXPECTED_FILE_DEPTH = 3


@dataclass(slots=True)
class _Draft:
    id: str
    name: str
    level: NodeLevel
    children: list["_Draft | ImportNode"] = field(default_factory=list)
    index: dict[str, "_Draft"] = field(default_factory=dict)

    def freeze(self) -> ImportNode:
        return ImportNode(
            id=self.id,
            name=self.name,
            level=self.level,
            children=tuple(child if isinstance(child, ImportNode) else child.freeze() for child in self.children),
            expanded=True,
        )


class TreeBuilder:
    """Accumulates classified entries into a stage > courseType > lecon > heading > file forest."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._roots: list[_Draft] = []
        self._root_index: dict[str, _Draft] = {}
        self.warnings: list[str] = []
        self.stats = TreeStats()

    def add_directory(self, relative_path: str) -> None:
        classification = classify(relative_path, is_directory=True)
        if self._is_hidden(classification):
            logger.debug("Skipping hidden folder %s", relative_path)
            return
        if classification.folded:
            logger.debug("Folding %s into its heading", relative_path)
        self._ensure_chain(classification.segments[: len(HIERARCHY_LEVELS)])

    def add_file(
        self,
        relative_path: str,
        payload: bytes | None = None,
        read_error: str | None = None,
    ) -> ImportNode | None:
        classification = classify(relative_path)
        if self._is_hidden(classification):
            logger.debug("Skipping hidden file %s", relative_path)
            return None
        if not self.settings.include_unknown and not is_supported(classification.name):
            self.warnings.append(f"{relative_path}: unsupported file type, skipped")
            return None

        directories = list(classification.directories[: len(HIERARCHY_LEVELS)])
        depth = len(directories)
        if depth < _EXPECTED_FILE_DEPTH:
            self.warnings.append(f"{relative_path}: file outside expected depth (depth {depth})")
        while len(directories) < len(HIERARCHY_LEVELS):
            directories.append(self.settings.default_group_name)
        heading = self._ensure_chain(directories)[-1]

        import_file = ImportFile(
            id=new_id("file"),
            name=classification.name,
            path="/".join(classification.segments),
            kind=classification.kind or "unknown",
            payload=payload,
            size_bytes=len(payload) if payload is not None else 0,
            read_error=read_error,
        )
        node = ImportNode(
            id=new_id("node"),
            name=_display_file_name(classification.name),
            level="file",
            expanded=False,
            file=import_file,
        )
        heading.children.append(node)
        self.stats.files += 1
        return node

    def wants_payload(self, relative_path: str) -> bool:
        """Whether ``add_file`` would keep this file, so its content is worth reading."""
        segments = split_path(relative_path)
        if self.settings.skip_hidden and any(part.startswith(".") for part in segments):
            return False
        return self.settings.include_unknown or is_supported(segments[-1])

    def result(self, incomplete: bool = False) -> BuildResult:
        forest = tuple(draft.freeze() for draft in self._roots)
        return BuildResult(forest=forest, warnings=list(self.warnings), stats=self.stats, incomplete=incomplete)

    # Internal helpers -------------------------------------------------

    def _ensure_chain(self, segments: Sequence[str]) -> list[_Draft]:
        chain: list[_Draft] = []
        siblings, index = self._roots, self._root_index
        for level, segment in zip(HIERARCHY_LEVELS, segments):
            display = self._display_name(level, segment)
            key = grouping_key(display)
            draft = index.get(key)
            if draft is None:
                draft = _Draft(id=new_id("node"), name=display, level=level)
                index[key] = draft
                siblings.append(draft)
                self._count(level)
            chain.append(draft)
            siblings, index = draft.children, draft.index  # type: ignore[assignment]
        return chain

    def _display_name(self, level: NodeLevel, segment: str) -> str:
        if level == "stage":
            # unmapped stage names are shown uppercased
            return apply_alias(segment, self.settings.stage_aliases).upper()
        if level == "courseType":
            return apply_alias(segment, self.settings.type_aliases)
        return apply_alias(segment, {})

    def _count(self, level: NodeLevel) -> None:
        if level == "stage":
            self.stats.stages += 1
        elif level == "courseType":
            self.stats.types += 1
        elif level == "lecon":
            self.stats.lecons += 1
        elif level == "heading":
            self.stats.headings += 1

    def _is_hidden(self, classification: Classification) -> bool:
        return self.settings.skip_hidden and any(part.startswith(".") for part in classification.segments)


def _display_file_name(name: str) -> str:
    if "." in name.strip(".") and not name.startswith("."):
        return name.rsplit(".", 1)[0]
    return name


async def build(
    entries: Sequence[RawEntry],
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
    cancel: CancellationToken | None = None,
) -> BuildResult:
    """Parse raw entries into a forest, reading file payloads lazily.

    Every path is validated before any payload is read, so a malformed entry
    aborts the build without side effects.
    """
    for index, entry in enumerate(entries):
        if not split_path(entry.relative_path):
            raise MalformedInputError(entry.relative_path, index=index)

    builder = TreeBuilder(settings)
    total = len(entries)
    for processed, entry in enumerate(entries, start=1):
        if cancel is not None and cancel.cancelled:
            logger.info("Parsing cancelled after %s of %s entries", processed - 1, total)
            return builder.result(incomplete=True)
        if entry.is_directory:
            builder.add_directory(entry.relative_path)
        elif not builder.wants_payload(entry.relative_path):
            # records the skip without reading the content
            builder.add_file(entry.relative_path)
        else:
            payload, read_error = await _read_payload(entry)
            builder.add_file(entry.relative_path, payload=payload, read_error=read_error)
        if on_progress is not None:
            on_progress(ImportProgress("parsing", processed, total, entry.relative_path))
    return builder.result()


async def _read_payload(entry: RawEntry) -> tuple[bytes | None, str | None]:
    if entry.reader is None:
        return None, "no content available"
    try:
        return await entry.reader(), None
    except Exception as exc:
        logger.warning("Failed to read %s: %s", entry.relative_path, exc)
        return None, str(exc) or exc.__class__.__name__


__all__ = ["TreeBuilder", "build"]
