"""Turn a local folder or an API payload into raw import entries."""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path
from typing import Iterable

from catalog_import.importer.types import PayloadReader, RawEntry


def _file_reader(path: Path) -> PayloadReader:
    async def _read() -> bytes:
        return path.read_bytes()

    return _read


def _base64_reader(content_b64: str | None) -> PayloadReader:
    async def _read() -> bytes:
        if content_b64 is None:
            raise ValueError("no content provided")
        try:
            return base64.b64decode(content_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid base64 content: {exc}") from exc

    return _read


def scan_directory(root: Path) -> list[RawEntry]:
    """List ``root`` recursively as entries relative to it.

    Entries are sorted per directory, folders and files interleaved by name,
    so repeated scans of an unchanged folder give the same order.
    """
    root = root.expanduser().resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"{root} is not a directory")
    entries: list[RawEntry] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted([*dirnames, *filenames]):
            path = base / name
            relative = path.relative_to(root).as_posix()
            if name in dirnames:
                entries.append(RawEntry(relative_path=relative, is_directory=True))
            else:
                entries.append(RawEntry(relative_path=relative, reader=_file_reader(path)))
    return entries


def entries_from_payload(items: Iterable[dict]) -> list[RawEntry]:
    """Build entries from ``{relative_path, is_directory, content_b64}`` mappings."""
    entries: list[RawEntry] = []
    for item in items:
        is_directory = bool(item.get("is_directory", False))
        entries.append(
            RawEntry(
                relative_path=item.get("relative_path") or "",
                is_directory=is_directory,
                reader=None if is_directory else _base64_reader(item.get("content_b64")),
            )
        )
    return entries


__all__ = ["scan_directory", "entries_from_payload"]
