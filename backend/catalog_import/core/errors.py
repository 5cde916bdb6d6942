"""Catalog importer error hierarchy.

Hierarchy:
    CatalogImportError
    ├── MalformedInputError     # an entry path has no segments; aborts the build
    ├── RunInProgress           # a run was started while another is active
    └── SessionNotFound         # unknown interactive import session id

Per-file read and size failures are not exceptions: they are recorded in the
import report.
"""

from __future__ import annotations


class CatalogImportError(Exception):
    """Base class for all catalog importer errors."""


class MalformedInputError(CatalogImportError):
    """An input entry's path cannot be parsed into segments."""

    def __init__(self, path: str, index: int | None = None) -> None:
        where = f" (entry #{index})" if index is not None else ""
        super().__init__(f"Cannot parse import path {path!r}{where}")
        self.path = path
        self.index = index


class RunInProgress(CatalogImportError):
    """Another import run is still active on the same coordinator."""

    def __init__(self, run_id: str | None = None) -> None:
        super().__init__(f"Import run {run_id or '?'} is already in progress")
        self.run_id = run_id


class SessionNotFound(CatalogImportError):
    """No open import session with the requested id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Import session {session_id} not found")
        self.session_id = session_id


__all__ = ["CatalogImportError", "MalformedInputError", "RunInProgress", "SessionNotFound"]
