"""Test fixtures for the catalog importer."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterable

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from catalog_import.catalog.store import SQLiteCatalogStore  # noqa: E402
from catalog_import.core.config import Settings  # noqa: E402
from catalog_import.db.sqlite import SQLiteDatabase  # noqa: E402
from catalog_import.importer.types import RawEntry  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("CATIMP_DB_PATH", str(tmp_path / "catalog.db"))
    monkeypatch.delenv("CATIMP_CONFIG", raising=False)

    from catalog_import.api import dependencies as deps
    from catalog_import.core.config import get_settings

    def _reset() -> None:
        get_settings.cache_clear()
        deps.get_app_settings.cache_clear()
        deps.close_database()
        deps._SESSIONS = None

    _reset()
    yield
    _reset()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store(tmp_path: Path) -> SQLiteCatalogStore:
    db = SQLiteDatabase(tmp_path / "store.db")
    db.ensure_schema()
    yield SQLiteCatalogStore(db)
    db.close()


def _reader(data: bytes):
    async def _read() -> bytes:
        return data

    return _read


def _failing_reader(message: str):
    async def _read() -> bytes:
        raise OSError(message)

    return _read


@pytest.fixture
def make_entries() -> Callable[..., list[RawEntry]]:
    """Build entries from paths; a trailing ``/`` marks a folder.

    ``contents`` overrides the payload per path; ``None`` makes the read fail.
    """

    def _make(paths: Iterable[str], contents: dict[str, bytes | None] | None = None) -> list[RawEntry]:
        contents = contents or {}
        entries: list[RawEntry] = []
        for path in paths:
            if path.endswith("/"):
                entries.append(RawEntry(relative_path=path.rstrip("/"), is_directory=True))
                continue
            data = contents.get(path, f"content of {path}".encode("utf-8"))
            reader = _failing_reader("permission denied") if data is None else _reader(data)
            entries.append(RawEntry(relative_path=path, reader=reader))
        return entries

    return _make


@pytest.fixture(scope="session")
def sample_paths() -> list[str]:
    return [
        "CAT1/",
        "CAT1/P.SPORTIF/",
        "CAT1/P.SPORTIF/Basketball/",
        "CAT1/P.SPORTIF/Basketball/Techniques/",
        "CAT1/P.SPORTIF/Basketball/Techniques/bases.pptx",
        "CAT1/P.SPORTIF/Basketball/Techniques/drills.docx",
        "CAT1/P.SPORTIF/Basketball/Regles/reglement.pdf",
        "CAT1/P.MILITAIRE/Combat/Videos/demo.mp4",
    ]
