"""Process-wide singletons handed to routes through ``Depends``."""

from __future__ import annotations

from functools import lru_cache

from catalog_import.catalog.store import SQLiteCatalogStore
from catalog_import.core.config import Settings, get_settings
from catalog_import.db.sqlite import SQLiteDatabase
from catalog_import.importer.coordinator import ImportCoordinator
from catalog_import.importer.sessions import ImportSessionRegistry

_DB: SQLiteDatabase | None = None
_STORE: SQLiteCatalogStore | None = None
_COORDINATOR: ImportCoordinator | None = None
_SESSIONS: ImportSessionRegistry | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_database() -> SQLiteDatabase:
    global _DB
    if _DB is None:
        db = SQLiteDatabase(get_app_settings().db_path)
        db.ensure_schema()
        _DB = db
    return _DB


def get_catalog_store() -> SQLiteCatalogStore:
    global _STORE
    if _STORE is None:
        _STORE = SQLiteCatalogStore(get_database())
    return _STORE


def get_coordinator() -> ImportCoordinator:
    """One coordinator per process, so concurrent requests see ``RunInProgress``."""
    global _COORDINATOR
    if _COORDINATOR is None:
        _COORDINATOR = ImportCoordinator(store=get_catalog_store(), settings=get_app_settings())
    return _COORDINATOR


def get_session_registry() -> ImportSessionRegistry:
    global _SESSIONS
    if _SESSIONS is None:
        _SESSIONS = ImportSessionRegistry(ttl_seconds=get_app_settings().session_ttl_seconds)
    return _SESSIONS


def close_database() -> None:
    """Close the catalog connection and drop everything built on it."""
    global _DB, _STORE, _COORDINATOR
    if _DB is not None:
        _DB.close()
    _DB = None
    _STORE = None
    _COORDINATOR = None


__all__ = [
    "get_app_settings",
    "get_database",
    "get_catalog_store",
    "get_coordinator",
    "get_session_registry",
    "close_database",
]
