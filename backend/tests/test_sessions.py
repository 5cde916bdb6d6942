"""Tests for interactive import sessions."""

from __future__ import annotations

import pytest

from catalog_import.core.errors import SessionNotFound
from catalog_import.importer.builder import build
from catalog_import.importer.editor import iter_nodes
from catalog_import.importer.sessions import EDIT_ACTIONS, ImportSessionRegistry


@pytest.mark.asyncio
async def test_session_lifecycle(make_entries, sample_paths) -> None:
    registry = ImportSessionRegistry()
    session = registry.open(await build(make_entries(sample_paths)))
    assert len(registry) == 1
    assert registry.get(session.id) is session

    data = session.to_dict()
    assert data["session_id"] == session.id
    assert data["stats"] == {"stages": 1, "types": 2, "lecons": 2, "headings": 3, "files": 4}
    assert "payload" not in str(data["tree"])

    registry.close(session.id)
    assert len(registry) == 0
    with pytest.raises(SessionNotFound):
        registry.get(session.id)
    with pytest.raises(SessionNotFound):
        registry.close(session.id)


@pytest.mark.asyncio
async def test_edits_replace_the_session_forest(make_entries, sample_paths) -> None:
    registry = ImportSessionRegistry()
    session = registry.open(await build(make_entries(sample_paths)))
    regles = next(node for node in iter_nodes(session.forest) if node.name == "Regles")

    registry.apply_edit(session.id, "rename", regles.id, "  Règlement ")
    assert any(node.name == "Règlement" for node in iter_nodes(session.forest))

    registry.apply_edit(session.id, "collapse_all")
    assert not any(node.expanded for node in iter_nodes(session.forest))

    registry.apply_edit(session.id, "delete", regles.id)
    assert session.to_dict()["stats"]["files"] == 3


@pytest.mark.asyncio
async def test_unknown_action_or_session(make_entries) -> None:
    registry = ImportSessionRegistry()
    session = registry.open(await build(make_entries(["S/T/L/H/a.pdf"])))
    with pytest.raises(ValueError):
        registry.apply_edit(session.id, "explode")
    with pytest.raises(SessionNotFound):
        registry.apply_edit("ses_missing", "expand_all")


def test_edit_actions_cover_editor_operations() -> None:
    assert set(EDIT_ACTIONS) == {"toggle", "rename", "delete", "select", "expand_all", "collapse_all"}


@pytest.mark.asyncio
async def test_idle_sessions_expire(make_entries) -> None:
    now = [0]
    registry = ImportSessionRegistry(ttl_seconds=60, clock=lambda: now[0])
    result = await build(make_entries(["S/T/L/H/a.pdf"]))
    stale = registry.open(result)
    busy = registry.open(result)

    now[0] = 45_000
    registry.get(busy.id)
    now[0] = 61_000
    assert registry.get(busy.id) is busy
    with pytest.raises(SessionNotFound):
        registry.get(stale.id)
    assert len(registry) == 1
