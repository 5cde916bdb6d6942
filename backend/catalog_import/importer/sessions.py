"""Interactive import sessions kept between preview and commit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from catalog_import.core.errors import SessionNotFound
from catalog_import.core.logging import get_logger
from catalog_import.importer import editor
from catalog_import.importer.types import BuildResult, Forest
from catalog_import.utils.ids import new_id
from catalog_import.utils.time import now_ms

logger = get_logger(__name__)

EditAction = Callable[[Forest, str | None, str | None], Forest]

_EDITS: dict[str, EditAction] = {
    "toggle": lambda forest, node_id, _name: editor.toggle_expand(forest, node_id or ""),
    "rename": lambda forest, node_id, name: editor.rename(forest, node_id or "", name or ""),
    "delete": lambda forest, node_id, _name: editor.delete(forest, node_id or ""),
    "select": lambda forest, node_id, _name: editor.select(forest, node_id or ""),
    "expand_all": lambda forest, _node_id, _name: editor.expand_all(forest),
    "collapse_all": lambda forest, _node_id, _name: editor.collapse_all(forest),
}

EDIT_ACTIONS = tuple(_EDITS)


@dataclass(slots=True)
class ImportSession:
    id: str
    forest: Forest
    warnings: list[str] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)
    last_used_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "tree": [node.to_dict() for node in self.forest],
            "stats": editor.forest_stats(self.forest).to_dict(),
            "warnings": list(self.warnings),
        }


class ImportSessionRegistry:
    """Parsed forests awaiting user edits and a commit decision.

    A session holds every file payload of its forest, so sessions left idle
    for longer than ``ttl_seconds`` are dropped on the next ``open`` or ``get``.
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], int] = now_ms) -> None:
        self.ttl_ms = ttl_seconds * 1000
        self._clock = clock
        self._sessions: dict[str, ImportSession] = {}

    def open(self, result: BuildResult) -> ImportSession:
        self._evict_expired()
        now = self._clock()
        session = ImportSession(
            id=new_id("ses"),
            forest=result.forest,
            warnings=list(result.warnings),
            created_at=now,
            last_used_at=now,
        )
        self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> ImportSession:
        self._evict_expired()
        try:
            session = self._sessions[session_id]
        except KeyError:
            raise SessionNotFound(session_id) from None
        session.last_used_at = self._clock()
        return session

    def apply_edit(
        self,
        session_id: str,
        action: str,
        node_id: str | None = None,
        name: str | None = None,
    ) -> ImportSession:
        session = self.get(session_id)
        edit = _EDITS.get(action)
        if edit is None:
            raise ValueError(f"Unknown edit action {action!r}")
        session.forest = edit(session.forest, node_id, name)
        return session

    def close(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFound(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_expired(self) -> None:
        cutoff = self._clock() - self.ttl_ms
        expired = [session_id for session_id, session in self._sessions.items() if session.last_used_at < cutoff]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("Dropped %s idle import sessions", len(expired))


__all__ = ["EDIT_ACTIONS", "ImportSession", "ImportSessionRegistry"]
