"""Name normalization used for matching and for display aliases."""

from __future__ import annotations

import re
from typing import Callable, Iterable, Mapping

from catalog_import.utils.text import normalize

NameNormalizer = Callable[[str], str]


def prefix_collapsing_normalizer(prefixes: Iterable[str] = ("P.",)) -> NameNormalizer:
    """Build a case-insensitive normalizer that drops repeated leading prefixes.

    With the default ``P.`` prefix, ``"Sportif"``, ``"P.SPORTIF"`` and
    ``"p.P. sportif"`` all normalize to ``"SPORTIF"``.
    """
    tokens = [re.escape(prefix.strip()) for prefix in prefixes if prefix.strip()]
    pattern = re.compile(rf"^(?:(?:{'|'.join(tokens)})\s*)+", re.IGNORECASE) if tokens else None

    def _normalize(name: str) -> str:
        base = normalize(name)
        if pattern is not None:
            stripped = pattern.sub("", base).strip()
            # a name made only of prefixes keeps its text
            base = stripped or base
        return base.upper()

    return _normalize


default_normalizer: NameNormalizer = prefix_collapsing_normalizer()


def apply_alias(name: str, aliases: Mapping[str, str]) -> str:
    """Return the configured display alias for ``name`` or ``name`` itself."""
    return aliases.get(normalize(name).lower(), normalize(name))


__all__ = ["NameNormalizer", "prefix_collapsing_normalizer", "default_normalizer", "apply_alias"]
