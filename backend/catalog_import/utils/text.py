"""Text processing helpers."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def grouping_key(name: str) -> str:
    """Key used to merge sibling folders that only differ by case or padding."""
    return normalize(name).casefold()
