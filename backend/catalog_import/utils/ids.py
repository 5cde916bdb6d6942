"""Identifier and digest helpers."""

from __future__ import annotations

import hashlib
import uuid


def new_id(prefix: str) -> str:
    """Random identifier such as ``stg_3f2a...``; the prefix names the record kind."""
    return f"{prefix}_{uuid.uuid4().hex}"


def payload_digest(payload: bytes) -> str:
    """Hex sha256 stored alongside each catalog file."""
    return hashlib.sha256(payload).hexdigest()
