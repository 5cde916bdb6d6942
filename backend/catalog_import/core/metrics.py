"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

IMPORT_RUNS = Counter(
    "catimp_import_runs_total",
    "Import runs by policy and final status",
    labelnames=("policy", "status"),
    registry=REGISTRY,
)

FILES_IMPORTED = Counter(
    "catimp_files_imported_total",
    "Files written to the catalog by import runs",
    registry=REGISTRY,
)

IMPORT_DURATION = Histogram(
    "catimp_import_duration_seconds",
    "Duration of the importing phase",
    labelnames=("policy",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "IMPORT_RUNS",
    "FILES_IMPORTED",
    "IMPORT_DURATION",
    "metrics_response",
]
