"""Catalog and administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalog_import.api.dependencies import get_catalog_store
from catalog_import.catalog.snapshot import CatalogSnapshot
from catalog_import.catalog.store import SQLiteCatalogStore
from catalog_import.core.metrics import metrics_response
from catalog_import.models.dto import CatalogResponse

router = APIRouter()


@router.get("/catalog", response_model=CatalogResponse, summary="Current catalog tree")
async def get_catalog(store: SQLiteCatalogStore = Depends(get_catalog_store)) -> CatalogResponse:
    snapshot = await CatalogSnapshot.capture(store)
    return CatalogResponse(stages=snapshot.to_tree())


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
