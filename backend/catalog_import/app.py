"""FastAPI application for folder imports into the catalog."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_import.api import dependencies
from catalog_import.api.routes_catalog import router as catalog_router
from catalog_import.api.routes_imports import router as imports_router
from catalog_import.core.logging import configure_logging, get_logger

configure_logging(use_json=dependencies.get_app_settings().log_json)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    # Open the catalog and build the coordinator before the first request.
    coordinator = dependencies.get_coordinator()
    dependencies.get_session_registry()
    logger.info("Catalog ready at %s", coordinator.settings.db_path)
    yield
    dependencies.close_database()


app = FastAPI(title="Catalog Import", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://127.0.0.1:5173", "http://localhost:5173"],
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(imports_router, prefix="/imports", tags=["imports"])
app.include_router(catalog_router, tags=["catalog"])


@app.get("/health", tags=["admin"])
def health() -> dict[str, object]:
    """Liveness plus whether an import run is active."""
    return {"ok": True, "importing": dependencies.get_coordinator().running}
