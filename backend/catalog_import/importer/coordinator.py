"""Import orchestration: parsing and importing phases, progress and reports."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Sequence

from catalog_import.catalog.snapshot import CatalogSnapshot
from catalog_import.catalog.store import CatalogStore
from catalog_import.core.config import Settings
from catalog_import.core.errors import RunInProgress
from catalog_import.core.logging import get_logger, run_logger
from catalog_import.core.metrics import FILES_IMPORTED, IMPORT_DURATION, IMPORT_RUNS
from catalog_import.importer.builder import build
from catalog_import.importer.naming import NameNormalizer, prefix_collapsing_normalizer
from catalog_import.importer.reconcile import (
    CatalogOperation,
    CreateEntity,
    DeleteScope,
    PutFile,
    ReconciliationPlan,
    ScopeRef,
    reconcile,
    tally,
)
from catalog_import.importer.types import (
    BuildResult,
    CancellationToken,
    Forest,
    ImportPolicy,
    ImportProgress,
    ImportReport,
    ProgressCallback,
    RawEntry,
    ReconciliationCounters,
)
from catalog_import.utils.ids import new_id
from catalog_import.utils.time import elapsed_ms

logger = get_logger(__name__)


class ImportCoordinator:
    """Runs one import at a time against a catalog store.

    ``parse`` covers the parsing phase, ``commit`` the importing phase and
    ``run`` chains both. Progress is reported after every unit of work and the
    cancellation token is checked between units.
    """

    def __init__(
        self,
        store: CatalogStore,
        settings: Settings | None = None,
        normalizer: NameNormalizer | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.normalizer = normalizer or prefix_collapsing_normalizer(self.settings.collapsible_prefixes)
        self._active_run: str | None = None

    @property
    def running(self) -> bool:
        return self._active_run is not None

    async def parse(
        self,
        entries: Sequence[RawEntry],
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> BuildResult:
        with self._exclusive(new_id("parse")):
            return await build(entries, self.settings, on_progress=on_progress, cancel=cancel)

    async def commit(
        self,
        forest: Forest,
        policy: ImportPolicy | str,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
        warnings: Sequence[str] = (),
    ) -> ImportReport:
        run_id = new_id("run")
        with self._exclusive(run_id):
            return await self._commit(run_id, forest, ImportPolicy(policy), on_progress, cancel, list(warnings))

    async def run(
        self,
        entries: Sequence[RawEntry],
        policy: ImportPolicy | str,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> ImportReport:
        run_id = new_id("run")
        policy = ImportPolicy(policy)
        with self._exclusive(run_id):
            started = time.perf_counter()
            parsed = await build(entries, self.settings, on_progress=on_progress, cancel=cancel)
            if parsed.incomplete:
                return self._finish(run_id, policy, ReconciliationCounters(), parsed.warnings, started, incomplete=True)
            return await self._commit(run_id, parsed.forest, policy, on_progress, cancel, list(parsed.warnings))

    async def plan(self, forest: Forest, policy: ImportPolicy | str) -> ReconciliationPlan:
        """Reconcile against a fresh snapshot without writing anything."""
        snapshot = await CatalogSnapshot.capture(self.store)
        return reconcile(
            forest,
            policy,
            snapshot,
            normalizer=self.normalizer,
            max_file_bytes=self.settings.max_file_bytes,
        )

    # Internal helpers -------------------------------------------------

    @contextmanager
    def _exclusive(self, run_id: str) -> Iterator[None]:
        if self._active_run is not None:
            raise RunInProgress(self._active_run)
        self._active_run = run_id
        try:
            yield
        finally:
            self._active_run = None

    async def _commit(
        self,
        run_id: str,
        forest: Forest,
        policy: ImportPolicy,
        on_progress: ProgressCallback | None,
        cancel: CancellationToken | None,
        warnings: list[str],
    ) -> ImportReport:
        started = time.perf_counter()
        log = run_logger(logger, run_id, policy.value)
        try:
            plan = await self.plan(forest, policy)
            if policy == ImportPolicy.PREVIEW:
                warnings.extend(plan.warnings)
                return self._finish(run_id, policy, plan.counters, warnings, started)

            counters = ReconciliationCounters()
            created_ids: dict[str, str] = {}
            total = len(plan.steps)
            log.info("Importing %s steps", total)
            for processed, step in enumerate(plan.steps, start=1):
                if cancel is not None and cancel.cancelled:
                    log.info("Import cancelled after %s of %s steps", processed - 1, total)
                    return self._finish(run_id, policy, counters, warnings, started, incomplete=True)
                if step.operation is not None:
                    await self._apply(step.operation, created_ids)
                tally(counters, step, warnings)
                if on_progress is not None:
                    on_progress(ImportProgress("importing", processed, total, step.label))
            return self._finish(run_id, policy, counters, warnings, started)
        except Exception as exc:
            log.exception("Import run failed: %s", exc)
            IMPORT_RUNS.labels(policy=policy.value, status="failed").inc()
            raise

    async def _apply(self, operation: CatalogOperation, created_ids: dict[str, str]) -> None:
        if isinstance(operation, DeleteScope):
            await self.store.delete_scope(operation.entity_id)
        elif isinstance(operation, CreateEntity):
            parent_id = _resolve(operation.parent, created_ids) if operation.parent is not None else None
            if operation.level == "stage":
                entity_id = await self.store.create_stage(operation.name)
            elif operation.level == "courseType":
                entity_id = await self.store.create_course_type(parent_id, operation.name)
            elif operation.level == "lecon":
                entity_id = await self.store.create_lecon(parent_id, operation.name)
            else:
                entity_id = await self.store.create_heading(parent_id, operation.name)
            created_ids[operation.node_id] = entity_id
        elif isinstance(operation, PutFile):
            heading_id = _resolve(operation.heading, created_ids)
            await self.store.put_file(heading_id, operation.file, operation.title)
            FILES_IMPORTED.inc()

    def _finish(
        self,
        run_id: str,
        policy: ImportPolicy,
        counters: ReconciliationCounters,
        warnings: Sequence[str],
        started: float,
        incomplete: bool = False,
    ) -> ImportReport:
        duration_ms = elapsed_ms(started)
        status = "cancelled" if incomplete else "completed"
        IMPORT_RUNS.labels(policy=policy.value, status=status).inc()
        IMPORT_DURATION.labels(policy=policy.value).observe(duration_ms / 1000)
        run_logger(logger, run_id, policy.value).info(
            "Import %s: %s files imported, %s errors",
            status,
            counters.files.imported,
            counters.files.errors,
            extra={"ctx_duration_ms": duration_ms},
        )
        return ImportReport(
            run_id=run_id,
            policy=policy,
            counters=counters,
            warnings=tuple(warnings),
            duration_ms=duration_ms,
            incomplete=incomplete,
        )


def _resolve(scope: ScopeRef, created_ids: dict[str, str]) -> str:
    if scope.entity_id is not None:
        return scope.entity_id
    if scope.node_id is None or scope.node_id not in created_ids:
        raise LookupError(f"Parent node {scope.node_id} was not created before its children")
    return created_ids[scope.node_id]


__all__ = ["ImportCoordinator"]
