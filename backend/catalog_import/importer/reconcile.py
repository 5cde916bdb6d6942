"""Reconciliation of an import forest against the persisted catalog.

Planning is pure: it reads a ``CatalogSnapshot`` and returns an ordered list
of steps, one per forest node (plus the pre-clear deletes of the ``replace``
policy). Applying the steps is the coordinator's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Sequence, Union

from catalog_import.catalog.snapshot import CatalogSnapshot
from catalog_import.core.logging import get_logger
from catalog_import.importer.naming import NameNormalizer, default_normalizer
from catalog_import.importer.types import (
    Forest,
    HierarchyLevel,
    ImportFile,
    ImportNode,
    ImportPolicy,
    NodeLevel,
    ReconciliationCounters,
)
from catalog_import.models.entities import CatalogEntity

logger = get_logger(__name__)

StepOutcome = Literal["created", "matched", "merged", "replaced", "deleted", "error", "skipped"]


@dataclass(frozen=True, slots=True)
class ScopeRef:
    """Parent scope: an existing catalog entity or a node created earlier in the plan."""

    entity_id: str | None = None
    node_id: str | None = None


@dataclass(frozen=True, slots=True)
class CreateEntity:
    node_id: str
    level: HierarchyLevel
    name: str
    parent: ScopeRef | None


@dataclass(frozen=True, slots=True)
class PutFile:
    node_id: str
    heading: ScopeRef
    file: ImportFile
    title: str
    replace: bool


@dataclass(frozen=True, slots=True)
class DeleteScope:
    entity_id: str
    level: HierarchyLevel
    name: str


CatalogOperation = Union[CreateEntity, PutFile, DeleteScope]


@dataclass(frozen=True, slots=True)
class PlanStep:
    label: str
    level: NodeLevel
    outcome: StepOutcome
    operation: CatalogOperation | None = None
    warning: str | None = None


@dataclass(slots=True)
class ReconciliationPlan:
    policy: ImportPolicy
    steps: list[PlanStep] = field(default_factory=list)
    counters: ReconciliationCounters = field(default_factory=ReconciliationCounters)
    warnings: list[str] = field(default_factory=list)

    @property
    def operations(self) -> list[CatalogOperation]:
        """Catalog writes in application order; always empty for previews."""
        if self.policy == ImportPolicy.PREVIEW:
            return []
        return [step.operation for step in self.steps if step.operation is not None]


def tally(counters: ReconciliationCounters, step: PlanStep, warnings: list[str]) -> None:
    """Fold one step's outcome into the counters and warning list."""
    if step.warning:
        warnings.append(step.warning)
    if step.level == "file":
        files = counters.files
        if step.outcome == "created":
            files.created += 1
            files.imported += 1
        elif step.outcome == "replaced":
            files.replaced += 1
            files.imported += 1
        elif step.outcome == "error":
            files.errors += 1
        return
    if step.outcome == "created":
        counters.level(step.level).created += 1
    elif step.outcome == "matched":
        counters.level(step.level).matched += 1


class Reconciler:
    """Walks the forest depth-first and decides create, reuse or replace per node."""

    def __init__(
        self,
        snapshot: CatalogSnapshot,
        policy: ImportPolicy,
        normalizer: NameNormalizer | None = None,
        max_file_bytes: int | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.policy = ImportPolicy(policy)
        self.normalize = normalizer or default_normalizer
        self.max_file_bytes = max_file_bytes
        # Scopes already planned, per parent: normalized name -> (scope, exists in catalog).
        self._planned: dict[ScopeRef | None, dict[str, tuple[ScopeRef, bool]]] = {}
        self._seen_files: dict[ScopeRef, set[str]] = {}

    def plan(self, forest: Forest | Sequence[ImportNode]) -> ReconciliationPlan:
        plan = ReconciliationPlan(policy=self.policy)
        self._planned = {}
        self._seen_files = {}
        searchable = self.policy != ImportPolicy.REPLACE
        if not searchable:
            plan.steps.extend(self._pre_clear(forest))
        for stage in forest:
            self._visit(plan, stage, None, searchable)
        for step in plan.steps:
            tally(plan.counters, step, plan.warnings)
        logger.debug("Planned %s steps under %s policy", len(plan.steps), self.policy.value)
        return plan

    def _pre_clear(self, forest: Sequence[ImportNode]) -> list[PlanStep]:
        steps: list[PlanStep] = []
        cleared: set[str] = set()
        for stage in forest:
            wanted = self.normalize(stage.name)
            for existing in self.snapshot.children("stage", None):
                if existing.id in cleared or self.normalize(existing.name) != wanted:
                    continue
                cleared.add(existing.id)
                steps.append(
                    PlanStep(
                        label=existing.name,
                        level="stage",
                        outcome="deleted",
                        operation=DeleteScope(entity_id=existing.id, level="stage", name=existing.name),
                    )
                )
        return steps

    def _visit(
        self,
        plan: ReconciliationPlan,
        node: ImportNode,
        parent: ScopeRef | None,
        searchable: bool,
    ) -> None:
        if node.is_file:
            plan.steps.append(self._file_step(node, parent, searchable))
            return

        level: HierarchyLevel = node.level  # type: ignore[assignment]
        siblings = self._planned.setdefault(parent, {})
        key = self.normalize(node.name)
        if key in siblings:
            # same scope as an earlier sibling of this import, e.g. "Sportif" after "P.SPORTIF"
            scope, in_catalog = siblings[key]
            plan.steps.append(PlanStep(label=node.name, level=level, outcome="merged"))
        else:
            existing = self._match(level, node.name, parent) if searchable else None
            in_catalog = existing is not None
            if existing is not None:
                plan.steps.append(PlanStep(label=node.name, level=level, outcome="matched"))
                scope = ScopeRef(entity_id=existing.id)
            else:
                operation = CreateEntity(node_id=node.id, level=level, name=node.name, parent=parent)
                plan.steps.append(PlanStep(label=node.name, level=level, outcome="created", operation=operation))
                scope = ScopeRef(node_id=node.id)
            siblings[key] = (scope, in_catalog)

        for child in node.children:
            self._visit(plan, child, scope, in_catalog)

    def _match(self, level: HierarchyLevel, name: str, parent: ScopeRef | None) -> CatalogEntity | None:
        parent_id = parent.entity_id if parent is not None else None
        if parent is not None and parent_id is None:
            return None
        wanted = self.normalize(name)
        for candidate in self.snapshot.children(level, parent_id):
            if self.normalize(candidate.name) == wanted:
                return candidate
        return None

    def _file_step(
        self,
        node: ImportNode,
        heading: ScopeRef | None,
        searchable: bool,
    ) -> PlanStep:
        import_file = node.file
        if import_file is None or heading is None:
            raise ValueError(f"File node {node.id} has no file or no parent heading")
        label = import_file.path
        key = import_file.name.casefold()
        seen_files = self._seen_files.setdefault(heading, set())
        if key in seen_files:
            return PlanStep(
                label=label,
                level="file",
                outcome="skipped",
                warning=f"{label}: duplicate file name {import_file.name!r} in this import, skipped",
            )
        seen_files.add(key)

        if import_file.read_error is not None or import_file.payload is None:
            reason = import_file.read_error or "no content"
            return PlanStep(label=label, level="file", outcome="error", warning=f"{label}: unreadable ({reason})")
        if self.max_file_bytes is not None and import_file.size_bytes > self.max_file_bytes:
            return PlanStep(
                label=label,
                level="file",
                outcome="error",
                warning=f"{label}: too large ({import_file.size_bytes} bytes > {self.max_file_bytes})",
            )

        replaces = False
        if searchable and heading.entity_id is not None:
            replaces = any(item.name.casefold() == key for item in self.snapshot.files_of(heading.entity_id))
        operation = PutFile(node_id=node.id, heading=heading, file=import_file, title=node.name, replace=replaces)
        return PlanStep(label=label, level="file", outcome="replaced" if replaces else "created", operation=operation)


def reconcile(
    forest: Forest | Sequence[ImportNode],
    policy: ImportPolicy | str,
    snapshot: CatalogSnapshot,
    *,
    normalizer: NameNormalizer | None = None,
    max_file_bytes: int | None = None,
) -> ReconciliationPlan:
    """Plan catalog operations for ``forest`` under ``policy``."""
    reconciler = Reconciler(snapshot, ImportPolicy(policy), normalizer=normalizer, max_file_bytes=max_file_bytes)
    return reconciler.plan(forest)


__all__ = [
    "ScopeRef",
    "CreateEntity",
    "PutFile",
    "DeleteScope",
    "CatalogOperation",
    "PlanStep",
    "ReconciliationPlan",
    "Reconciler",
    "reconcile",
    "tally",
]
