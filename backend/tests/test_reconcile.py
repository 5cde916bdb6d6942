"""Tests for reconciliation planning."""

from __future__ import annotations

from catalog_import.catalog.snapshot import CatalogSnapshot
from catalog_import.importer.builder import TreeBuilder
from catalog_import.importer.editor import rename
from catalog_import.importer.naming import default_normalizer, prefix_collapsing_normalizer
from catalog_import.importer.reconcile import CreateEntity, DeleteScope, PutFile, reconcile
from catalog_import.importer.types import ImportPolicy
from catalog_import.models.entities import CatalogEntity, CatalogFile


def _entity(entity_id: str, level: str, parent_id: str | None, name: str) -> CatalogEntity:
    return CatalogEntity(id=entity_id, level=level, parent_id=parent_id, name=name, created_at=0, updated_at=0)


def _catalog() -> CatalogSnapshot:
    snapshot = CatalogSnapshot()
    snapshot.add(_entity("stg_1", "stage", None, "CAT1"))
    snapshot.add(_entity("typ_1", "courseType", "stg_1", "P.SPORTIF"))
    snapshot.add(_entity("lec_1", "lecon", "typ_1", "Basketball"))
    snapshot.add(_entity("hdg_1", "heading", "lec_1", "Techniques"))
    snapshot.files["hdg_1"] = [
        CatalogFile(
            id="fil_1",
            heading_id="hdg_1",
            name="BASES.pptx",
            title="bases",
            kind="ppt",
            size_bytes=3,
            sha256="",
            created_at=0,
            updated_at=0,
        )
    ]
    return snapshot


def _forest(*paths: str, payload: bytes = b"data"):
    builder = TreeBuilder()
    for path in paths:
        builder.add_file(path, payload=payload)
    return builder.result().forest


def test_prefix_normalizer_collapses_repeated_prefixes() -> None:
    assert default_normalizer("Sportif") == default_normalizer("P.SPORTIF") == "SPORTIF"
    assert default_normalizer("p.P. sportif") == "SPORTIF"
    assert default_normalizer("P.") == "P."
    custom = prefix_collapsing_normalizer(["CAT-"])
    assert custom("cat-cat-Judo") == "JUDO"
    assert custom("P.Judo") == "P.JUDO"


def test_merge_matches_existing_scopes_and_replaces_files() -> None:
    forest = _forest(
        "CAT1/Sportif/Basketball/Techniques/bases.pptx",
        "CAT1/Sportif/Basketball/Techniques/new.pdf",
    )
    plan = reconcile(forest, ImportPolicy.MERGE, _catalog())
    counters = plan.counters
    assert counters.stages.to_dict() == {"created": 0, "matched": 1}
    assert counters.types.to_dict() == {"created": 0, "matched": 1}
    assert counters.lecons.matched == 1
    assert counters.headings.matched == 1
    assert counters.files.to_dict() == {"created": 1, "replaced": 1, "imported": 2, "errors": 0}

    operations = plan.operations
    assert [type(op) for op in operations] == [PutFile, PutFile]
    assert operations[0].replace is True and operations[0].heading.entity_id == "hdg_1"
    assert operations[1].replace is False


def test_new_scopes_are_created_with_forward_references() -> None:
    forest = _forest("CAT2/P.MILITAIRE/Combat/Videos/demo.mp4")
    plan = reconcile(forest, "merge", _catalog())
    creates = [op for op in plan.operations if isinstance(op, CreateEntity)]
    assert [op.level for op in creates] == ["stage", "courseType", "lecon", "heading"]
    assert creates[0].parent is None
    for parent, child in zip(creates, creates[1:]):
        assert child.parent.node_id == parent.node_id
        assert child.parent.entity_id is None
    put = plan.operations[-1]
    assert isinstance(put, PutFile) and put.heading.node_id == creates[-1].node_id
    assert plan.counters.stages.created == 1
    assert plan.counters.files.created == 1


def test_match_is_scoped_to_parent() -> None:
    # Basketball exists under P.SPORTIF only.
    forest = _forest("CAT1/P.MILITAIRE/Basketball/Techniques/a.pdf")
    plan = reconcile(forest, "merge", _catalog())
    assert plan.counters.stages.matched == 1
    assert plan.counters.types.created == 1
    assert plan.counters.lecons.to_dict() == {"created": 1, "matched": 0}


def test_preview_counts_without_operations() -> None:
    forest = _forest("CAT1/Sportif/Basketball/Techniques/bases.pptx")
    plan = reconcile(forest, ImportPolicy.PREVIEW, _catalog())
    assert plan.operations == []
    assert plan.counters.files.replaced == 1
    assert plan.counters.stages.matched == 1


def test_replace_clears_matching_stage_and_creates_everything() -> None:
    snapshot = _catalog()
    snapshot.add(_entity("stg_2", "stage", None, "CAT2"))
    forest = _forest("cat1/Sportif/Basketball/Techniques/bases.pptx")
    plan = reconcile(forest, ImportPolicy.REPLACE, snapshot)
    operations = plan.operations
    assert isinstance(operations[0], DeleteScope) and operations[0].entity_id == "stg_1"
    assert not any(isinstance(op, DeleteScope) for op in operations[1:])
    assert plan.counters.stages.to_dict() == {"created": 1, "matched": 0}
    assert plan.counters.headings.to_dict() == {"created": 1, "matched": 0}
    assert plan.counters.files.to_dict() == {"created": 1, "replaced": 0, "imported": 1, "errors": 0}


def test_file_errors_do_not_abort_the_plan() -> None:
    builder = TreeBuilder()
    builder.add_file("S/T/L/H/big.mp4", payload=b"x" * 20)
    builder.add_file("S/T/L/H/broken.pdf", read_error="permission denied")
    builder.add_file("S/T/L/H/ok.pdf", payload=b"ok")
    plan = reconcile(builder.result().forest, "merge", CatalogSnapshot(), max_file_bytes=10)
    assert plan.counters.files.to_dict() == {"created": 1, "replaced": 0, "imported": 1, "errors": 2}
    assert any("big.mp4" in w and "too large" in w for w in plan.warnings)
    assert any("broken.pdf" in w and "permission denied" in w for w in plan.warnings)
    assert plan.counters.headings.created == 1


def test_duplicate_file_names_in_one_heading_keep_the_first() -> None:
    builder = TreeBuilder()
    builder.add_file("S/T/L/H/a/doc.pdf", payload=b"first")
    builder.add_file("S/T/L/H/b/DOC.pdf", payload=b"second")
    plan = reconcile(builder.result().forest, "merge", CatalogSnapshot())
    puts = [op for op in plan.operations if isinstance(op, PutFile)]
    assert [op.file.payload for op in puts] == [b"first"]
    assert plan.counters.files.errors == 0
    assert any("duplicate" in w for w in plan.warnings)


def test_renamed_node_is_matched_by_new_name() -> None:
    forest = _forest("Stage X/P.SPORTIF/Basketball/Techniques/n.pdf")
    forest = rename(forest, forest[0].id, "cat1")
    plan = reconcile(forest, "merge", _catalog())
    assert plan.counters.stages.matched == 1


def test_plans_are_deterministic() -> None:
    forest = _forest("A/T/L/H/1.pdf", "A/T/L/H/2.pdf", "B/T/L/H/3.pdf")
    first = reconcile(forest, "merge", _catalog())
    second = reconcile(forest, "merge", _catalog())
    assert first.operations == second.operations
    assert first.counters == second.counters


def test_prefix_variant_siblings_are_planned_once() -> None:
    forest = _forest("CAT1/P.JUDO/Kata/H/a.pdf", "CAT1/Judo/Randori/H/b.pdf")
    assert [node.name for node in forest[0].children] == ["P.JUDO", "Judo"]

    plan = reconcile(forest, "merge", CatalogSnapshot())
    types = [op for op in plan.operations if isinstance(op, CreateEntity) and op.level == "courseType"]
    assert len(types) == 1
    lecons = [op for op in plan.operations if isinstance(op, CreateEntity) and op.level == "lecon"]
    assert {op.parent.node_id for op in lecons} == {types[0].node_id}
    assert plan.counters.types.to_dict() == {"created": 1, "matched": 0}


def test_duplicate_check_uses_full_case_folding() -> None:
    builder = TreeBuilder()
    builder.add_file("S/T/L/H/a/Straße.pdf", payload=b"first")
    builder.add_file("S/T/L/H/b/STRASSE.pdf", payload=b"second")
    plan = reconcile(builder.result().forest, "merge", CatalogSnapshot())
    puts = [op for op in plan.operations if isinstance(op, PutFile)]
    assert [op.file.payload for op in puts] == [b"first"]
