"""Tests for path classification."""

import pytest

from catalog_import.core.errors import MalformedInputError
from catalog_import.importer.classifier import classify, file_kind, is_supported, split_path


@pytest.mark.parametrize(
    ("path", "level"),
    [
        ("CAT1", "stage"),
        ("CAT1/P.SPORTIF", "courseType"),
        ("CAT1/P.SPORTIF/Basketball", "lecon"),
        ("CAT1/P.SPORTIF/Basketball/Techniques", "heading"),
    ],
)
def test_directory_level_follows_depth(path: str, level: str) -> None:
    assert classify(path, is_directory=True).level == level


def test_deep_directories_fold_into_heading() -> None:
    result = classify("A/B/C/D/E/F", is_directory=True)
    assert result.level == "heading"
    assert result.folded is True


def test_files_are_files_at_any_depth() -> None:
    assert classify("notes.pdf").level == "file"
    shallow = classify("StageA/file.pdf")
    assert shallow.level == "file"
    assert shallow.depth == 1
    assert shallow.directories == ("StageA",)
    assert classify("A/B/C/D/E/deep.mp4").kind == "video"


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("slides.PPTX", "ppt"),
        ("old.ppt", "ppt"),
        ("cours.docx", "word"),
        ("cours.DOC", "word"),
        ("regles.pdf", "pdf"),
        ("match.mkv", "video"),
        ("clip.m4v", "video"),
        ("photo.jpg", "unknown"),
        ("README", "unknown"),
    ],
)
def test_file_kind_from_extension(name: str, kind: str) -> None:
    assert file_kind(name) == kind


def test_is_supported() -> None:
    assert is_supported("a.pdf")
    assert not is_supported("a.txt")


def test_split_path_accepts_both_separators() -> None:
    assert split_path("A\\B//C/./d.pdf") == ("A", "B", "C", "d.pdf")


@pytest.mark.parametrize("path", ["", "/", "  ", "./"])
def test_empty_paths_are_malformed(path: str) -> None:
    with pytest.raises(MalformedInputError):
        classify(path)
