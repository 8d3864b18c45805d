"""Tests for the progress-reporting tree copy."""

import stat
from pathlib import Path

import pytest

from cargoci.docs.copy import copy_entries, tree_size


@pytest.fixture
def doc_tree(tmp_path: Path) -> Path:
    root = tmp_path / "doc"
    (root / "foo" / "struct").mkdir(parents=True)
    (root / "foo" / "index.html").write_text("<h1>foo</h1>")
    (root / "foo" / "struct" / "Bar.html").write_text("<h1>Bar</h1>")
    (root / "search-index.js").write_text("var x = 1;")
    script = root / "run.sh"
    script.write_text("#!/bin/sh\n")
    script.chmod(0o755)
    return root


def test_tree_size(doc_tree: Path) -> None:
    expected = len("<h1>foo</h1>") + len("<h1>Bar</h1>") + len("var x = 1;") + len("#!/bin/sh\n")
    assert tree_size(doc_tree.iterdir()) == expected


def test_copies_everything(doc_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "out"
    dest.mkdir()

    copied = copy_entries(doc_tree.iterdir(), dest)

    assert copied == tree_size(doc_tree.iterdir())
    assert (dest / "foo" / "struct" / "Bar.html").read_text() == "<h1>Bar</h1>"
    assert (dest / "search-index.js").read_text() == "var x = 1;"
    assert (dest / "run.sh").stat().st_mode & stat.S_IXUSR


def test_overwrites_existing_files(doc_tree: Path, tmp_path: Path) -> None:
    dest = tmp_path / "out"
    (dest / "foo").mkdir(parents=True)
    (dest / "foo" / "index.html").write_text("stale content that is longer")
    (dest / "foo" / "keep.txt").write_text("untouched")

    copy_entries(doc_tree.iterdir(), dest)

    assert (dest / "foo" / "index.html").read_text() == "<h1>foo</h1>"
    assert (dest / "foo" / "keep.txt").read_text() == "untouched"


def test_reports_each_mib(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "big.bin"
    src.write_bytes(b"\0" * (3 * 1024 * 1024 + 10))
    dest = tmp_path / "out"
    dest.mkdir()

    copy_entries([src], dest)

    err = capsys.readouterr().err
    assert "1/3 MiB" in err
    assert "3/3 MiB" in err
