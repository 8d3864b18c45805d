"""Tree copy with byte-level progress reporting.

Rustdoc output for a crate with many dependencies easily runs into hundreds
of MiB, so the copy reports progress as it goes instead of going silent.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

import structlog

from cargoci.core.progress import ByteProgress, byte_progress

log = structlog.get_logger()

CHUNK_SIZE = 1 << 16


def tree_size(paths: Iterable[Path]) -> int:
    """Total size in bytes of the regular files under ``paths``."""
    total = 0
    for path in paths:
        if path.is_file():
            total += path.stat().st_size
        elif path.is_dir():
            for root, _dirs, files in os.walk(path):
                total += sum((Path(root) / name).stat().st_size for name in files)
    return total


def _copy_file(src: Path, dst: Path, progress: ByteProgress) -> None:
    with src.open("rb") as fin, dst.open("wb") as fout:
        while chunk := fin.read(CHUNK_SIZE):
            fout.write(chunk)
            progress.advance(len(chunk))
    shutil.copymode(src, dst)


def _copy_tree(src: Path, dst: Path, progress: ByteProgress) -> None:
    dst.mkdir(parents=True, exist_ok=True)
    for child in sorted(src.iterdir()):
        target = dst / child.name
        if child.is_dir():
            _copy_tree(child, target, progress)
        else:
            _copy_file(child, target, progress)


def copy_entries(entries: Iterable[Path], destination: Path) -> int:
    """Copy files and directories into ``destination``, overwriting. Returns bytes copied."""
    sources = sorted(entries)
    total = tree_size(sources)
    log.debug("copy_start", entries=len(sources), bytes=total, destination=str(destination))

    with byte_progress(total, desc="Copying docs") as progress:
        for src in sources:
            target = destination / src.name
            if src.is_dir():
                _copy_tree(src, target, progress)
            else:
                _copy_file(src, target, progress)
        return progress.copied
