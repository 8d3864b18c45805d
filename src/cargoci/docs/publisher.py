"""Publish generated documentation to a branch of the project's repository.

Strict order for one publish:

1. open the working copy, cloning the deploy branch or starting it fresh
2. resolve the publish sub-path and check it stays inside the working copy
3. clear the sub-path, keeping a root ``index.html`` redirect page
4. read the project version for the badge
5. copy the documentation tree in
6. write ``badge.json`` and ``badge.svg``
7. stage everything, commit and push

An unreadable documentation directory does not stop the publish: the badge
still goes out saying ``no builds`` and the error is raised at the end.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from cargoci.core.errors import MetadataError, ValidationError
from cargoci.core.progress import shell_status
from cargoci.docs.badge import Badge
from cargoci.docs.copy import copy_entries
from cargoci.git import NothingToCommitError, PublishCallbacks, WorkingCopy
from cargoci.project import read_package_version

log = structlog.get_logger()

DEFAULT_MESSAGE = "Automatic Travis documentation build"
DEFAULT_WORKING_COPY = Path("target/doc-upload")
INDEX_HTML = "index.html"
GIT_DIR = ".git"


@dataclass(frozen=True)
class PublishRequest:
    """Configuration for one documentation publish."""

    origin: str
    doc_dir: Path
    project_dir: Path = field(default_factory=Path.cwd)
    message: str = DEFAULT_MESSAGE
    deploy_branch: str = "gh-pages"
    path: str = ""
    clobber_index: bool = False
    working_copy: Path = DEFAULT_WORKING_COPY
    author_name: str = "cargo-ci"
    author_email: str = "cargo-ci@localhost"
    shallow: bool = True


@dataclass
class PublishResult:
    """What a publish produced."""

    badge: Badge
    docs_found: bool
    commit: str | None = None
    pushed: bool = False
    bytes_copied: int = 0

    @property
    def nothing_to_publish(self) -> bool:
        return self.commit is None


def resolve_publish_dir(working_copy: Path, sub_path: str) -> Path:
    """Canonical ``<working copy>/<sub_path>``.

    Raises:
        ValidationError: the path resolves outside the working copy.
    """
    root = working_copy.resolve()
    target = (root / sub_path).resolve()
    if not target.is_relative_to(root):
        raise ValidationError.path_escape(sub_path, str(root))
    return target


def clear_directory(directory: Path, *, keep_index: bool, is_root: bool) -> list[Path]:
    """Remove every entry of ``directory``. Returns what was removed.

    ``index.html`` survives when ``keep_index`` is set; ``.git`` always
    survives at the working-copy root.
    """
    removed: list[Path] = []
    for entry in sorted(directory.iterdir()):
        if keep_index and entry.name == INDEX_HTML:
            continue
        if is_root and entry.name == GIT_DIR:
            continue
        shell_status("Removing", str(entry))
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed.append(entry)
    return removed


def read_version(project_dir: Path) -> str | None:
    try:
        return read_package_version(project_dir)
    except MetadataError as e:
        log.warning("version_unavailable", reason=e.message)
        shell_status("Warning", f"couldn't read package version: {e.message}", error=True)
        return None


class DocPublisher:
    """Runs one documentation publish described by a :class:`PublishRequest`."""

    def __init__(self, request: PublishRequest) -> None:
        self.request = request
        self.callbacks = PublishCallbacks(request.origin)

    def publish(self) -> PublishResult:
        """Publish the documentation tree and badge.

        Raises:
            ValidationError: the sub-path escapes the working copy, or (after
                the badge was published) the documentation could not be read.
            GitError: cloning, committing or pushing failed.
        """
        req = self.request

        # Reject an escaping path before the working copy is even created
        resolve_publish_dir(req.working_copy, req.path)

        wc = WorkingCopy.open_or_create(
            req.working_copy,
            req.origin,
            req.deploy_branch,
            shallow=req.shallow,
            callbacks=self.callbacks,
        )

        # Resolve again now that symlinks in the checkout can be followed
        target = resolve_publish_dir(req.working_copy, req.path)
        target.mkdir(parents=True, exist_ok=True)
        target = resolve_publish_dir(req.working_copy, req.path)

        fresh_index = (req.doc_dir / INDEX_HTML).exists()
        clear_directory(
            target,
            keep_index=not (req.clobber_index or fresh_index),
            is_root=target == req.working_copy.resolve(),
        )

        version = read_version(req.project_dir)

        docs_error: ValidationError | None = None
        copied = 0
        try:
            entries = list(req.doc_dir.iterdir())
        except OSError as e:
            log.warning("docs_unreadable", path=str(req.doc_dir), reason=str(e))
            shell_status("Warning", "No documentation found to upload.", error=True)
            docs_error = ValidationError.no_documentation(str(req.doc_dir))
        else:
            shell_status("Copying", f"{req.doc_dir} to {target}")
            copied = copy_entries(entries, target)

        badge = Badge.for_publish(version, docs_copied=docs_error is None)
        badge.write(target)
        result = PublishResult(badge=badge, docs_found=docs_error is None, bytes_copied=copied)

        self._commit_and_push(wc, result)

        if docs_error is not None:
            raise docs_error
        return result

    def _commit_and_push(self, wc: WorkingCopy, result: PublishResult) -> None:
        req = self.request
        wc.stage_all()
        signature = wc.signature(req.author_name, req.author_email)
        try:
            result.commit = wc.commit(req.message, signature)
        except NothingToCommitError:
            log.info("nothing_to_publish", branch=req.deploy_branch)
            shell_status("Fresh", "no changes to the documentation, nothing to publish")
            return

        shell_status("Pushing", f"{req.deploy_branch} ({result.commit[:8]})")
        wc.push(req.origin, req.deploy_branch, callbacks=self.callbacks)
        result.pushed = True
        shell_status("Published", f"documentation to {req.deploy_branch}")


def publish(request: PublishRequest) -> PublishResult:
    """Convenience wrapper around :class:`DocPublisher`."""
    return DocPublisher(request).publish()
