"""Working copy of the documentation branch, backed by pygit2."""

from __future__ import annotations

import shutil
from pathlib import Path

import pygit2
import structlog

from cargoci.git.credentials import PublishCallbacks
from cargoci.git.errors import (
    AuthenticationError,
    NothingToCommitError,
    NotARepositoryError,
    PushRejectedError,
    RemoteError,
)

log = structlog.get_logger()

STATUS_WT_NEW = pygit2.GIT_STATUS_WT_NEW
STATUS_WT_MODIFIED = pygit2.GIT_STATUS_WT_MODIFIED
STATUS_WT_DELETED = pygit2.GIT_STATUS_WT_DELETED
STATUS_WT_TYPECHANGE = pygit2.GIT_STATUS_WT_TYPECHANGE


def _map_remote_error(remote: str, op_name: str, e: pygit2.GitError) -> RemoteError:
    msg = str(e).lower()
    if "authentication" in msg or "credential" in msg:
        return AuthenticationError(remote, op_name)
    return RemoteError(remote, f"{op_name} failed: {e}")


class WorkingCopy:
    """Owns the pygit2.Repository of a documentation working copy."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError(str(self._path)) from e

    @classmethod
    def open_or_create(
        cls,
        path: Path,
        origin: str,
        branch: str,
        *,
        shallow: bool = True,
        callbacks: PublishCallbacks | None = None,
    ) -> WorkingCopy:
        """Reuse ``path`` when present, else clone ``branch`` or start it fresh.

        A failed clone means the remote or the branch does not exist yet, so
        a new repository is initialized with ``HEAD`` on ``branch``.
        """
        if path.exists():
            log.debug("working_copy_reused", path=str(path))
            return cls(path)

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            pygit2.clone_repository(
                origin,
                str(path),
                checkout_branch=branch,
                depth=1 if shallow else 0,
                callbacks=callbacks or PublishCallbacks(origin),
            )
            log.info("working_copy_cloned", path=str(path), branch=branch)
        except pygit2.GitError as e:
            log.info("clone_failed_initializing", branch=branch, reason=str(e))
            if path.exists():
                shutil.rmtree(path)
            pygit2.init_repository(str(path), initial_head=branch)

        wc = cls(path)
        if wc.current_branch_name() != branch:
            # An empty remote clones fine but leaves HEAD on its default branch
            wc.repo.set_head(f"refs/heads/{branch}")
        return wc

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def path(self) -> Path:
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    @property
    def is_unborn(self) -> bool:
        return self._repo.head_is_unborn

    def current_branch_name(self) -> str | None:
        if self.is_unborn:
            target = self._repo.references["HEAD"].target
            if isinstance(target, str) and target.startswith("refs/heads/"):
                return target[len("refs/heads/") :]
            return None
        if self._repo.head_is_detached:
            return None
        return self._repo.head.shorthand

    def head_tree(self) -> pygit2.Tree | None:
        if self.is_unborn:
            return None
        return self._repo.head.peel(pygit2.Tree)

    # =========================================================================
    # Staging / Commit
    # =========================================================================

    def stage_all(self) -> int:
        """Stage every working-tree change, deletions included. Returns the count."""
        index = self._repo.index
        staged = 0
        for path, flags in self._repo.status().items():
            if flags & (STATUS_WT_NEW | STATUS_WT_MODIFIED | STATUS_WT_TYPECHANGE):
                index.add(path)
                staged += 1
            elif flags & STATUS_WT_DELETED:
                index.remove(path)
                staged += 1
        index.write()
        log.debug("staged", count=staged)
        return staged

    def check_nothing_to_commit(self) -> None:
        index = self._repo.index
        if self.is_unborn:
            if len(index) == 0:
                raise NothingToCommitError
            return
        tree = self.head_tree()
        if tree is not None and index.diff_to_tree(tree).stats.files_changed == 0:
            raise NothingToCommitError

    def signature(self, fallback_name: str, fallback_email: str) -> pygit2.Signature:
        """Configured git identity, or the fallback when none is set."""
        try:
            return self._repo.default_signature
        except (KeyError, pygit2.GitError):
            return pygit2.Signature(fallback_name, fallback_email)

    def commit(self, message: str, signature: pygit2.Signature) -> str:
        """Commit the index onto HEAD. Returns commit sha.

        Raises:
            NothingToCommitError: the index matches HEAD.
        """
        self.check_nothing_to_commit()
        tree_id = self._repo.index.write_tree()
        parents = [] if self.is_unborn else [self._repo.head.target]
        oid = self._repo.create_commit("HEAD", signature, signature, message, tree_id, parents)
        log.info("committed", sha=str(oid), branch=self.current_branch_name())
        return str(oid)

    # =========================================================================
    # Push
    # =========================================================================

    def push(self, origin: str, branch: str, callbacks: PublishCallbacks | None = None) -> None:
        """Push ``refs/heads/<branch>`` to the ``origin`` URL."""
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        cbs = callbacks or PublishCallbacks(origin)
        remote = self._repo.remotes.create_anonymous(origin)
        try:
            remote.push([refspec], callbacks=cbs)
        except pygit2.GitError as e:
            raise _map_remote_error(_redact(origin), "push", e) from e
        if cbs.rejected:
            refname, reason = next(iter(cbs.rejected.items()))
            raise PushRejectedError(_redact(origin), refname, reason)
        log.info("pushed", branch=branch)


def _redact(url: str) -> str:
    """``url`` with any embedded credentials removed."""
    scheme, sep, rest = url.partition("://")
    if sep and "@" in rest.split("/", 1)[0]:
        return f"{scheme}://{rest.split('@', 1)[1]}"
    return url
