"""Git working copy for the documentation branch.

Usage:
    from cargoci.git import WorkingCopy

    wc = WorkingCopy.open_or_create(Path("target/doc-upload"), origin, "gh-pages")
    wc.stage_all()
    wc.commit("Update docs", wc.signature("cargo-ci", "cargo-ci@localhost"))
    wc.push(origin, "gh-pages")
"""

from cargoci.git.credentials import PublishCallbacks, url_credentials
from cargoci.git.errors import (
    AuthenticationError,
    GitError,
    NotARepositoryError,
    NothingToCommitError,
    PushRejectedError,
    RemoteError,
)
from cargoci.git.ops import WorkingCopy

__all__ = [
    "WorkingCopy",
    "PublishCallbacks",
    "url_credentials",
    # Errors
    "GitError",
    "NotARepositoryError",
    "NothingToCommitError",
    "RemoteError",
    "AuthenticationError",
    "PushRejectedError",
]
