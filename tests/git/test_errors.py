"""Tests for working-copy error types."""

from cargoci.git.errors import (
    AuthenticationError,
    GitError,
    NotARepositoryError,
    NothingToCommitError,
    PushRejectedError,
    RemoteError,
)


def test_hierarchy() -> None:
    assert issubclass(NotARepositoryError, GitError)
    assert issubclass(NothingToCommitError, GitError)
    assert issubclass(AuthenticationError, RemoteError)
    assert issubclass(PushRejectedError, RemoteError)


def test_messages() -> None:
    assert str(NotARepositoryError("/x")) == "Not a git repository: /x"
    assert "during push" in str(AuthenticationError("origin", "push"))
    error = PushRejectedError("https://github.com/o/r.git", "refs/heads/gh-pages", "stale info")
    assert error.remote == "https://github.com/o/r.git"
    assert "refs/heads/gh-pages rejected: stale info" in str(error)
