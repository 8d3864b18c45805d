"""Working-copy error types."""


class GitError(Exception):
    """Base error for working-copy operations."""

    pass


class NotARepositoryError(GitError):
    """Path exists but is not a git working copy."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class NothingToCommitError(GitError):
    """Staged tree is identical to HEAD."""

    def __init__(self) -> None:
        super().__init__("Nothing to commit: no staged changes")


class RemoteError(GitError):
    """Error communicating with remote."""

    def __init__(self, remote: str, message: str) -> None:
        super().__init__(f"Remote error ({remote}): {message}")
        self.remote = remote


class AuthenticationError(RemoteError):
    """Authentication failed for remote operation."""

    def __init__(self, remote: str, operation: str | None = None) -> None:
        op_part = f" during {operation}" if operation else ""
        super().__init__(remote, f"authentication failed{op_part}")
        self.operation = operation


class PushRejectedError(RemoteError):
    """The remote refused a reference update."""

    def __init__(self, remote: str, refname: str, reason: str) -> None:
        super().__init__(remote, f"push of {refname} rejected: {reason}")
        self.refname = refname
        self.reason = reason
