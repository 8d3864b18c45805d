"""Credential handling for pushes to the documentation remote."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

import pygit2
import structlog

from cargoci.core.errors import CargoCIError
from cargoci.core.process import Process

if TYPE_CHECKING:
    from pygit2.enums import CredentialType

log = structlog.get_logger()

# GitHub accepts a personal access token as the user name with this password
TOKEN_PASSWORD = "x-oauth-basic"


def url_credentials(url: str) -> tuple[str, str] | None:
    """``(user, password)`` embedded in an https URL, if any."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.username:
        return None
    password = unquote(parsed.password) if parsed.password else TOKEN_PASSWORD
    return unquote(parsed.username), password


class PublishCallbacks(pygit2.RemoteCallbacks):
    """
    RemoteCallbacks for the documentation push.

    Credentials, in order:
    - a token embedded in the https origin URL
    - SSH via KeypairFromAgent (system SSH agent)
    - HTTPS via ``git credential fill``

    Reference updates the remote refuses are collected in :attr:`rejected`,
    since libgit2 reports them through this callback rather than as errors.
    """

    def __init__(self, url: str | None = None) -> None:
        super().__init__()
        self._url = url
        self.rejected: dict[str, str] = {}

    def credentials(  # type: ignore[override]
        self,
        url: str,
        username_from_url: str | None,
        allowed_types: CredentialType,
    ) -> pygit2.Username | pygit2.UserPass | pygit2.Keypair | None:
        """Provide credentials for remote operations."""
        if allowed_types & pygit2.enums.CredentialType.USERPASS_PLAINTEXT:
            embedded = url_credentials(self._url or url)
            if embedded:
                return pygit2.UserPass(*embedded)
            creds = self._query_credential_helper(url)
            if creds:
                return pygit2.UserPass(creds["username"], creds["password"])

        if allowed_types & pygit2.enums.CredentialType.SSH_KEY:
            return pygit2.KeypairFromAgent(username_from_url or "git")

        return None

    def push_update_reference(self, refname: str, message: str | None) -> None:
        if message:
            log.warning("push_rejected", ref=refname, reason=message)
            self.rejected[refname] = message

    def _query_credential_helper(self, url: str) -> dict[str, str] | None:
        """
        Query system git credential helper.

        Invokes: git credential fill
        See: https://git-scm.com/docs/git-credential
        """
        parsed = urlparse(url)
        input_lines = [
            f"protocol={parsed.scheme}",
            f"host={parsed.hostname or parsed.netloc}",
        ]
        if parsed.path:
            input_lines.append(f"path={parsed.path.lstrip('/')}")
        input_lines.append("")

        try:
            helper = Process("git", ["credential", "fill"], env={"GIT_TERMINAL_PROMPT": "0"})
            result = helper.output(input="\n".join(input_lines))
        except CargoCIError:
            # git not installed; no helper to ask
            return None
        if result.returncode != 0:
            return None

        creds: dict[str, str] = {}
        for line in result.stdout.strip().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                creds[key] = value
        if "username" in creds and "password" in creds:
            return creds
        return None
