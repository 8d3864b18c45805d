"""Travis CI build environment.

The publish and coveralls commands are driven by the variables Travis sets
for every job. Only the ones actually needed are required.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from cargoci.core.errors import ValidationError

TRAVIS_BRANCH = "TRAVIS_BRANCH"
TRAVIS_PULL_REQUEST = "TRAVIS_PULL_REQUEST"
TRAVIS_REPO_SLUG = "TRAVIS_REPO_SLUG"
TRAVIS_JOB_ID = "TRAVIS_JOB_ID"
GH_TOKEN = "GH_TOKEN"


@dataclass(frozen=True)
class CIEnvironment:
    branch: str | None = None
    pull_request: str | None = None
    repo_slug: str | None = None
    job_id: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CIEnvironment:
        env = os.environ if environ is None else environ
        return cls(
            branch=env.get(TRAVIS_BRANCH),
            pull_request=env.get(TRAVIS_PULL_REQUEST),
            repo_slug=env.get(TRAVIS_REPO_SLUG),
            job_id=env.get(TRAVIS_JOB_ID),
        )

    def require(self, name: str) -> str:
        """Value of the Travis variable ``name``, or ValidationError when unset."""
        value = {
            TRAVIS_BRANCH: self.branch,
            TRAVIS_PULL_REQUEST: self.pull_request,
            TRAVIS_REPO_SLUG: self.repo_slug,
            TRAVIS_JOB_ID: self.job_id,
        }.get(name)
        if not value:
            raise ValidationError.missing_env(name)
        return value

    @property
    def is_pull_request(self) -> bool:
        return self.require(TRAVIS_PULL_REQUEST) != "false"

    def skip_reason(self, branches: Sequence[str]) -> str | None:
        """Why this build must not publish, or None when it should."""
        branch = self.require(TRAVIS_BRANCH)
        if branch not in branches:
            return f"Skipping branch {branch}"
        if self.is_pull_request:
            return "Skipping PR"
        return None

    def origin_url(self, token: str | None) -> str:
        """Push URL for the repository: token-authenticated https, else SSH."""
        slug = self.require(TRAVIS_REPO_SLUG)
        if token:
            return f"https://{token}@github.com/{slug}.git"
        return f"git@github.com:{slug}.git"
