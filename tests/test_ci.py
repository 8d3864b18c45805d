"""Tests for the Travis CI environment."""

from __future__ import annotations

import pytest

from cargoci.ci import CIEnvironment
from cargoci.core.errors import ErrorCode, ValidationError


def _env(**overrides: str) -> CIEnvironment:
    values = {
        "TRAVIS_BRANCH": "master",
        "TRAVIS_PULL_REQUEST": "false",
        "TRAVIS_REPO_SLUG": "owner/repo",
        "TRAVIS_JOB_ID": "4242",
    }
    values.update(overrides)
    return CIEnvironment.from_env({k: v for k, v in values.items() if v})


class TestFromEnv:
    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRAVIS_BRANCH", "dev")
        monkeypatch.setenv("TRAVIS_JOB_ID", "7")

        env = CIEnvironment.from_env()

        assert env.branch == "dev"
        assert env.job_id == "7"
        assert env.repo_slug is None

    def test_require_missing_is_validation_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            _env(TRAVIS_JOB_ID="").require("TRAVIS_JOB_ID")
        assert exc_info.value.code == ErrorCode.MISSING_ENV


class TestSkipReason:
    def test_listed_branch_publishes(self) -> None:
        assert _env().skip_reason(["master"]) is None

    def test_unlisted_branch(self) -> None:
        assert _env(TRAVIS_BRANCH="feature").skip_reason(["master", "main"]) == (
            "Skipping branch feature"
        )

    def test_pull_request(self) -> None:
        assert _env(TRAVIS_PULL_REQUEST="17").skip_reason(["master"]) == "Skipping PR"


class TestOriginUrl:
    def test_token(self) -> None:
        assert _env().origin_url("t0k") == "https://t0k@github.com/owner/repo.git"

    def test_ssh_fallback(self) -> None:
        assert _env().origin_url(None) == "git@github.com:owner/repo.git"
