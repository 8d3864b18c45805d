"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local cargoci package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of cargoci modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("cargoci"):
        del sys.modules[module_name]

_ISOLATED_ENV = ("GH_TOKEN", "CARGO", "CARGO_TARGET_DIR")


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Directory for fake external programs."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def make_script(bin_dir: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable ``/bin/sh`` script into ``bin_dir``."""

    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user-level config and CI variables out of every test."""
    monkeypatch.setattr(
        "cargoci.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global-config.yaml"
    )
    for name in list(os.environ):
        if name.startswith(("CARGO_CI__", "TRAVIS_")) or name in _ISOLATED_ENV:
            monkeypatch.delenv(name, raising=False)


SIG = pygit2.Signature("Test User", "test@example.com")


@pytest.fixture
def bare_repo(tmp_path: Path) -> pygit2.Repository:
    """Empty bare repository standing in for the documentation remote."""
    return pygit2.init_repository(str(tmp_path / "remote.git"), bare=True)


@pytest.fixture
def remote_url(bare_repo: pygit2.Repository) -> str:
    return str(Path(bare_repo.path).resolve())


@pytest.fixture
def seeded_remote(tmp_path: Path, remote_url: str) -> str:
    """Remote whose gh-pages branch already holds a published page and redirect."""
    seed_path = tmp_path / "seed"
    repo = pygit2.init_repository(str(seed_path), initial_head="gh-pages")
    (seed_path / "old.html").write_text("<p>old</p>\n")
    (seed_path / "index.html").write_text("<meta http-equiv=refresh content='0;url=foo'>\n")
    repo.index.add("old.html")
    repo.index.add("index.html")
    repo.index.write()
    tree = repo.index.write_tree()
    repo.create_commit("refs/heads/gh-pages", SIG, SIG, "Seed pages", tree, [])

    remote = repo.remotes.create("origin", remote_url)
    remote.push(["refs/heads/gh-pages:refs/heads/gh-pages"])
    return remote_url


@pytest.fixture
def remote_tree(bare_repo: pygit2.Repository) -> Callable[[str], dict[str, pygit2.Object]]:
    """Return the top-level entries of a branch in the remote, by name."""

    def _tree(branch: str = "gh-pages") -> dict[str, pygit2.Object]:
        commit = bare_repo.references[f"refs/heads/{branch}"].peel(pygit2.Commit)
        return {entry.name: entry for entry in commit.tree}

    return _tree
