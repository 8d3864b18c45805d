"""Locate or bootstrap the kcov executable.

Resolution runs an ordered list of resolver steps; the first one that
returns a path wins:

1. ``kcov`` on the shell search path
2. a previous local build under ``<build location>/kcov-master/build``
3. download the source archive, extract it, ``cmake ..`` and ``make``

Bootstrapping is a one-time interactive operation: any failing step raises
:class:`ProcessError` carrying that step's exit status and is not retried.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Sequence
from pathlib import Path
from urllib.parse import urlparse

import structlog

from cargoci.config.models import KCOV_ARCHIVE_URL
from cargoci.core.errors import ValidationError
from cargoci.core.process import Process
from cargoci.core.progress import shell_status

log = structlog.get_logger()

KCOV_NAME = "kcov"
SOURCE_DIR_NAME = "kcov-master"

Resolver = Callable[[Path], Path | None]


def source_dir(build_location: Path) -> Path:
    return build_location / SOURCE_DIR_NAME


def build_dir(build_location: Path) -> Path:
    return source_dir(build_location) / "build"


def built_executable(build_location: Path) -> Path:
    return build_dir(build_location) / "src" / KCOV_NAME


def from_search_path(
    build_location: Path,  # noqa: ARG001
    *,
    search_path: str | None = None,
) -> Path | None:
    """``kcov`` from ``$PATH`` (or ``search_path`` when given)."""
    found = shutil.which(KCOV_NAME, path=search_path)
    return Path(found) if found else None


def from_previous_build(build_location: Path) -> Path | None:
    """kcov left behind by an earlier bootstrap in ``build_location``."""
    path = built_executable(build_location)
    return path if path.is_file() else None


def _archive_name(url: str) -> str:
    name = Path(urlparse(url).path).name
    return name or "kcov.zip"


def download_and_build(build_location: Path, *, url: str = KCOV_ARCHIVE_URL) -> Path:
    """Fetch the kcov sources and build them with cmake + make."""
    build_location.mkdir(parents=True, exist_ok=True)
    archive = _archive_name(url)

    shell_status("Downloading", f"kcov from {url}")
    Process("wget", ["--quiet", "-O", archive, url], cwd=build_location).exec()

    shell_status("Extracting", archive)
    Process("unzip", ["-o", "-q", archive], cwd=build_location).exec()

    kcov_build = build_dir(build_location)
    kcov_build.mkdir(parents=True, exist_ok=True)

    shell_status("Configuring", "kcov (cmake)")
    Process("cmake", [".."], cwd=kcov_build).exec()

    shell_status("Building", "kcov (make)")
    Process("make", cwd=kcov_build).exec()

    executable = built_executable(build_location)
    log.info("kcov_built", path=str(executable))
    return executable


def default_resolvers(url: str = KCOV_ARCHIVE_URL) -> list[Resolver]:
    return [
        from_search_path,
        from_previous_build,
        lambda location: download_and_build(location, url=url),
    ]


def resolve_kcov(
    build_location: Path,
    *,
    url: str = KCOV_ARCHIVE_URL,
    resolvers: Sequence[Resolver] | None = None,
) -> Path:
    """Return a usable kcov path, building it if necessary."""
    steps = resolvers if resolvers is not None else default_resolvers(url)
    for step in steps:
        found = step(build_location)
        if found is not None:
            log.debug("kcov_resolved", path=str(found), step=getattr(step, "__name__", "build"))
            return found
    # Only reachable with a custom resolver list that never builds
    raise ValidationError.kcov_unavailable(str(build_location))
