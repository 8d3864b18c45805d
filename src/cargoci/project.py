"""Cargo project discovery and package metadata.

Locates the manifest and workspace root the way Cargo does for the common
cases, and reads the current package version for the docs badge.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from cargoci.core.errors import MetadataError

MANIFEST_NAME = "Cargo.toml"


def _read_manifest(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise MetadataError.unavailable(str(path), e.strerror or str(e)) from e
    except tomllib.TOMLDecodeError as e:
        raise MetadataError.unavailable(str(path), f"invalid TOML: {e}") from e


def find_manifest(start: Path | None = None) -> Path:
    """Return the nearest Cargo.toml at or above ``start``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    raise MetadataError.unavailable(str(current), f"could not find `{MANIFEST_NAME}`")


def workspace_root(manifest: Path) -> Path:
    """Directory of the workspace that owns ``manifest``.

    The nearest manifest at or above the package declaring ``[workspace]``
    wins; a package outside any workspace is its own root.
    """
    manifest = manifest.resolve()
    for directory in (manifest.parent, *manifest.parent.parents):
        candidate = directory / MANIFEST_NAME
        if not candidate.is_file():
            continue
        try:
            data = _read_manifest(candidate)
        except MetadataError:
            continue
        if "workspace" in data:
            return directory
    return manifest.parent


def target_dir(root: Path) -> Path:
    """Cargo's target directory for a workspace root."""
    override = os.environ.get("CARGO_TARGET_DIR")
    if override:
        path = Path(override)
        return path if path.is_absolute() else root / path
    return root / "target"


def read_package_version(directory: Path | None = None) -> str:
    """Read ``package.version`` of the Cargo package in ``directory``.

    ``version.workspace = true`` is resolved through the owning workspace's
    ``[workspace.package]`` table.

    Raises:
        MetadataError: When the manifest is missing, unreadable, virtual, or
            carries no version.
    """
    manifest = (directory or Path.cwd()) / MANIFEST_NAME
    data = _read_manifest(manifest)

    package = data.get("package")
    if not isinstance(package, dict):
        raise MetadataError.unavailable(str(manifest), "manifest has no [package] table")

    version = package.get("version")
    if isinstance(version, dict) and version.get("workspace") is True:
        root = workspace_root(manifest)
        ws_data = _read_manifest(root / MANIFEST_NAME)
        version = ws_data.get("workspace", {}).get("package", {}).get("version")

    if not isinstance(version, str) or not version:
        raise MetadataError.unavailable(str(manifest), "package has no version")
    return version
