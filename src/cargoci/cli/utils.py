"""CLI utilities."""

from pathlib import Path
from typing import Any

import click

from cargoci.config.loader import load_config
from cargoci.config.models import CargoCIConfig
from cargoci.core.errors import MetadataError
from cargoci.core.logging import configure_logging, verbosity_level
from cargoci.project import find_manifest, workspace_root


def find_project_root(manifest_path: Path | None = None) -> tuple[Path | None, Path]:
    """Locate the package manifest and the workspace root.

    Outside a Cargo project the manifest is None and the root is the
    current directory.
    """
    if manifest_path is not None:
        manifest = manifest_path.resolve()
    else:
        try:
            manifest = find_manifest()
        except MetadataError:
            return None, Path.cwd()
    return manifest, workspace_root(manifest)


def load_project_config(
    ctx: click.Context, root: Path, **overrides: dict[str, Any]
) -> CargoCIConfig:
    """Load configuration for ``root`` and apply it to logging.

    ``overrides`` are per-section dicts of CLI flags; ``None`` values are
    dropped so they do not mask file or environment settings.
    """
    cleaned = {
        section: {k: v for k, v in values.items() if v is not None}
        for section, values in overrides.items()
    }
    config = load_config(root, **{k: v for k, v in cleaned.items() if v})

    verbose = ctx.find_root().params.get("verbose", 0)
    level = verbosity_level(verbose) if verbose else None
    configure_logging(config=config.logging, level=level)
    return config


def resolve_under(root: Path, value: str | Path) -> Path:
    """``value`` as an absolute path, relative ones taken from ``root``."""
    path = Path(value).expanduser()
    return path if path.is_absolute() else root / path
