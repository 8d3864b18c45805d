"""cargo-ci doc-upload command - publish rustdoc output to GitHub pages."""

from pathlib import Path

import click

from cargoci.ci import CIEnvironment
from cargoci.cli.utils import find_project_root, load_project_config, resolve_under
from cargoci.core.progress import status
from cargoci.docs import PublishRequest, publish
from cargoci.project import target_dir


@click.command()
@click.option(
    "--branch",
    "branches",
    multiple=True,
    metavar="NAME",
    help="Only publish documentation for these branches [default: master]",
)
@click.option(
    "--token",
    envvar="GH_TOKEN",
    help="GitHub token used to push. Falls back to $GH_TOKEN, then to the SSH endpoint",
)
@click.option("--origin", metavar="URL", help="Push to this remote instead of the GitHub repo")
@click.option("--message", help="The message to include in the commit")
@click.option("--deploy", "deploy_branch", metavar="BRANCH", help="Deploy to the given branch")
@click.option("--path", "sub_path", metavar="PATH", help="Sub-path of the branch to publish into")
@click.option(
    "--doc-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Generated documentation [default: <target dir>/doc]",
)
@click.option("--clobber-index", is_flag=True, help="Delete `index.html` from repo")
@click.pass_context
def doc_upload_command(
    ctx: click.Context,
    branches: tuple[str, ...],
    token: str | None,
    origin: str | None,
    message: str | None,
    deploy_branch: str | None,
    sub_path: str | None,
    doc_dir: Path | None,
    clobber_index: bool,
) -> None:
    """Upload built rustdoc documentation to GitHub pages.

    Only runs for pushes to the listed branches; pull request builds and
    other branches are skipped. A docs badge (badge.json, badge.svg) showing
    the package version is published next to the documentation.
    """
    manifest, root = find_project_root()
    config = load_project_config(
        ctx,
        root,
        publish={
            "branches": list(branches) or None,
            "message": message,
            "deploy_branch": deploy_branch,
            "path": sub_path,
            "doc_dir": str(doc_dir.resolve()) if doc_dir is not None else None,
            "clobber_index": True if clobber_index else None,
        },
    )
    cfg = config.publish

    env = CIEnvironment.from_env()
    reason = env.skip_reason(cfg.branches)
    if reason is not None:
        click.echo(reason)
        return

    if origin is None:
        if not token:
            status(
                "GitHub Personal Access Token was not provided in $GH_TOKEN or --token",
                style="warning",
            )
            status("Falling back to using the SSH endpoint", style="warning")
        origin = env.origin_url(token)

    package_dir = manifest.parent if manifest is not None else root
    request = PublishRequest(
        origin=origin,
        doc_dir=resolve_under(root, cfg.doc_dir) if cfg.doc_dir else target_dir(root) / "doc",
        project_dir=package_dir,
        message=cfg.message,
        deploy_branch=cfg.deploy_branch,
        path=cfg.path,
        clobber_index=cfg.clobber_index,
        working_copy=resolve_under(root, cfg.working_copy),
        author_name=cfg.author_name,
        author_email=cfg.author_email,
    )
    publish(request)
