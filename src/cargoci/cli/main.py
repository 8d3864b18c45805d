"""cargo-ci CLI - coverage and documentation publishing for Cargo projects."""

import sys
from typing import Any

import click
import pygit2
import structlog

from cargoci.cli.coverage import coverage_command, coveralls_command
from cargoci.cli.doc_upload import doc_upload_command
from cargoci.core.errors import GENERIC_FAILURE_EXIT, CargoCIError
from cargoci.core.logging import configure_logging, get_log_file_path, verbosity_level
from cargoci.git.errors import GitError

log = structlog.get_logger()


def _log_pointer() -> None:
    path = get_log_file_path()
    if path is not None:
        click.echo(f"note: full log written to {path}", err=True)


class CargoCIGroup(click.Group):
    """Group that turns library errors into an error line and an exit code."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except CargoCIError as e:
            log.debug("command_failed", **e.to_dict())
            click.echo(f"error: {e.message}", err=True)
            _log_pointer()
            ctx.exit(e.exit_code)
        except (GitError, pygit2.GitError, OSError) as e:
            log.debug("command_failed", error=str(e), kind=type(e).__name__)
            click.echo(f"error: {e}", err=True)
            _log_pointer()
            ctx.exit(GENERIC_FAILURE_EXIT)


@click.group(cls=CargoCIGroup)
@click.version_option(package_name="cargo-ci", prog_name="cargo-ci")
@click.option("-v", "--verbose", count=True, help="Log more (-v info, -vv debug)")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """cargo-ci - kcov coverage and gh-pages documentation for Cargo projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level=verbosity_level(verbose))


cli.add_command(coverage_command, name="coverage")
cli.add_command(coveralls_command, name="coveralls")
cli.add_command(doc_upload_command, name="doc-upload")


def _cargo_subcommand(name: str) -> None:
    """Run ``name`` as Cargo invokes it: ``cargo-<name> <name> [args]``."""
    args = sys.argv[1:]
    if args and args[0] == name:
        args = args[1:]
    cli.main(args=[name, *args], prog_name="cargo")


def cargo_coverage() -> None:
    _cargo_subcommand("coverage")


def cargo_coveralls() -> None:
    _cargo_subcommand("coveralls")


def cargo_doc_upload() -> None:
    _cargo_subcommand("doc-upload")


if __name__ == "__main__":
    cli()
