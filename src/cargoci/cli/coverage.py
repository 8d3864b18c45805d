"""cargo-ci coverage / coveralls commands - run tests under kcov."""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from cargoci.ci import TRAVIS_JOB_ID, CIEnvironment
from cargoci.cli.utils import find_project_root, load_project_config, resolve_under
from cargoci.coverage import CoverageRequest, resolve_kcov, run_coverage
from cargoci.project import target_dir

# (flag, option kwargs) for `cargo test` flags forwarded unchanged
_CARGO_FLAGS: list[tuple[tuple[str, ...], dict[str, Any]]] = [
    (("--lib",), {"is_flag": True, "help": "Test only this package's library"}),
    (("--bin",), {"multiple": True, "metavar": "NAME", "help": "Test only the specified binary"}),
    (("--bins",), {"is_flag": True, "help": "Test all binaries"}),
    (("--test",), {"multiple": True, "metavar": "NAME", "help": "Test only this test target"}),
    (("--tests",), {"is_flag": True, "help": "Test all tests"}),
    (("--bench",), {"multiple": True, "metavar": "NAME", "help": "Test only this bench target"}),
    (("--benches",), {"is_flag": True, "help": "Test all benches"}),
    (("--all-targets",), {"is_flag": True, "help": "Test all targets"}),
    (("-p", "--package"), {"multiple": True, "metavar": "SPEC", "help": "Package to test"}),
    (("--all", "--workspace"), {"is_flag": True, "help": "Test all packages in the workspace"}),
    (("--exclude",), {"multiple": True, "metavar": "SPEC", "help": "Exclude packages"}),
    (("-j", "--jobs"), {"type": int, "metavar": "N", "help": "Number of parallel jobs"}),
    (("--features",), {"metavar": "FEATURES", "help": "Space-separated list of features to build"}),
    (("--all-features",), {"is_flag": True, "help": "Build all available features"}),
    (("--no-default-features",), {"is_flag": True, "help": "Do not build the `default` feature"}),
    (("--target",), {"metavar": "TRIPLE", "help": "Build for the target triple"}),
    (("-q", "--quiet"), {"is_flag": True, "help": "No output printed to stdout"}),
    (("--color",), {"type": click.Choice(["auto", "always", "never"]), "help": "Coloring"}),
    (("--frozen",), {"is_flag": True, "help": "Require Cargo.lock and cache are up to date"}),
    (("--locked",), {"is_flag": True, "help": "Require Cargo.lock is up to date"}),
    (("-Z", "unstable"), {"multiple": True, "metavar": "FLAG", "help": "Unstable flags to Cargo"}),
]

_REPEATED = {"bin", "test", "bench", "package", "exclude"}
_VALUED = {"jobs", "features", "target", "color"}


def cargo_test_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the forwarded `cargo test` flags plus the shared coverage flags."""
    options = [
        *(click.option(*decls, **kwargs) for decls, kwargs in _CARGO_FLAGS),
        click.option("--release", is_flag=True, help="Build artifacts in release mode"),
        click.option(
            "--manifest-path",
            type=click.Path(dir_okay=False, path_type=Path),
            help="Path to the manifest to build tests for",
        ),
        click.option("-v", "--verbose", count=True, help="Use verbose output"),
        click.option("--no-fail-fast", is_flag=True, help="Run all tests regardless of failure"),
        click.option(
            "--exclude-pattern",
            metavar="PATTERN",
            help="Comma-separated path patterns to exclude from the report",
        ),
        click.option(
            "--kcov-build-location",
            metavar="PATH",
            help="Directory in which to build kcov; it ends up in kcov-master",
        ),
        click.argument("test_args", nargs=-1, type=click.UNPROCESSED),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def build_cargo_args(params: dict[str, Any]) -> list[str]:
    """Translate parsed `cargo test` flags back into command-line arguments."""
    args: list[str] = []
    for decls, _kwargs in _CARGO_FLAGS:
        flag = decls[-1] if decls[-1].startswith("--") else decls[0]
        name = "unstable" if flag == "-Z" else flag.lstrip("-").replace("-", "_")
        if name == "workspace":
            name = "all"
        value = params.get(name)
        if name in _REPEATED or name == "unstable":
            for item in value or ():
                args.extend([flag, item])
        elif name in _VALUED:
            if value is not None:
                args.extend([flag, str(value)])
        elif value:
            args.append(flag)
    args.extend(["-v"] * params.get("verbose", 0))
    return args


def _run(
    ctx: click.Context,
    params: dict[str, Any],
    *,
    merge_into: str | None,
    merge_args: tuple[str, ...] = (),
) -> None:
    _manifest, root = find_project_root(params.get("manifest_path"))
    config = load_project_config(
        ctx,
        root,
        coverage={
            "merge_dir": merge_into,
            "kcov_build_location": params.get("kcov_build_location"),
            "exclude_pattern": params.get("exclude_pattern"),
        },
    )
    cov = config.coverage
    cwd = Path.cwd()

    kcov = resolve_kcov(resolve_under(cwd, cov.kcov_build_location), url=cov.kcov_url)
    request = CoverageRequest(
        kcov_path=kcov,
        workspace_root=root,
        target_dir=target_dir(root),
        merge_dir=resolve_under(cwd, cov.merge_dir),
        cargo=os.environ.get("CARGO") or cov.cargo,
        cargo_args=tuple(build_cargo_args(params)),
        release=params.get("release", False),
        manifest_path=params.get("manifest_path"),
        merge_args=merge_args,
        test_args=tuple(params.get("test_args", ())),
        exclude_pattern=cov.exclude_pattern,
        no_fail_fast=params.get("no_fail_fast", False),
        verbose=params.get("verbose", 0) > 0,
        cwd=cwd,
    )
    run_coverage(request)


@click.command()
@click.option(
    "-m",
    "--merge-into",
    metavar="PATH",
    help="Directory to put the final merged kcov result into [default: target/kcov]",
)
@cargo_test_options
@click.pass_context
def coverage_command(ctx: click.Context, merge_into: str | None, **params: Any) -> None:
    """Record coverage of `cargo test`.

    Runs every test binary `cargo test` would run (doc tests excepted) under
    kcov and merges the results into a single directory. Arguments after
    `--` are passed to each test binary.
    """
    _run(ctx, params, merge_into=merge_into)


@click.command()
@cargo_test_options
@click.pass_context
def coveralls_command(ctx: click.Context, **params: Any) -> None:
    """Record coverage of `cargo test` and send it to coveralls.io.

    Needs $TRAVIS_JOB_ID, which kcov forwards to coveralls.
    """
    job_id = CIEnvironment.from_env().require(TRAVIS_JOB_ID)
    _run(ctx, params, merge_into=None, merge_args=("--coveralls-id", job_id))
