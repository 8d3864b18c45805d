"""Coverage orchestration over Cargo test binaries.

Linear state machine::

    Idle -> Compiling -> Discovering -> Running(1..N) -> Merging -> Done | Failed

- Compiling: ``cargo test --no-run --message-format=json`` with ``RUSTFLAGS``
  extended so dead code is still linked (and debuginfo kept in release).
- Discovering: diagnostics are forwarded to stdout, test-profile
  executables are collected and sorted by ``(package_id, target_name, executable)``.
- Running: each binary runs under ``kcov --verify`` into its own directory.
- Merging: ``kcov --merge`` over every directory actually produced.

A broken build is never a test failure: a non-zero cargo exit always raises
:class:`ProcessError`. Test failures are collected and reported once the
merge has run.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

import click
import structlog

from cargoci.core.errors import FailedTest, ProcessError, TestFailure, ValidationError
from cargoci.core.process import Process
from cargoci.core.progress import pluralize, shell_status
from cargoci.coverage.events import CompilerArtifact, CompilerMessage, iter_events
from cargoci.coverage.models import CoverageRequest, CoverageResult, RunOutcome, TestArtifact

log = structlog.get_logger()

RUSTFLAGS = "RUSTFLAGS"


def coverage_rustflags(release: bool, existing: str | None = None) -> str:
    """RUSTFLAGS for an instrumentable build.

    ``-C link-dead-code`` keeps never-called functions so they count as
    uncovered instead of vanishing. Release builds also need debuginfo for
    kcov to map addresses. User flags go last so they win on conflict.
    """
    flags = "-C link-dead-code"
    if release:
        flags += " -C debuginfo=2"
    if existing:
        flags += " " + existing
    return flags


def display_path(path: Path, cwd: Path) -> str:
    """``path`` relative to ``cwd`` when it lives below it."""
    try:
        return str(path.relative_to(cwd))
    except ValueError:
        return str(path)


class CoverageOrchestrator:
    """Runs one coverage collection described by a :class:`CoverageRequest`."""

    def __init__(self, request: CoverageRequest) -> None:
        self.request = request

    # =========================================================================
    # Compiling / Discovering
    # =========================================================================

    def compile_process(self) -> Process:
        req = self.request
        args = ["test", "--no-run", "--message-format=json"]
        if req.release and "--release" not in req.cargo_args:
            args.append("--release")
        if req.manifest_path is not None and "--manifest-path" not in req.cargo_args:
            args.extend(["--manifest-path", str(req.manifest_path)])
        args.extend(req.cargo_args)
        env = {RUSTFLAGS: coverage_rustflags(req.release, os.environ.get(RUSTFLAGS))}
        return Process(req.cargo, args, cwd=req.cwd, env=env)

    def collect_artifacts(self, lines: Iterable[str]) -> list[TestArtifact]:
        """Consume the message stream, echoing diagnostics, keeping test binaries."""
        artifacts: list[TestArtifact] = []
        for event in iter_events(lines):
            if isinstance(event, CompilerMessage):
                click.echo(event.rendered)
            elif isinstance(event, CompilerArtifact):
                artifact = event.as_test_artifact()
                if artifact is None:
                    continue
                artifacts.append(artifact)
                name = artifact.package_id if self.request.verbose else artifact.target_name
                shell_status("Compiled", name)
        return artifacts

    def compile(self) -> list[TestArtifact]:
        """Build the test binaries and return them in execution order."""
        process = self.compile_process()
        if self.request.verbose:
            shell_status("Compiling", str(process))
        child = process.spawn()
        artifacts = self.collect_artifacts(child.stdout_lines())
        # A failed build dominates whatever was discovered before it broke
        child.wait_success()

        if not artifacts:
            raise ValidationError.no_tests()

        artifacts.sort()
        log.info("tests_discovered", count=len(artifacts))
        return artifacts

    # =========================================================================
    # Running
    # =========================================================================

    def kcov_process(self, artifact: TestArtifact, output_dir: Path) -> Process:
        req = self.request
        args = [
            "--verify",
            f"--include-path={req.workspace_root}",
            str(output_dir),
        ]
        if req.exclude_pattern:
            args.append(f"--exclude-pattern={req.exclude_pattern}")
        args.append(str(artifact.executable))
        args.extend(req.test_args)
        return Process(req.kcov_path, args, cwd=req.cwd)

    def run_one(self, artifact: TestArtifact) -> RunOutcome:
        output_dir = self.request.output_dir_for(artifact.executable)
        process = self.kcov_process(artifact, output_dir)

        shell_status("Running", display_path(artifact.executable, self.request.cwd))
        if self.request.verbose:
            shell_status("Running", str(process))

        try:
            process.exec()
        except ProcessError as e:
            log.warning(
                "test_failed",
                package_id=artifact.package_id,
                target=artifact.target_name,
                returncode=e.returncode,
            )
            return RunOutcome(artifact, output_dir, e)
        return RunOutcome(artifact, output_dir)

    # =========================================================================
    # Merging
    # =========================================================================

    def merge_process(self, output_dirs: Iterable[Path]) -> Process:
        req = self.request
        args = ["--merge", str(req.merge_dir), *req.merge_args]
        args.extend(str(d) for d in output_dirs)
        return Process(req.kcov_path, args, cwd=req.cwd)

    def merge(self, output_dirs: list[Path]) -> None:
        process = self.merge_process(output_dirs)
        shell_status("Merging", f"coverage into {self.request.merge_dir}")
        if self.request.verbose:
            shell_status("Merging", str(process))
        process.exec()

    # =========================================================================
    # Full run
    # =========================================================================

    def run(self) -> CoverageResult:
        """Compile, run every test binary under kcov and merge the reports.

        Raises:
            ProcessError: cargo or the merge step failed.
            SpawnError: cargo or kcov could not be started.
            ValidationError: the build produced no test binaries.
            TestFailure: one (fail-fast) or more test binaries failed.
        """
        artifacts = self.compile()
        result = CoverageResult(merge_dir=self.request.merge_dir)

        stopped_early = False
        for artifact in artifacts:
            outcome = self.run_one(artifact)
            result.outcomes.append(outcome)
            if not outcome.success and not self.request.no_fail_fast:
                stopped_early = True
                break

        self.merge(result.merged_dirs)

        failures = [
            FailedTest(
                o.artifact.package_id,
                o.artifact.target_name,
                o.error,
                package_name=o.artifact.package_name,
            )
            for o in result.failures
            if o.error is not None
        ]
        if stopped_early:
            raise TestFailure.single_test(failures[0])
        if failures:
            raise TestFailure.multiple(failures)

        log.info("coverage_done", tests=len(result.outcomes), merge_dir=str(result.merge_dir))
        count = pluralize(len(artifacts), "test binary", "test binaries")
        shell_status("Finished", f"coverage of {count}")
        return result


def run_coverage(request: CoverageRequest) -> CoverageResult:
    """Convenience wrapper around :class:`CoverageOrchestrator`."""
    return CoverageOrchestrator(request).run()
