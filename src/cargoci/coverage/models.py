"""Coverage run records.

Transient, per-invocation data: the request built by the CLI, the test
artifacts discovered from Cargo's message stream, and per-test outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cargoci.core.errors import ProcessError


@dataclass(frozen=True)
class CoverageRequest:
    """Configuration for one coverage run."""

    kcov_path: Path
    workspace_root: Path
    target_dir: Path
    merge_dir: Path
    cargo: str = "cargo"
    cargo_args: tuple[str, ...] = ()  # forwarded to `cargo test --no-run`
    release: bool = False
    manifest_path: Path | None = None
    merge_args: tuple[str, ...] = ()
    test_args: tuple[str, ...] = ()
    exclude_pattern: str | None = None
    no_fail_fast: bool = False
    verbose: bool = False
    cwd: Path = field(default_factory=Path.cwd)

    def output_dir_for(self, executable: Path) -> Path:
        """Per-test kcov output directory, unique per executable file name."""
        return self.target_dir / f"kcov-{executable.name}"


@dataclass(frozen=True, order=True)
class TestArtifact:
    """A test executable emitted by the build.

    Ordering compares ``(package_id, target_name, executable)`` so sorted runs
    are reproducible regardless of the order Cargo finished building them. A
    crate whose lib and bin share a name ties on the first two.
    """

    __test__ = False

    package_id: str
    target_name: str
    executable: Path
    is_test: bool = field(default=True, compare=False)

    @property
    def package_name(self) -> str:
        """Short package name from a Cargo package id.

        Handles both the legacy ``name version (source)`` form and the
        ``source#name@version`` spec form.
        """
        pid = self.package_id
        if " " in pid:
            return pid.split(" ", 1)[0]
        fragment = pid.rsplit("#", 1)[-1]
        if "@" in fragment:
            return fragment.split("@", 1)[0]
        # `path+file:///x/foo#0.1.0`: name is the last path segment
        if fragment and fragment[0].isdigit():
            return pid.split("#", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        return fragment


@dataclass(frozen=True)
class RunOutcome:
    """Result of running one test artifact under kcov."""

    artifact: TestArtifact
    output_dir: Path
    error: ProcessError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class CoverageResult:
    """Summary of a completed coverage run."""

    merge_dir: Path
    outcomes: list[RunOutcome] = field(default_factory=list)

    @property
    def merged_dirs(self) -> list[Path]:
        return [o.output_dir for o in self.outcomes]

    @property
    def failures(self) -> list[RunOutcome]:
        return [o for o in self.outcomes if not o.success]
