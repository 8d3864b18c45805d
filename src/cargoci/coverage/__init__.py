"""Coverage collection over Cargo test binaries with kcov.

Usage:
    from cargoci.coverage import CoverageRequest, resolve_kcov, run_coverage

    kcov = resolve_kcov(Path("target"))
    result = run_coverage(CoverageRequest(kcov_path=kcov, ...))
"""

from cargoci.coverage.events import (
    BuildEvent,
    CompilerArtifact,
    CompilerMessage,
    OtherEvent,
    iter_events,
    parse_event,
)
from cargoci.coverage.kcov import resolve_kcov
from cargoci.coverage.models import CoverageRequest, CoverageResult, RunOutcome, TestArtifact
from cargoci.coverage.orchestrator import CoverageOrchestrator, coverage_rustflags, run_coverage

__all__ = [
    # Models
    "CoverageRequest",
    "CoverageResult",
    "RunOutcome",
    "TestArtifact",
    # Events
    "BuildEvent",
    "CompilerArtifact",
    "CompilerMessage",
    "OtherEvent",
    "iter_events",
    "parse_event",
    # Orchestration
    "CoverageOrchestrator",
    "coverage_rustflags",
    "resolve_kcov",
    "run_coverage",
]
