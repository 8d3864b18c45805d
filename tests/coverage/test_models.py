"""Tests for coverage run records."""

from pathlib import Path

import pytest

from cargoci.core.errors import ProcessError
from cargoci.coverage.models import CoverageRequest, CoverageResult, RunOutcome, TestArtifact


@pytest.mark.parametrize(
    ("package_id", "expected"),
    [
        ("serde 1.0.0 (registry+https://github.com/rust-lang/crates.io-index)", "serde"),
        ("path+file:///work/my-crate#0.1.0", "my-crate"),
        ("path+file:///work/crates/core#corelib@0.2.0", "corelib"),
        ("registry+https://github.com/rust-lang/crates.io-index#rand@0.8.5", "rand"),
    ],
)
def test_package_name(package_id: str, expected: str) -> None:
    artifact = TestArtifact(package_id, "t", Path("/bin/t"))
    assert artifact.package_name == expected


def test_artifacts_sort_by_package_then_target() -> None:
    artifacts = [
        TestArtifact("b 0.1.0", "alpha", Path("/z")),
        TestArtifact("a 0.1.0", "zeta", Path("/y")),
        TestArtifact("a 0.1.0", "beta", Path("/x")),
    ]

    ordered = [(a.package_id, a.target_name) for a in sorted(artifacts)]

    assert ordered == [("a 0.1.0", "beta"), ("a 0.1.0", "zeta"), ("b 0.1.0", "alpha")]


def test_tied_lib_and_bin_sort_by_executable() -> None:
    lib = TestArtifact("foo 0.1.0", "foo", Path("/t/deps/foo-aaaa"))
    bin_ = TestArtifact("foo 0.1.0", "foo", Path("/t/deps/foo-bbbb"))

    assert sorted([lib, bin_]) == [lib, bin_]
    assert sorted([bin_, lib]) == [lib, bin_]
    assert lib != bin_


def test_output_dir_is_per_executable_name(tmp_path: Path) -> None:
    request = CoverageRequest(
        kcov_path=Path("kcov"),
        workspace_root=tmp_path,
        target_dir=tmp_path / "target",
        merge_dir=tmp_path / "target" / "kcov",
    )

    out = request.output_dir_for(tmp_path / "target" / "debug" / "deps" / "foo-1234")

    assert out == tmp_path / "target" / "kcov-foo-1234"


def test_result_tracks_failures(tmp_path: Path) -> None:
    ok = RunOutcome(TestArtifact("a", "ok", Path("/ok")), tmp_path / "kcov-ok")
    error = ProcessError.for_command("kcov", ["--verify"], 1)
    bad = RunOutcome(TestArtifact("a", "bad", Path("/bad")), tmp_path / "kcov-bad", error)

    result = CoverageResult(merge_dir=tmp_path / "kcov", outcomes=[ok, bad])

    assert ok.success
    assert not bad.success
    assert result.merged_dirs == [tmp_path / "kcov-ok", tmp_path / "kcov-bad"]
    assert result.failures == [bad]
