"""Tests for core/process.py - external process invocation."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from cargoci.core.errors import ProcessError, SpawnError
from cargoci.core.process import Process


class TestProcessBuilder:
    def test_argv_and_str(self) -> None:
        process = Process("cargo", ["test"]).arg("--no-run").extend(["-p", Path("foo")])

        assert process.argv == ["cargo", "test", "--no-run", "-p", "foo"]
        assert str(process) == "cargo test --no-run -p foo"
        assert repr(process) == "Process('cargo test --no-run -p foo')"

    def test_no_extra_env_inherits_parent(self) -> None:
        assert Process("true")._child_env() is None

    def test_extra_env_layers_over_parent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CARGOCI_PARENT", "kept")
        monkeypatch.delenv("RUSTFLAGS", raising=False)

        env = Process("true", env={"RUSTFLAGS": "-C link-dead-code"})._child_env()

        assert env is not None
        assert env["CARGOCI_PARENT"] == "kept"
        assert env["RUSTFLAGS"] == "-C link-dead-code"
        assert "RUSTFLAGS" not in os.environ


class TestStatusAndExec:
    def test_status_returns_exit_code(self, make_script: Callable[[str, str], Path]) -> None:
        script = make_script("exit3", "exit 3\n")
        assert Process(script).status() == 3

    def test_exec_raises_with_exit_code(self, make_script: Callable[[str, str], Path]) -> None:
        script = make_script("exit7", "exit 7\n")

        with pytest.raises(ProcessError) as exc_info:
            Process(script, ["a", "b c"]).exec()

        assert exc_info.value.returncode == 7
        assert exc_info.value.arguments == ("a", "b c")
        assert exc_info.value.exit_code == 7

    def test_exec_success(self, make_script: Callable[[str, str], Path]) -> None:
        Process(make_script("ok", "exit 0\n")).exec()

    def test_missing_program_raises_spawn_error(self, tmp_path: Path) -> None:
        with pytest.raises(SpawnError) as exc_info:
            Process(tmp_path / "does-not-exist", ["--flag"]).exec()

        assert exc_info.value.arguments == ("--flag",)
        assert exc_info.value.exit_code == 101

    def test_cwd_and_env_reach_child(
        self, tmp_path: Path, make_script: Callable[[str, str], Path]
    ) -> None:
        script = make_script("show", 'echo "$PWD:$CARGOCI_VALUE"\n')
        workdir = tmp_path / "work"
        workdir.mkdir()

        result = Process(script, cwd=workdir, env={"CARGOCI_VALUE": "x"}).output()

        assert result.stdout.strip() == f"{workdir}:x"
        assert "CARGOCI_VALUE" not in os.environ


class TestOutput:
    def test_exec_with_output_attaches_captured_streams(
        self, make_script: Callable[[str, str], Path]
    ) -> None:
        script = make_script("noisy", "echo out\necho err >&2\nexit 4\n")

        with pytest.raises(ProcessError) as exc_info:
            Process(script).exec_with_output()

        assert exc_info.value.stdout == "out\n"
        assert exc_info.value.stderr == "err\n"
        assert "--- stderr" in exc_info.value.message

    def test_output_feeds_stdin(self, make_script: Callable[[str, str], Path]) -> None:
        script = make_script("echo-stdin", "cat\n")
        assert Process(script).output(input="hello\n").stdout == "hello\n"


class TestSpawn:
    def test_lines_are_streamed_without_newlines(
        self, make_script: Callable[[str, str], Path]
    ) -> None:
        script = make_script("lines", "printf 'one\\r\\ntwo\\nthree'\n")

        child = Process(script).spawn()
        lines = list(child.stdout_lines())

        assert lines == ["one", "two", "three"]
        assert child.wait() == 0

    def test_wait_drains_unread_output(self, make_script: Callable[[str, str], Path]) -> None:
        script = make_script(
            "many", "i=0\nwhile [ $i -lt 20000 ]; do echo line$i; i=$((i+1)); done\n"
        )

        child = Process(script).spawn()

        assert child.wait() == 0

    def test_wait_success_raises_on_failure(
        self, make_script: Callable[[str, str], Path]
    ) -> None:
        script = make_script("fail", "echo partial\nexit 101\n")

        child = Process(script, ["--no-run"]).spawn()
        assert list(child.stdout_lines()) == ["partial"]

        with pytest.raises(ProcessError) as exc_info:
            child.wait_success()
        assert exc_info.value.returncode == 101
        assert exc_info.value.arguments == ("--no-run",)

    def test_spawn_missing_program(self, tmp_path: Path) -> None:
        with pytest.raises(SpawnError):
            Process(tmp_path / "nope").spawn()
