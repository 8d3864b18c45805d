"""External process invocation with uniform diagnostics.

Every external tool (cargo, kcov, wget, unzip, cmake, make) is started
through :class:`Process` so that a failure always names the program and
its full argument vector:

- the program could not be started -> :class:`SpawnError`
- the program exited non-zero -> :class:`ProcessError` (with captured
  output when it was requested)

Usage::

    from cargoci.core.process import Process

    Process("make", cwd=build_dir).exec()

    child = Process("cargo", ["test", "--no-run"]).spawn()
    for line in child.stdout_lines():
        ...
    child.wait_success()
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

import structlog

from cargoci.core.errors import ProcessError, SpawnError, format_command

log = structlog.get_logger()


class Process:
    """A program plus its recorded argument list.

    ``env`` is an additional-environment map applied on top of the current
    environment for this invocation only; the parent's ``os.environ`` is
    never mutated.
    """

    def __init__(
        self,
        program: str | Path,
        args: Iterable[str | Path] = (),
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.program = str(program)
        self.args: list[str] = [str(a) for a in args]
        self.cwd = Path(cwd) if cwd is not None else None
        self.env: dict[str, str] = dict(env or {})

    def arg(self, value: str | Path) -> Process:
        self.args.append(str(value))
        return self

    def extend(self, values: Iterable[str | Path]) -> Process:
        self.args.extend(str(v) for v in values)
        return self

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def __str__(self) -> str:
        return format_command(self.program, self.args)

    def __repr__(self) -> str:
        return f"Process({str(self)!r})"

    def _child_env(self) -> dict[str, str] | None:
        if not self.env:
            return None
        return {**os.environ, **self.env}

    def _spawn_error(self, exc: OSError) -> SpawnError:
        return SpawnError.for_command(self.program, self.args, exc)

    def status(self) -> int:
        """Run to completion with inherited stdio and return the exit code."""
        log.debug("process_run", command=str(self), cwd=str(self.cwd or "."), env=self.env)
        try:
            completed = subprocess.run(
                self.argv,
                cwd=self.cwd,
                env=self._child_env(),
                check=False,
            )
        except OSError as e:
            raise self._spawn_error(e) from e
        return completed.returncode

    def exec(self) -> None:
        """Run to completion; a non-zero exit raises ProcessError."""
        code = self.status()
        if code != 0:
            raise ProcessError.for_command(self.program, self.args, code)

    def output(self, input: str | None = None) -> subprocess.CompletedProcess[str]:
        """Run to completion capturing stdout and stderr, optionally feeding stdin."""
        log.debug("process_output", command=str(self), cwd=str(self.cwd or "."))
        try:
            return subprocess.run(
                self.argv,
                cwd=self.cwd,
                env=self._child_env(),
                input=input,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise self._spawn_error(e) from e

    def exec_with_output(self) -> subprocess.CompletedProcess[str]:
        """Like :meth:`output` but a non-zero exit raises ProcessError with the output."""
        result = self.output()
        if result.returncode != 0:
            raise ProcessError.for_command(
                self.program,
                self.args,
                result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result

    def spawn(self) -> Child:
        """Start with stdout piped; stderr stays attached to ours."""
        log.debug("process_spawn", command=str(self), cwd=str(self.cwd or "."), env=self.env)
        try:
            popen = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                env=self._child_env(),
                stdout=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise self._spawn_error(e) from e
        return Child(self, popen)


class Child:
    """A running process started by :meth:`Process.spawn`."""

    def __init__(self, process: Process, popen: subprocess.Popen[str]) -> None:
        self.process = process
        self._popen = popen

    @property
    def pid(self) -> int:
        return self._popen.pid

    def stdout_lines(self) -> Iterator[str]:
        """Yield stdout lines lazily, without trailing newlines."""
        assert self._popen.stdout is not None
        for line in self._popen.stdout:
            yield line.rstrip("\r\n")

    def wait(self) -> int:
        if self._popen.stdout is not None and not self._popen.stdout.closed:
            # Drain so the child never blocks on a full pipe
            for _ in self._popen.stdout:
                pass
            self._popen.stdout.close()
        return self._popen.wait()

    def wait_success(self) -> None:
        code = self.wait()
        if code != 0:
            raise ProcessError.for_command(self.process.program, self.process.args, code)
