"""Cargo ``--message-format=json`` stream parsing.

Each stdout line of ``cargo test --no-run --message-format=json`` is one JSON
object tagged by ``reason``. Only two kinds matter here:

- ``compiler-message``: a rustc diagnostic, forwarded to the user verbatim
- ``compiler-artifact``: a produced artifact; test-profile executables are
  the binaries to run under kcov

Everything else (build-script output, ``build-finished``, non-JSON noise,
artifact records of the wrong shape) is an :class:`OtherEvent`.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cargoci.coverage.models import TestArtifact

REASON_MESSAGE = "compiler-message"
REASON_ARTIFACT = "compiler-artifact"


@dataclass(frozen=True)
class CompilerMessage:
    """A compiler diagnostic to forward to the user."""

    rendered: str


@dataclass(frozen=True)
class CompilerArtifact:
    """An artifact produced by the build."""

    package_id: str
    target_name: str
    executable: Path | None
    is_test: bool

    def as_test_artifact(self) -> TestArtifact | None:
        """The runnable test binary, or None if this artifact is not one."""
        if not self.is_test or self.executable is None:
            return None
        return TestArtifact(
            package_id=self.package_id,
            target_name=self.target_name,
            executable=self.executable,
            is_test=True,
        )


@dataclass(frozen=True)
class OtherEvent:
    """Any line that is neither a diagnostic nor an artifact."""

    reason: str | None
    raw: str


BuildEvent = CompilerMessage | CompilerArtifact | OtherEvent


def _parse_message(data: dict[str, Any], raw: str) -> CompilerMessage:
    message = data.get("message") or {}
    rendered = message.get("rendered") if isinstance(message, dict) else None
    if not isinstance(rendered, str):
        rendered = raw
    return CompilerMessage(rendered=rendered.rstrip("\n"))


def _parse_artifact(data: dict[str, Any]) -> CompilerArtifact | None:
    """None when the record does not have the documented shape."""
    target = data.get("target") or {}
    profile = data.get("profile") or {}
    executable = data.get("executable")
    if not isinstance(target, dict) or not isinstance(profile, dict):
        return None
    if executable is not None and not isinstance(executable, str):
        return None
    return CompilerArtifact(
        package_id=str(data.get("package_id", "")),
        target_name=str(target.get("name", "")),
        executable=Path(executable) if executable else None,
        is_test=bool(profile.get("test", False)),
    )


def parse_event(line: str) -> BuildEvent:
    """Parse one line of the message stream."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return OtherEvent(reason=None, raw=line)
    if not isinstance(data, dict):
        return OtherEvent(reason=None, raw=line)

    reason = data.get("reason")
    if reason == REASON_MESSAGE:
        return _parse_message(data, line)
    if reason == REASON_ARTIFACT:
        artifact = _parse_artifact(data)
        if artifact is not None:
            return artifact
    return OtherEvent(reason=reason if isinstance(reason, str) else None, raw=line)


def iter_events(lines: Iterable[str]) -> Iterator[BuildEvent]:
    """Lazily parse a message stream, skipping blank lines."""
    for line in lines:
        if line.strip():
            yield parse_event(line)
