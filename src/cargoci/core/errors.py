"""cargo-ci error types with typed error codes.

Error code ranges:
- 1xxx: External processes
- 2xxx: Config and validation
- 3xxx: Tests
- 4xxx: Project metadata
- 9xxx: Internal

Every variant carries structured fields so callers can decide fatal vs.
recoverable with ``isinstance`` instead of parsing messages.
"""

import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

# Exit code used when a failure carries no child exit status of its own.
GENERIC_FAILURE_EXIT = 101


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Process (1xxx)
    PROCESS_SPAWN_FAILED = 1001
    PROCESS_FAILED = 1002

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Validation (21xx)
    NO_TESTS_FOUND = 2101
    PATH_ESCAPE = 2102
    MISSING_ENV = 2103
    NO_DOCUMENTATION = 2104
    KCOV_UNAVAILABLE = 2105

    # Test (3xxx)
    TEST_FAILED = 3001
    TESTS_FAILED = 3002

    # Metadata (4xxx)
    METADATA_UNAVAILABLE = 4001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


def format_command(program: str, args: Sequence[str]) -> str:
    """Render a program and its arguments as a copy-pasteable command line."""
    return shlex.join([program, *args])


@dataclass(eq=False)
class CargoCIError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PROCESS_FAILED')."""
        return self.code.name

    @property
    def exit_code(self) -> int:
        """Process exit code the CLI should terminate with."""
        return 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


@dataclass(eq=False, kw_only=True)
class SpawnError(CargoCIError):
    """An external program could not be started at all."""

    program: str
    arguments: tuple[str, ...]
    cause: str

    @property
    def exit_code(self) -> int:
        return GENERIC_FAILURE_EXIT

    @classmethod
    def for_command(cls, program: str, args: Sequence[str], cause: OSError) -> "SpawnError":
        command = format_command(program, args)
        return cls(
            ErrorCode.PROCESS_SPAWN_FAILED,
            f"could not execute process `{command}`: {cause}",
            {"command": command},
            program=program,
            arguments=tuple(args),
            cause=str(cause),
        )


@dataclass(eq=False, kw_only=True)
class ProcessError(CargoCIError):
    """An external program started but exited unsuccessfully."""

    program: str
    arguments: tuple[str, ...]
    returncode: int
    stdout: str | None = None
    stderr: str | None = None

    @property
    def command(self) -> str:
        return format_command(self.program, self.arguments)

    @property
    def exit_code(self) -> int:
        # Negative return codes mean the child died from a signal
        return self.returncode if self.returncode > 0 else GENERIC_FAILURE_EXIT

    @classmethod
    def for_command(
        cls,
        program: str,
        args: Sequence[str],
        returncode: int,
        *,
        stdout: str | None = None,
        stderr: str | None = None,
    ) -> "ProcessError":
        command = format_command(program, args)
        lines = [f"process didn't exit successfully: `{command}` (exit status: {returncode})"]
        if stdout:
            lines.append(f"--- stdout\n{stdout.rstrip()}")
        if stderr:
            lines.append(f"--- stderr\n{stderr.rstrip()}")
        return cls(
            ErrorCode.PROCESS_FAILED,
            "\n".join(lines),
            {"command": command, "returncode": returncode},
            program=program,
            arguments=tuple(args),
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )


@dataclass(frozen=True, slots=True)
class FailedTest:
    """One test binary that exited unsuccessfully under coverage."""

    package_id: str
    target_name: str
    error: ProcessError
    package_name: str = ""

    @property
    def label(self) -> str:
        """``name (target)``, falling back to the full package id."""
        return f"{self.package_name or self.package_id} ({self.target_name})"


@dataclass(eq=False, kw_only=True)
class TestFailure(CargoCIError):
    """One or more test binaries failed."""

    __test__ = False

    failures: tuple[FailedTest, ...]

    @property
    def single(self) -> bool:
        return self.code == ErrorCode.TEST_FAILED

    @property
    def exit_code(self) -> int:
        if not self.failures:
            return GENERIC_FAILURE_EXIT
        return self.failures[0].error.exit_code

    @classmethod
    def single_test(cls, failure: FailedTest) -> "TestFailure":
        return cls(
            ErrorCode.TEST_FAILED,
            f"test failed in {failure.label}\n{failure.error.message}",
            {"package_id": failure.package_id, "target": failure.target_name},
            failures=(failure,),
        )

    @classmethod
    def multiple(cls, failures: Sequence[FailedTest]) -> "TestFailure":
        names = ", ".join(f.label for f in failures)
        return cls(
            ErrorCode.TESTS_FAILED,
            f"{len(failures)} test binaries failed: {names}",
            {"failed": [f.target_name for f in failures]},
            failures=tuple(failures),
        )


class ValidationError(CargoCIError):
    """A caller-detectable precondition was violated."""

    @classmethod
    def no_tests(cls) -> "ValidationError":
        return cls(
            code=ErrorCode.NO_TESTS_FOUND,
            message="no test binaries were produced by the build; nothing to measure",
        )

    @classmethod
    def path_escape(cls, path: str, root: str) -> "ValidationError":
        return cls(
            code=ErrorCode.PATH_ESCAPE,
            message=f"publish path {path!r} resolves outside the working copy {root!r}",
            details={"path": path, "root": root},
        )

    @classmethod
    def missing_env(cls, name: str) -> "ValidationError":
        return cls(
            code=ErrorCode.MISSING_ENV,
            message=f"required environment variable ${name} is not set",
            details={"variable": name},
        )

    @classmethod
    def no_documentation(cls, path: str) -> "ValidationError":
        return cls(
            code=ErrorCode.NO_DOCUMENTATION,
            message=f"no documentation generated (could not read {path})",
            details={"path": path},
        )

    @classmethod
    def kcov_unavailable(cls, location: str) -> "ValidationError":
        return cls(
            code=ErrorCode.KCOV_UNAVAILABLE,
            message=f"kcov was not found and could not be built in {location}",
            details={"location": location},
        )


class MetadataError(CargoCIError):
    """Project metadata (package version) could not be read."""

    @classmethod
    def unavailable(cls, path: str, reason: str) -> "MetadataError":
        return cls(
            code=ErrorCode.METADATA_UNAVAILABLE,
            message=f"couldn't read package metadata from {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ConfigError(CargoCIError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )
