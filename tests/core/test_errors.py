"""Tests for error types and codes."""

from contextlib import contextmanager

import pytest

from cargoci.core.errors import (
    GENERIC_FAILURE_EXIT,
    CargoCIError,
    ConfigError,
    ErrorCode,
    FailedTest,
    MetadataError,
    ProcessError,
    SpawnError,
    TestFailure,
    ValidationError,
    format_command,
)


def _process_error(returncode: int = 3) -> ProcessError:
    return ProcessError.for_command("kcov", ["--verify", "out", "target/debug/foo"], returncode)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.PROCESS_SPAWN_FAILED, 1000),
            (ErrorCode.PROCESS_FAILED, 1000),
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.PATH_ESCAPE, 2000),
            (ErrorCode.TESTS_FAILED, 3000),
            (ErrorCode.METADATA_UNAVAILABLE, 4000),
            (ErrorCode.INTERNAL_ERROR, 9000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        assert expected_range <= code.value < expected_range + 1000


class TestCargoCIError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        error = CargoCIError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            details={"key": "value"},
        )

        result = error.to_dict()

        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "details": {"key": "value"},
        }

    def test_str_includes_code_and_name(self) -> None:
        error = CargoCIError(code=ErrorCode.INTERNAL_ERROR, message="boom")
        assert str(error) == "[9001] INTERNAL_ERROR: boom"

    def test_default_exit_code_is_one(self) -> None:
        assert CargoCIError(code=ErrorCode.INTERNAL_ERROR, message="x").exit_code == 1

    def test_is_raisable(self) -> None:
        with pytest.raises(CargoCIError, match="boom"):
            raise CargoCIError(code=ErrorCode.INTERNAL_ERROR, message="boom")

    @pytest.mark.parametrize(
        "error",
        [
            SpawnError.for_command("kcov", [], FileNotFoundError(2, "No such file")),
            ProcessError.for_command("kcov", ["--merge"], 7),
            TestFailure.multiple([FailedTest("a", "alpha", ProcessError.for_command("t", [], 1))]),
            ValidationError.no_tests(),
            MetadataError.unavailable("Cargo.toml", "missing"),
        ],
        ids=lambda e: type(e).__name__,
    )
    def test_survives_context_manager_exit(self, error: CargoCIError) -> None:
        @contextmanager
        def scope():
            yield

        with pytest.raises(type(error)) as exc_info:
            with scope():
                raise error

        assert exc_info.value is error
        assert error.__traceback__ is not None


class TestFormatCommand:
    def test_quotes_arguments_with_spaces(self) -> None:
        command = format_command("cargo", ["test", "--features", "a b"])
        assert command == "cargo test --features 'a b'"


class TestProcessErrors:
    """SpawnError / ProcessError."""

    def test_spawn_error_names_command_and_exits_101(self) -> None:
        cause = FileNotFoundError(2, "No such file or directory")

        error = SpawnError.for_command("kcov", ["--version"], cause)

        assert error.code == ErrorCode.PROCESS_SPAWN_FAILED
        assert "`kcov --version`" in error.message
        assert error.program == "kcov"
        assert error.arguments == ("--version",)
        assert error.exit_code == GENERIC_FAILURE_EXIT

    def test_process_error_carries_exit_status(self) -> None:
        error = _process_error(3)

        assert error.returncode == 3
        assert error.exit_code == 3
        assert error.command == "kcov --verify out target/debug/foo"
        assert "(exit status: 3)" in error.message

    def test_signal_death_maps_to_generic_exit(self) -> None:
        assert _process_error(-9).exit_code == GENERIC_FAILURE_EXIT

    def test_captured_output_is_included(self) -> None:
        error = ProcessError.for_command("make", [], 2, stdout="out\n", stderr="err\n")

        assert "--- stdout\nout" in error.message
        assert "--- stderr\nerr" in error.message
        assert error.stderr == "err\n"


class TestTestFailure:
    def test_single_uses_child_exit_code(self) -> None:
        failure = FailedTest("foo 0.1.0 (path+file:///foo)", "foo", _process_error(101))

        error = TestFailure.single_test(failure)

        assert error.single
        assert error.exit_code == 101
        assert "foo 0.1.0" in error.message

    def test_label_prefers_package_name(self) -> None:
        failure = FailedTest(
            "foo 0.1.0 (path+file:///foo)", "it", _process_error(), package_name="foo"
        )

        assert failure.label == "foo (it)"
        assert TestFailure.single_test(failure).message.startswith("test failed in foo (it)\n")

    def test_multiple_lists_every_failure(self) -> None:
        failures = [
            FailedTest("a", "alpha", _process_error(1)),
            FailedTest("b", "beta", _process_error(2)),
        ]

        error = TestFailure.multiple(failures)

        assert not error.single
        assert error.code == ErrorCode.TESTS_FAILED
        assert len(error.failures) == 2
        assert "a (alpha)" in error.message and "b (beta)" in error.message
        assert error.exit_code == 1

    def test_no_failures_falls_back_to_generic_exit(self) -> None:
        error = TestFailure(ErrorCode.TESTS_FAILED, "none", failures=())
        assert error.exit_code == GENERIC_FAILURE_EXIT


class TestFactories:
    def test_validation_factories(self) -> None:
        assert ValidationError.no_tests().code == ErrorCode.NO_TESTS_FOUND
        assert ValidationError.path_escape("../x", "/wc").details == {"path": "../x", "root": "/wc"}
        assert "$TRAVIS_JOB_ID" in ValidationError.missing_env("TRAVIS_JOB_ID").message
        assert ValidationError.no_documentation("target/doc").exit_code == 1

    def test_metadata_error(self) -> None:
        error = MetadataError.unavailable("Cargo.toml", "missing")
        assert error.details["reason"] == "missing"

    def test_config_errors(self) -> None:
        assert ConfigError.parse_error("x.yaml", "bad").code == ErrorCode.CONFIG_PARSE_ERROR
        invalid = ConfigError.invalid_value("logging.level", "LOUD", "bad level")
        assert invalid.details["value"] == "LOUD"
