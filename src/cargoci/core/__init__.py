"""Core module exports."""

from cargoci.core.errors import (
    CargoCIError,
    ConfigError,
    ErrorCode,
    FailedTest,
    MetadataError,
    ProcessError,
    SpawnError,
    TestFailure,
    ValidationError,
)
from cargoci.core.logging import configure_logging, get_logger, verbosity_level
from cargoci.core.process import Child, Process
from cargoci.core.progress import byte_progress, shell_status, status

__all__ = [
    # Errors
    "CargoCIError",
    "ConfigError",
    "ErrorCode",
    "FailedTest",
    "MetadataError",
    "ProcessError",
    "SpawnError",
    "TestFailure",
    "ValidationError",
    # Logging
    "configure_logging",
    "get_logger",
    "verbosity_level",
    # Processes
    "Child",
    "Process",
    # Progress
    "byte_progress",
    "shell_status",
    "status",
]
