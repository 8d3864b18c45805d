"""User-facing progress feedback for CLI operations.

Design principles:
- Cargo-style status lines ("   Compiled foo") on stderr
- Progress bar for long byte copies when stderr is a TTY
- Graceful degradation in non-TTY (CI logs get "N/M MiB" lines)
- Suppress structlog console output during live displays

Usage::

    from cargoci.core.progress import shell_status, status, byte_progress

    shell_status("Running", "target/debug/deps/foo-1234")
    status("Nothing to publish", style="warning")

    with byte_progress(total_bytes, desc="Copying docs") as bar:
        bar.update(copied_bytes)
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TaskProgressColumn,
    TextColumn,
)

MIB_SHIFT = 20

# Console for output
_console = Console(stderr=True)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Global flag to suppress console logging during live displays
_suppress_console_logs = threading.local()


def is_console_suppressed() -> bool:
    """Check if console logging is currently suppressed."""
    return getattr(_suppress_console_logs, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Context manager to suppress structlog console output.

    Used during progress bars to prevent log lines from colliding with
    Rich's live display. Logs are still written to file handlers.
    """
    _suppress_console_logs.active = True
    try:
        yield
    finally:
        _suppress_console_logs.active = False


def _is_tty() -> bool:
    """Check if stderr is a TTY."""
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    """Get the shared Rich console instance."""
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False, markup=True)

    structlog.get_logger().debug("status", message=message, style=style)


def shell_status(verb: str, message: str, *, error: bool = False) -> None:
    """Print a cargo-style status line: right-aligned bold verb, then message."""
    color = "red" if error else "green"
    _console.print(f"[bold {color}]{verb:>12}[/bold {color}] ", end="", highlight=False)
    _console.print(message, highlight=False, markup=False)
    structlog.get_logger().debug("shell_status", verb=verb, message=message)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "file")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 file" or "3 files"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


class ByteProgress:
    """Progress sink for a byte-counted operation.

    On a TTY it drives a Rich progress bar. Otherwise it prints a
    ``copied/total MiB`` line each time another whole MiB has been copied,
    so a large copy never goes silent in CI logs.
    """

    def __init__(self, total: int, progress: Progress | None, task_id: TaskID | None) -> None:
        self.total = total
        self.copied = 0
        self._progress = progress
        self._task_id = task_id
        self._last_mib = 0

    def update(self, copied: int) -> None:
        self.copied = copied
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=copied)
            return
        mib = copied >> MIB_SHIFT
        if mib > self._last_mib:
            self._last_mib = mib
            _console.print(f"{mib}/{self.total >> MIB_SHIFT} MiB", highlight=False)

    def advance(self, nbytes: int) -> None:
        self.update(self.copied + nbytes)


@contextmanager
def byte_progress(total: int, *, desc: str = "Copying") -> Iterator[ByteProgress]:
    """Yield a :class:`ByteProgress` for ``total`` bytes."""
    if not _is_tty():
        yield ByteProgress(total, None, None)
        return

    with (
        suppress_console_logs(),
        Progress(
            TextColumn("    {task.description}:"),
            BarColumn(bar_width=25, style="cyan", complete_style="cyan"),
            TaskProgressColumn(),
            DownloadColumn(binary_units=True),
            console=_console,
            transient=True,
        ) as pbar,
    ):
        task_id = pbar.add_task(desc, total=total)
        yield ByteProgress(total, pbar, task_id)
