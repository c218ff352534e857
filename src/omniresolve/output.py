"""
Centralized user-facing output for omniresolve.

Every diagnostic line of a resolve pass is prefixed with the elapsed time since
the program started, in MM:SS.cc format (minutes:seconds.centiseconds), so a
slow SDK scan shows up directly in the build log.

Example output:
    00:00.01 omniresolve v0.3.1 (table: omnicapture, platform: Win64)
    00:00.02 [1/4] Scanning third-party modules...
    00:00.09       OpenEXR: 2 module(s)
    00:00.10 [2/4] Probing capabilities...
    00:00.10 NVENC support disabled - missing dependencies:
    00:00.10   - Header nvEncodeAPI.h (expected at ...)

Debug-level detail does not belong here; library modules use
``logging.getLogger(__name__)`` for that.

Usage:
    from omniresolve.output import log, log_phase, log_detail

    log_phase(1, 4, "Scanning third-party modules...")
    log_detail("OpenEXR: 2 module(s)")
"""

import logging
import sys
import time
from types import TracebackType
from typing import Optional, Sequence, TextIO

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = True
_output_file: Optional[TextIO] = None


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    If not called explicitly, it is called automatically on first log.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout at write time)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_output_stream(output_stream: Optional[TextIO]) -> None:
    """
    Redirect log output, e.g. to stderr while stdout carries JSON.

    Args:
        output_stream: Stream to write to, or None to go back to sys.stdout
    """
    global _output_stream
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for logging.

    Args:
        verbose: If True, all messages are printed. If False, verbose_only messages are dropped.
    """
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    return _verbose


def set_output_file(output_file: Optional[TextIO]) -> None:
    """
    Set a file to receive all log output (in addition to stdout).

    Args:
        output_file: File object to receive output, or None to disable file output
    """
    global _output_file
    _output_file = output_file


def get_elapsed() -> float:
    """Elapsed seconds since timer initialization."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """
    Format the current elapsed time as MM:SS.cc.

    Returns:
        Formatted timestamp string
    """
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    line = f"{format_timestamp()} {message}\n"
    # Resolve the stream lazily so pytest's capsys replacement is honoured
    stream = _output_stream if _output_stream is not None else sys.stdout
    stream.write(line)
    stream.flush()

    if _output_file is not None:
        _output_file.write(line)
        _output_file.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a resolve phase message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log a detail message (indented).

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_header(title: str, version: str, context: str = "") -> None:
    suffix = f" ({context})" if context else ""
    _print(f"{title} v{version}{suffix}")


def log_error(message: str) -> None:
    _print(f"ERROR: {message}")


def log_warning(message: str) -> None:
    _print(f"WARNING: {message}")


def log_capability(label: str, enabled: bool, missing: Sequence[str] = (), skipped_reason: Optional[str] = None) -> None:
    """
    Log the verdict for one capability.

    Disabled capabilities list every missing artifact on its own line so the
    operator sees the complete gap at once.

    Args:
        label: Display name of the capability (e.g. "NVENC")
        enabled: Probe verdict
        missing: Human-readable descriptions of missing artifacts
        skipped_reason: Set when the capability was not probed on this platform
    """
    if enabled:
        _print(f"{label} support enabled")
        return

    if skipped_reason:
        _print(f"{label} support disabled - {skipped_reason}")
        return

    if not missing:
        _print(f"{label} support disabled")
        return

    _print(f"{label} support disabled - missing dependencies:")
    for item in missing:
        _print(f"  - {item}")


class TimedLogger:
    """
    Context manager for logging a phase with elapsed time tracking.

    Usage:
        with TimedLogger("Staging runtime libraries", phase=(4, 4)) as logger:
            logger.detail("nvEncodeAPI64.dll -> Binaries/Win64")
        # Logs "Done (0.01s)" on successful exit
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=True)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this phase."""
        log_detail(message, verbose_only=self.verbose_only)
