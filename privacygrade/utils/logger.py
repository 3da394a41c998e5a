"""
Logging utility with timestamps and context prefixes.
Provides structured, colourful console output for engine events.
Optionally mirrors lines to a per-day log file when WRITE_TO_FILE is set.

The recent-lines buffer is stored in a ``contextvars.ContextVar`` so
that concurrent request handlers each see their own diagnostics.
"""

from __future__ import annotations

import contextvars
import io
import os
import pathlib
import re
import sys
import threading
from datetime import UTC, datetime

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

# Upper bound on buffered lines per context.
_BUFFER_LIMIT = 500

_log_buffer_var: contextvars.ContextVar[list[str]] = contextvars.ContextVar("_log_buffer_var")


def _get_log_buffer() -> list[str]:
    """Return the per-context log buffer, creating it on first access."""
    try:
        return _log_buffer_var.get()
    except LookupError:
        buf: list[str] = []
        _log_buffer_var.set(buf)
        return buf


def get_log_buffer() -> list[str]:
    """Return a copy of the buffered log lines (ANSI-stripped)."""
    return list(_get_log_buffer())


def clear_log_buffer() -> None:
    """Drop all buffered log lines for the current context."""
    _get_log_buffer().clear()


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() == "true"


# ============================================================================
# File Logging
# ============================================================================

_file_lock = threading.Lock()
_file_stream: io.TextIOWrapper | None = None


def _open_log_file() -> io.TextIOWrapper | None:
    """Open today's log file under ``.logs/`` on first use."""
    global _file_stream
    if _file_stream is not None:
        return _file_stream

    logs_dir = pathlib.Path.cwd() / ".logs"
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        path = logs_dir / f"privacygrade_{datetime.now(UTC).strftime('%Y-%m-%d')}.log"
        _file_stream = open(path, "a", encoding="utf-8")  # noqa: SIM115
    except OSError as exc:
        print(f"\033[31m✗ [Logger] Failed to open log file: {exc}\033[0m", file=sys.stderr)
        return None
    return _file_stream


def _write_to_log_file(line: str) -> None:
    """Append a line to the log file (without ANSI colours)."""
    if not _env_flag("WRITE_TO_FILE"):
        return
    with _file_lock:
        stream = _open_log_file()
        if stream is None:
            return
        stream.write(_ANSI_RE.sub("", line) + "\n")
        stream.flush()


# ============================================================================
# ANSI Colours
# ============================================================================

_colours = {
    "reset": "\033[0m",
    "bright": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "blue": "\033[34m",
    "gray": "\033[90m",
}

_level_colour = {
    "info": _colours["cyan"],
    "success": _colours["green"],
    "warn": _colours["yellow"],
    "error": _colours["red"],
    "debug": _colours["gray"],
}

_level_symbol = {
    "info": "ℹ",
    "success": "✓",
    "warn": "⚠",
    "error": "✗",
    "debug": "•",
}


def _get_timestamp() -> str:
    """Return the current UTC time as HH:MM:SS.mmm."""
    now = datetime.now(UTC)
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"


def _format_value(value: object) -> str:
    """Return an ANSI-coloured representation of *value*."""
    c = _colours
    if value is None:
        return f"{c['dim']}None{c['reset']}"
    if isinstance(value, bool):
        return f"{c['green']}True{c['reset']}" if value else f"{c['red']}False{c['reset']}"
    if isinstance(value, (int, float)):
        return f"{c['yellow']}{value}{c['reset']}"
    if isinstance(value, str):
        display = value[:197] + "..." if len(value) > 200 else value
        return f'{c["green"]}"{display}"{c["reset"]}'
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"{c['cyan']}[{len(value)} items]{c['reset']}"
    if isinstance(value, dict):
        return f"{c['cyan']}{{{len(value)} keys}}{c['reset']}"
    return str(value)


# ============================================================================
# Logger Class
# ============================================================================


class Logger:
    """Structured logger with context prefix."""

    def __init__(self, context: str = "Engine") -> None:
        """Create a logger that prefixes messages with *context*."""
        self._context = context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        """Format and emit a log line at the given level."""
        ts = _get_timestamp()
        colour = _level_colour.get(level, _colours["cyan"])
        symbol = _level_symbol.get(level, "ℹ")
        c = _colours

        prefix = f"{c['gray']}[{ts}]{c['reset']} {colour}{symbol}{c['reset']} {c['bright']}[{self._context}]{c['reset']}"

        if data:
            data_str = " ".join(f"{c['dim']}{k}={c['reset']}{_format_value(v)}" for k, v in data.items())
            log_line = f"{prefix} {message} {data_str}"
        else:
            log_line = f"{prefix} {message}"

        print(log_line, file=sys.stderr)
        _write_to_log_file(log_line)

        buf = _get_log_buffer()
        buf.append(_ANSI_RE.sub("", log_line))
        if len(buf) > _BUFFER_LIMIT:
            del buf[: len(buf) - _BUFFER_LIMIT]

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an informational message."""
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a success message."""
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a warning message."""
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an error message."""
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a debug-level message when PRIVACYGRADE_DEBUG is enabled.

        Request and signal events are logged at this level, so they are
        hidden by default to keep busy pages readable.
        """
        if _env_flag("PRIVACYGRADE_DEBUG"):
            self._log("debug", message, data)

    def section(self, title: str) -> None:
        """Print a prominent section divider with *title*."""
        c = _colours
        line = "─" * 60
        for ln in ("", f"{c['blue']}{line}{c['reset']}", f"{c['blue']}{c['bright']}  {title}{c['reset']}", f"{c['blue']}{line}{c['reset']}", ""):
            print(ln, file=sys.stderr)
            _write_to_log_file(ln)


def create_logger(context: str) -> Logger:
    """Create a logger for a specific module."""
    return Logger(context)
