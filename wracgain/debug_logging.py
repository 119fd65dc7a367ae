"""A development logger that writes to stderr and to a per-session log file.

Plugins running inside a host often have no visible stderr, so during
development every record is also written to a file that is truncated at the
start of each session.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import IO, Mapping

LOG_ENV_VAR = "WRACGAIN_LOG"

TRACE = 5
OFF = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "off": OFF,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_FORBIDDEN_FILE_CHARS = frozenset('<>:"/\\|?*')

_init_lock = threading.Lock()
_installed_handler: DebugFileHandler | None = None


def _level_label(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    if levelno >= logging.DEBUG:
        return "DEBUG"
    return "TRACE"


def local_timestamp_millis() -> str:
    """The local time as `YYYY-MM-DD HH:MM:SS.mmm`."""
    now = datetime.now().astimezone()
    return f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:03d}"


class DebugFileHandler(logging.Handler):
    """Writes each record as one line to stderr and, if open, to a log file."""

    def __init__(
        self,
        file: IO[str] | None = None,
        level: int = logging.DEBUG,
        stream: IO[str] | None = None,
    ) -> None:
        super().__init__(level)
        self.file = file
        self._stream = stream

    @property
    def stream(self) -> IO[str]:
        return self._stream if self._stream is not None else sys.stderr

    def _write(self, line: str) -> None:
        try:
            self.stream.write(line)
        except (OSError, ValueError):
            pass
        if self.file is not None:
            try:
                self.file.write(line)
                self.file.flush()
            except (OSError, ValueError):
                pass

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except Exception:  # a bad format string must not break the caller
            self.handleError(record)
            return
        line = (
            f"{local_timestamp_millis()} [{_level_label(record.levelno)}] "
            f"{record.name} - {message}\n"
        )
        self._write(line)

    def flush(self) -> None:
        self.acquire()
        try:
            try:
                self.stream.flush()
            except (OSError, ValueError):
                pass
            if self.file is not None:
                try:
                    self.file.flush()
                except (OSError, ValueError):
                    pass
        finally:
            self.release()

    def write_session_header(self, app_name: str) -> None:
        """Mark the start of a logging session."""
        line = (
            f"\n================ {app_name} session started at "
            f"{local_timestamp_millis()} ================\n"
        )
        self.acquire()
        try:
            self._write(line)
        finally:
            self.release()

    def close(self) -> None:
        self.acquire()
        try:
            if self.file is not None:
                try:
                    self.file.close()
                except OSError:
                    pass
                self.file = None
        finally:
            self.release()
        super().close()


def parse_level_filter(value: str) -> int | None:
    """Parse a level such as `debug` or the last directive of `a=info,b=warn`."""
    directive = value.rsplit(",", 1)[-1]
    word = directive.rsplit("=", 1)[-1].strip().lower()
    return _LEVELS.get(word)


def sanitize_file_stem(value: str) -> str:
    """Make `value` safe to use as a file name stem on every platform."""
    sanitized = "".join(
        "_"
        if unicodedata.category(ch) == "Cc" or ch in _FORBIDDEN_FILE_CHARS
        else ch
        for ch in value
    ).strip()
    return sanitized or "Plugin"


def default_log_file(app_name: str, root: str | os.PathLike[str] | None = None) -> Path:
    """`<root>/.log/<app name> Latest.log`, root defaulting to the working directory."""
    base = Path(root) if root is not None else Path.cwd()
    return base / ".log" / f"{sanitize_file_stem(app_name)} Latest.log"


def open_log_file(path: str | os.PathLike[str]) -> IO[str] | None:
    """Open `path` for writing, truncating it; report failures and return None."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        print(
            f"[wracgain] failed to create log directory '{path.parent}': {error}",
            file=sys.stderr,
        )
        return None
    try:
        return open(path, "w", encoding="utf-8")
    except OSError as error:
        print(f"[wracgain] failed to open log file '{path}': {error}", file=sys.stderr)
        return None


def init_debug_logging_once(
    app_name: str,
    log_file: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> DebugFileHandler:
    """Install the debug handler on the root logger the first time it is called.

    Later calls change nothing and return the handler already installed.
    """
    global _installed_handler
    with _init_lock:
        if _installed_handler is not None:
            return _installed_handler

        env = os.environ if environ is None else environ
        raw_level = env.get(LOG_ENV_VAR)
        level = parse_level_filter(raw_level) if raw_level is not None else None
        if level is None:
            level = logging.DEBUG
        path = Path(log_file) if log_file is not None else default_log_file(app_name)

        handler = DebugFileHandler(open_log_file(path), level)
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(level)
        print(f"[wracgain] debug log: {path}", file=sys.stderr)
        handler.write_session_header(app_name)

        _installed_handler = handler
        return handler