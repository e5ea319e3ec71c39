"""
Centralized logging configuration for ComicLock.

Every run logs to a rotating file under the cache directory and to the
system log. Verbose mode additionally echoes to the console, with colored
output when attached to a terminal.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler, SysLogHandler
from pathlib import Path
from typing import Optional

from core.settings import storage_paths


_VERBOSE: bool = False
_SYSLOG_SOCKET = "/dev/log"
_FORMAT = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'

# Handlers installed by setup_logging(), removed again on re-initialisation so
# repeated calls (tests, long-lived callers) never stack duplicate output.
_installed_handlers: list = []


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',       # Cyan
        'INFO': '\033[32m',        # Green
        'WARNING': '\033[33m',     # Yellow
        'ERROR': '\033[31m',       # Red
        'CRITICAL': '\033[35m',    # Magenta
    }
    FALLBACK_COLOR = '\033[38;5;208m'
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        original_levelname = record.levelname

        # Fallback paths (bundled default image substituted) get their own
        # color regardless of level.
        if '[FALLBACK]' in str(record.msg):
            color = self.FALLBACK_COLOR
        else:
            color = self.COLORS.get(record.levelname)

        if color is None:
            return super().format(record)

        record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
        try:
            message = super().format(record)
        finally:
            record.levelname = original_levelname
        return f"{color}{message}{self.RESET}"


class SuppressingStreamHandler(logging.StreamHandler):
    """Stream handler that suppresses consecutive duplicate sources.

    Repeated DEBUG/INFO lines from the same logger/level are collapsed into a
    single summary line like "[N Suppressed: CHECK LOG]" while file logs
    remain unaffected. Bulk downloads are the main producer of such runs.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._last_name: Optional[str] = None
        self._last_level: Optional[int] = None
        self._suppress_count: int = 0
        self._last_record: Optional[logging.LogRecord] = None
        self.suppress_after: int = 3
        self._run_length: int = 0

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._emit_with_suppression(record)
        except Exception:
            self.handleError(record)

    def _emit_with_suppression(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self._flush_summary()
            self._emit_record(record)
            self._reset_run()
            return

        if record.name == self._last_name and record.levelno == self._last_level:
            self._run_length += 1
            if self._run_length > self.suppress_after:
                self._suppress_count += 1
                self._last_record = record
                return
        else:
            self._flush_summary()
            self._last_name = record.name
            self._last_level = record.levelno
            self._run_length = 1

        self._emit_record(record)

    def _reset_run(self) -> None:
        self._last_name = None
        self._last_level = None
        self._run_length = 0
        self._suppress_count = 0
        self._last_record = None

    def _emit_record(self, record: logging.LogRecord) -> None:
        """Emit a single record with a Unicode-safe fallback for the console.

        Captions routinely contain characters the console encoding cannot
        represent; degrade the console line instead of raising.
        """
        msg = self.format(record)
        stream = self.stream
        if stream is None:
            return
        text = msg + self.terminator
        try:
            stream.write(text)
        except UnicodeEncodeError:
            encoding = getattr(stream, "encoding", None) or "ascii"
            stream.write(text.encode(encoding, errors="replace").decode(encoding, errors="replace"))
        self.flush()

    def _flush_summary(self) -> None:
        if self._suppress_count <= 0 or self._last_record is None:
            self._suppress_count = 0
            self._last_record = None
            return

        last = self._last_record
        summary = logging.LogRecord(
            last.name,
            last.levelno,
            last.pathname,
            last.lineno,
            f"[{self._suppress_count} Suppressed: CHECK LOG]",
            args=None,
            exc_info=None,
        )
        summary.created = last.created
        summary.msecs = last.msecs
        self._emit_record(summary)

        self._suppress_count = 0
        self._last_record = None

    def close(self) -> None:
        try:
            self._flush_summary()
        finally:
            super().close()


def _build_syslog_handler() -> Optional[logging.Handler]:
    """System log handler, or None when no local syslog socket exists."""
    if not os.path.exists(_SYSLOG_SOCKET):
        return None
    try:
        handler = SysLogHandler(address=_SYSLOG_SOCKET)
    except OSError:
        return None
    handler.setFormatter(logging.Formatter('comiclock[%(process)d]: %(levelname)s %(name)s: %(message)s'))
    return handler


def setup_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> None:
    """
    Configure application logging.

    Args:
        verbose: Enable DEBUG level and echo log lines to the console.
        log_dir: Override for the log directory (defaults to the cache dir).
    """
    global _VERBOSE

    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger()

    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    log_dir = log_dir or storage_paths.get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # File handler with rotation (1MB max, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_dir / "comiclock.log",
        maxBytes=1 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    _installed_handlers.append(file_handler)

    syslog_handler = _build_syslog_handler()
    if syslog_handler is not None:
        syslog_handler.setLevel(logging.INFO)
        _installed_handlers.append(syslog_handler)

    if verbose:
        console_handler = SuppressingStreamHandler(sys.stderr)
        if sys.stderr.isatty():
            console_handler.setFormatter(ColoredFormatter(_FORMAT, datefmt='%H:%M:%S'))
        else:
            console_handler.setFormatter(logging.Formatter(_FORMAT, datefmt='%H:%M:%S'))
        console_handler.setLevel(level)
        _installed_handlers.append(console_handler)

    root_logger.setLevel(level)
    for handler in _installed_handlers:
        root_logger.addHandler(handler)

    # Keep HTTP connection pool and image plugin chatter out of normal logs.
    noisy_level = logging.DEBUG if verbose else logging.INFO
    for name in ("urllib3", "urllib3.connectionpool", "PIL"):
        logging.getLogger(name).setLevel(noisy_level)

    _VERBOSE = bool(verbose)
    root_logger.debug("ComicLock logging initialized (verbose=%s, syslog=%s)",
                      _VERBOSE, syslog_handler is not None)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def is_verbose_logging() -> bool:
    """Return True when verbose logging is enabled globally."""
    return _VERBOSE
