"""
Logging for sas_core.

Two layers:
- ``build_logger`` wires a standard ``logging.Logger`` with a rotating,
  permission-hardened file handler and a stderr handler, both redacting
  signatures and keys. Called once by whatever composes the application
  (the CLI, a device main loop); importing this module has no side effects
  beyond registering the EVENT level name.
- ``DiagnosticSink`` is the leveled sink injected into the token issuer.
  Its levels follow the device firmware: NONE < EVENT < ERROR < INFO < DEBUG,
  where a higher threshold lets more verbose messages through.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from enum import IntEnum
from logging import Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .paths import LOG_PATH, ensure_log_dir
from .redactlog import NoLocalsFilter, RedactingFormatter

# Key milestones ("token generated") must show even when only errors are wanted.
EVENT = 45
logging.addLevelName(EVENT, "EVENT")


class LogLevel(IntEnum):
    NONE = 0
    EVENT = 1
    ERROR = 2
    INFO = 3
    DEBUG = 4

    @classmethod
    def parse(cls, value: str | int | LogLevel) -> LogLevel:
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name == "WARNING":
            name = "ERROR"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown log level: {value!r}") from None


_STDLIB_LEVEL = {
    LogLevel.NONE: logging.CRITICAL + 10,
    LogLevel.EVENT: EVENT,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}

def _level_from_env() -> LogLevel:
    try:
        return LogLevel.parse(os.getenv("SAS_CORE_LOG_LEVEL", "INFO"))
    except ValueError:
        return LogLevel.INFO


DEFAULT_LEVEL = _level_from_env()


def log_best_effort(channel: str, exc: BaseException, *, message: str | None = None) -> None:
    """Log a maintenance failure without interrupting normal flow."""
    logging.getLogger(channel).debug("%s: %s", message or "Best-effort failure", exc, exc_info=True)


class SecureRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that keeps the log and its backups at 0o600 (POSIX)."""

    def _set_secure_mode(self, path: str) -> None:
        if os.name != "nt":
            with contextlib.suppress(OSError):
                os.chmod(path, 0o600)

    def _open(self):
        stream = super()._open()
        self._set_secure_mode(self.baseFilename)
        return stream

    def doRollover(self) -> None:
        super().doRollover()
        if os.name == "nt":
            return
        for idx in range(1, self.backupCount + 1):
            candidate = self.rotation_filename(f"{self.baseFilename}.{idx}")
            if os.path.exists(candidate):
                self._set_secure_mode(candidate)


def build_logger(
    name: str = "sas_core",
    level: LogLevel | str | int = DEFAULT_LEVEL,
    *,
    log_path: Path | str | None = LOG_PATH,
    stream: bool = True,
) -> Logger:
    """Configure and return the named logger; idempotent per name."""
    lg = logging.getLogger(name)
    lg.setLevel(_STDLIB_LEVEL[LogLevel.parse(level)])
    lg.propagate = False

    if lg.handlers:
        return lg

    if log_path is not None:
        log_path = Path(log_path)
        ensure_log_dir(log_path.parent)
        fh = SecureRotatingFileHandler(
            log_path,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
            delay=True,
        )
        fh.setFormatter(
            RedactingFormatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y/%m/%d %H:%M:%S",
            )
        )
        lg.addHandler(fh)

    if stream:
        sh = logging.StreamHandler(sys.stderr)
        sh.setFormatter(
            RedactingFormatter(
                fmt="%(asctime)s [%(levelname)s] %(message)s",
                datefmt="%H:%M:%S",
                enable_colors=sys.stderr.isatty(),
            )
        )
        lg.addHandler(sh)

    lg.addFilter(NoLocalsFilter())
    return lg


class DiagnosticSink:
    """
    Leveled diagnostic sink wrapping a standard logger.

    The threshold is held here rather than on the logger so several sinks
    can share one logger with different verbosity.
    """

    def __init__(self, base_logger: Logger | None = None, level: LogLevel | str | int = LogLevel.INFO):
        self._logger = base_logger or logging.getLogger("sas_core")
        self._level = LogLevel.parse(level)

    @property
    def level(self) -> LogLevel:
        return self._level

    def set_level(self, level: LogLevel | str | int) -> None:
        self._level = LogLevel.parse(level)

    def enabled_for(self, level: LogLevel) -> bool:
        return level != LogLevel.NONE and self._level >= level

    def _emit(self, level: LogLevel, msg: str, args: tuple) -> None:
        if self.enabled_for(level):
            self._logger.log(_STDLIB_LEVEL[level], msg, *args, stacklevel=3)

    def event(self, msg: str, *args) -> None:
        self._emit(LogLevel.EVENT, msg, args)

    def error(self, msg: str, *args) -> None:
        self._emit(LogLevel.ERROR, msg, args)

    def info(self, msg: str, *args) -> None:
        self._emit(LogLevel.INFO, msg, args)

    def debug(self, msg: str, *args) -> None:
        self._emit(LogLevel.DEBUG, msg, args)


__all__ = [
    "EVENT",
    "LogLevel",
    "DEFAULT_LEVEL",
    "DiagnosticSink",
    "build_logger",
    "log_best_effort",
    "LOG_PATH",
]
