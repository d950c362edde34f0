from __future__ import annotations

import logging
import re
from typing import Pattern


class NoLocalsFilter(logging.Filter):
    """
    Collapse attached tracebacks into "type: message" so key material held
    in frame locals never reaches a handler.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if record.exc_info:
            etype, evalue, _tb = record.exc_info
            if etype is not None:
                record.msg = f"{record.msg} | {etype.__name__}: {evalue}"
            record.exc_info = None
            record.exc_text = None
        return True


class RedactingFormatter(logging.Formatter):
    """
    Formatter that masks credentials before they hit a sink:
      - SAS signatures (sig=...) → sig=[redacted]
      - connection-string keys (SharedAccessKey=...) → [redacted]
      - key=value pairs named like secrets → [redacted]
      - long base64 runs (>=32 chars) → [b64_redacted]
      - long hex runs (>=40 chars) → [hex_redacted]
    """

    _SIG_RE: Pattern[str] = re.compile(r"(?i)\b(sig)=([^&\s]+)")
    _SAK_RE: Pattern[str] = re.compile(r"(?i)\b(SharedAccessKey)=([^;\s]+)")
    _KEYVAL_RE: Pattern[str] = re.compile(
        r"(?i)\b(password|secret|device[-_]?key|api[-_]?key|key)\s*[=:]\s*([^\s,;&]+)"
    )
    _B64_RE: Pattern[str] = re.compile(r"[A-Za-z0-9+/]{32,}={0,2}")
    _HEX_RE: Pattern[str] = re.compile(r"\b[0-9a-fA-F]{40,}\b")

    def __init__(self, fmt: str, datefmt: str | None = None, enable_colors: bool = False):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._colors = enable_colors

    def redact(self, msg: str) -> str:
        msg = self._SIG_RE.sub(lambda m: f"{m.group(1)}=[redacted]", msg)
        msg = self._SAK_RE.sub(lambda m: f"{m.group(1)}=[redacted]", msg)
        msg = self._KEYVAL_RE.sub(lambda m: f"{m.group(1)}=[redacted]", msg)
        msg = self._HEX_RE.sub("[hex_redacted]", msg)
        msg = self._B64_RE.sub("[b64_redacted]", msg)
        return msg

    def format(self, record: logging.LogRecord) -> str:
        out = self.redact(super().format(record))
        if not self._colors:
            return out
        if record.levelno >= logging.ERROR:
            return f"\x1b[31m{out}\x1b[0m"
        if record.levelno >= logging.WARNING:
            return f"\x1b[33m{out}\x1b[0m"
        if record.levelno >= logging.INFO:
            return f"\x1b[37m{out}\x1b[0m"
        return f"\x1b[90m{out}\x1b[0m"
