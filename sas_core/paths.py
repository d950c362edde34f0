"""
Path constants for sas_core - separate from config to avoid circular imports.
"""

from __future__ import annotations

import contextlib
import os
import sys
from pathlib import Path

APP_NAME = "sas-core"

IS_WIN = sys.platform.startswith("win")


def _default_data_dir() -> Path:
    if IS_WIN:
        return Path.home() / "AppData" / "Local" / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


# Overridable so devices with a read-only home can point logs at tmpfs.
LOG_DIR = Path(os.getenv("SAS_CORE_LOG_DIR", str(_default_data_dir() / "logs")))

LOG_PATH = LOG_DIR / "sas_core.log"


def ensure_log_dir(path: Path = LOG_DIR) -> Path:
    """Create the log directory and tighten permissions where possible."""
    path.mkdir(parents=True, exist_ok=True)
    if not IS_WIN:
        with contextlib.suppress(OSError):
            path.chmod(0o700)
    return path


__all__ = ["APP_NAME", "LOG_DIR", "LOG_PATH", "ensure_log_dir"]
