"""Log file and console output for the desk.

One rotating file per user under ``~/.draftdesk/logs`` (or
``$DRAFTDESK_LOG_DIR``). Status-bar hints never go through here; only
diagnostics do.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["LOG_FILE_NAME", "log_directory", "setup_logging"]

LOG_FILE_NAME = "draftdesk.log"
_LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
_DATE_FORMAT = "%H:%M:%S"
_ROTATE_BYTES = 512_000
_ROTATE_KEEP = 2

_active_log: Path | None = None


def log_directory(override: Path | str | None = None) -> Path:
    """Where the log file lives: explicit argument, then environment, then home."""

    chosen = override or os.environ.get("DRAFTDESK_LOG_DIR") or Path.home() / ".draftdesk" / "logs"
    return Path(chosen).expanduser()


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Attach the file (and console) handlers to the root logger; return the log path.

    Calling again is a no-op unless ``force`` is set, e.g. when the settings
    file turns debug logging on after start-up.
    """

    global _active_log
    if _active_log is not None and not force:
        return _active_log

    directory = log_directory(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME

    formatter = logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_KEEP, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    # Qt routes its own chatter through the "PySide6" logger; keep it to warnings.
    logging.getLogger("PySide6").setLevel(max(level, logging.WARNING))

    _active_log = log_path
    return log_path
