"""
Activity logging for the leave lookup service.

Every request line, lookup and startup message goes to the console and,
when ``LOG_FILE`` is set, to an activity log that rotates at
``LOG_MAX_BYTES`` keeping ``LOG_BACKUP_COUNT`` old files.  Lookups are
logged by service code only; id numbers and captcha tokens never reach
a handler.

Security‑relevant events (failed bot verification, rate limit hits) are
written to the ``leave_lookup_api.security`` logger so they can be
filtered or routed separately from ordinary application messages.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


SECURITY_LOGGER_NAME = "leave_lookup_api.security"


def get_security_logger() -> logging.Logger:
    """Return the logger used for security‑relevant events."""
    return logging.getLogger(SECURITY_LOGGER_NAME)


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Attach the console and activity log handlers to the root logger.

    ``create_app`` calls this for every app it builds; only the first
    call installs handlers, so a test session or a reload never writes
    each line twice.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive.
    logfile : Optional[str]
        Path to a file to log messages to.  If omitted, no file
        handler is added.  Paths are resolved relative to the
        current working directory.
    max_bytes : int
        Size at which the log file is rotated.
    backup_count : int
        Number of rotated files to keep.
    """
    logger = logging.getLogger()
    if logger.handlers:
        # Avoid configuring logging multiple times.  This can happen when
        # running tests or when ``create_app`` is called repeatedly.
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
