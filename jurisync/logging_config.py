"""
Logging configuration for JuriSync.

Single 'jurisync' logger; every module logs through logging.getLogger(__name__),
so records from jurisync.engine.* and jurisync.cli.* end up in the same file.

  Log file : <JURISYNC_LOG_DIR or repo/logs>/jurisync.log
  Rotation : 5 MB x 3 backups
  Level    : LOG_LEVEL env var (DEBUG / INFO / WARNING / ERROR / CRITICAL),
             INFO when unset or unknown

Usage
-----
    from jurisync.logging_config import configure_logging, log_call

    configure_logging()          # once per CLI entry, idempotent

    @log_call
    def load_contracts(path):
        ...

Log format per line
-------------------
    2026-10-18 09:12:44 | DEBUG    | CALL write_notifications | args=(<list of 42>, dry_run=True)
    2026-10-18 09:12:44 | INFO     | OK   write_notifications | 38ms
    2026-10-18 09:12:44 | ERROR    | FAIL load_contracts | ValueError: Unsupported file type '.txt' | 2ms

Contract collections are summarized as <list of N> rather than dumped, and
arguments named like credentials are masked.
"""

import functools
import logging
import logging.handlers
import os
import time
from pathlib import Path

_LOG_DIR = Path(os.environ.get("JURISYNC_LOG_DIR") or Path(__file__).parent.parent / "logs")
_LOG_FILE = _LOG_DIR / "jurisync.log"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_MAX_ARG_LEN = 80
_SECRET_NAMES = ("token", "password", "secret")


def configure_logging() -> logging.Logger:
    """
    Attach the rotating file handler to the jurisync logger. Idempotent.
    Returns the configured logger.
    """
    _LOG_DIR.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("jurisync")
    if logger.handlers:
        return logger

    logger.setLevel(level)
    handler = logging.handlers.RotatingFileHandler(
        _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    logger.addHandler(handler)

    return logger


def _describe(value) -> str:
    """Short repr for the CALL line."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"<{type(value).__name__} of {len(value)}>"
    if isinstance(value, dict):
        return f"<dict of {len(value)} keys>"
    text = repr(value)
    if len(text) > _MAX_ARG_LEN:
        text = text[:_MAX_ARG_LEN - 3] + "..."
    return text


def _describe_kwarg(name: str, value) -> str:
    if value and any(word in name.lower() for word in _SECRET_NAMES):
        return f"{name}=***"
    return f"{name}={_describe(value)}"


def log_call(func):
    """
    Decorator: logs entry, clean exit, and exceptions.

    - DEBUG on entry   : CALL <name> | args=(...)
    - INFO  on success : OK   <name> | <N>ms
    - ERROR on failure : FAIL <name> | ExcType: message | <N>ms   (then re-raises)
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger("jurisync")
        name = func.__name__
        start = time.perf_counter()

        parts = [_describe(a) for a in args] + [_describe_kwarg(k, v) for k, v in kwargs.items()]
        logger.debug(f"CALL {name} | args=({', '.join(parts) or '-'})")

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            ms = int((time.perf_counter() - start) * 1000)
            logger.error(f"FAIL {name} | {type(exc).__name__}: {exc} | {ms}ms")
            raise

        ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"OK   {name} | {ms}ms")
        return result

    return wrapper
