"""
Structured activity/error records for job_scrape.

Records are plain dicts (`component`, `op`, context keys). They go to the
service JSONL logs; if a write fails the record is emitted on stdlib
logging instead so it is never lost silently.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from service import logging_utils as _svc_logging

_REDACTED = "***REDACTED***"

# Exact top-level keys that never reach a log line.
_SECRET_KEYS = frozenset({
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "auth",
    "bearer",
})
_SECRET_SUFFIXES = ("_key", "_secret", "_token")


def _is_secret(key: Any) -> bool:
    k = str(key).lower()
    return k in _SECRET_KEYS or k.endswith(_SECRET_SUFFIXES)


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    """Copy with secret-looking top-level values replaced; the JSONL writer redacts deeper."""
    return {k: (_REDACTED if _is_secret(k) else v) for k, v in record.items()}


def _emit(write: Callable[[dict[str, Any]], None], logger_name: str, level: int, record: dict[str, Any]) -> None:
    payload = _redact_record(record)
    log = logging.getLogger(logger_name)
    try:
        write(payload)
    except Exception:
        log.debug("JSONL write failed", exc_info=True)
        log.log(level, payload)


def activity(record: dict[str, Any]) -> None:
    """Scrape summaries, session events, tenant failure tallies."""
    _emit(_svc_logging.write_activity_log, "job_scrape.activity", logging.INFO, record)


def error(record: dict[str, Any]) -> None:
    """Persistence failures, rejected requests, crashed adapters."""
    _emit(_svc_logging.write_error_log, "job_scrape.error", logging.ERROR, record)
