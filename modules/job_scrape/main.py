from __future__ import annotations

from typing import Any

from .lib.config import Settings
from .lib.handler import ScrapeService
from .lib.logging_bridge import activity as log_activity


def run(**kwargs: Any) -> dict[str, Any]:
    """
    Entry point for the 'job_scrape' module.

    Settings kwargs (anything Settings.from_env_and_kwargs accepts), e.g.:
      sqlite_path: str = "/app/local/state/job_scrape.db"
      roster_path: str  # bundled rosters.json by default
      gateway: "sqlite" | "postgrest"
      recency_days: int = 30

    Request kwargs (camelCase, same as the HTTP body):
      query, platforms, limit, offset, filterDuplicates, dedupeTableId,
      saveToTableId, usaOnly, sessionId, postedWithinDays

    Returns the response body dict (success or failure shape).
    """
    request_keys = {
        "query", "platforms", "limit", "offset", "filterDuplicates", "dedupeTableId",
        "saveToTableId", "usaOnly", "sessionId", "postedWithinDays",
    }
    payload = {k: v for k, v in kwargs.items() if k in request_keys}
    settings = Settings.from_env_and_kwargs({k: v for k, v in kwargs.items() if k not in request_keys})

    log_activity({
        "component": "job_scrape.main",
        "op": "start",
        "gateway": settings.gateway,
        "roster": settings.roster_path,
        "request": payload,
    })

    _status, body = ScrapeService(settings).handle(payload)
    return body
