"""
Persistence gateway contract and the PostgREST (Supabase) implementation.

The aggregation core only ever talks to a PersistenceGateway:

    load_existing_hashes(scope)                 -> set[str]
    create_session(query, platforms, limit)     -> session id
    insert_postings(postings, scope, query=...)  (conflicts are not errors)
    complete_session(session_id, found, dupes)

`scope` is GLOBAL_SCOPE for the shared job_links store, otherwise a
caller-owned table id.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import requests

from .config import Settings
from .models import JobPosting
from .utils import now_iso

log = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"


class GatewayError(Exception):
    """Raised when the persistence store cannot be read or written."""


class PersistenceGateway(ABC):
    @abstractmethod
    def load_existing_hashes(self, scope: str = GLOBAL_SCOPE) -> set[str]:
        raise NotImplementedError

    @abstractmethod
    def create_session(self, query: str, platforms: Sequence[str], requested_limit: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def insert_postings(
        self,
        postings: Sequence[JobPosting],
        scope: str = GLOBAL_SCOPE,
        *,
        search_query: str | None = None,
    ) -> int:
        """Store postings; returns how many rows were actually new (best effort)."""
        raise NotImplementedError

    @abstractmethod
    def complete_session(self, session_id: str, jobs_found: int, duplicates_filtered: int) -> None:
        raise NotImplementedError

    def close(self) -> None:
        return None


class PostgrestGateway(PersistenceGateway):
    """
    Supabase/PostgREST tables:

        job_links        (job_url_hash unique, job_url, job_title, company_name,
                          ats_platform, location, posting_date, search_query)
        scrape_sessions  (id, search_query, platforms, requested_limit, jobs_found,
                          duplicates_filtered, status, completed_at)
        user_table_jobs  (table_id, job_url_hash, ... unique per table)

    Authenticated with the service-role key as both `apikey` and bearer token.
    """

    PAGE = 1000

    def __init__(self, base_url: str, api_key: str, *, timeout: float = 15.0, session: requests.Session | None = None):
        if not base_url or not api_key:
            raise GatewayError("PostgREST gateway requires a base URL and an API key.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })

    # ---- contract ----
    def load_existing_hashes(self, scope: str = GLOBAL_SCOPE) -> set[str]:
        if scope == GLOBAL_SCOPE:
            params = {"select": "job_url_hash"}
            table = "job_links"
        else:
            params = {"select": "job_url_hash", "table_id": f"eq.{scope}"}
            table = "user_table_jobs"

        hashes: set[str] = set()
        start = 0
        while True:
            rows = self._request(
                "GET",
                table,
                params=params,
                headers={"Range-Unit": "items", "Range": f"{start}-{start + self.PAGE - 1}"},
            )
            if not isinstance(rows, list):
                break
            hashes.update(str(r["job_url_hash"]) for r in rows if isinstance(r, dict) and r.get("job_url_hash"))
            if len(rows) < self.PAGE:
                break
            start += self.PAGE
        return hashes

    def create_session(self, query: str, platforms: Sequence[str], requested_limit: int) -> str:
        rows = self._request(
            "POST",
            "scrape_sessions",
            json={
                "search_query": query,
                "platforms": list(platforms),
                "requested_limit": requested_limit,
                "status": "in_progress",
            },
            headers={"Prefer": "return=representation"},
        )
        if not isinstance(rows, list) or not rows or not rows[0].get("id"):
            raise GatewayError("scrape_sessions insert returned no id")
        return str(rows[0]["id"])

    def insert_postings(
        self,
        postings: Sequence[JobPosting],
        scope: str = GLOBAL_SCOPE,
        *,
        search_query: str | None = None,
    ) -> int:
        if not postings:
            return 0
        if scope == GLOBAL_SCOPE:
            table = "job_links"
            rows = [{**p.to_record(), "search_query": search_query} for p in postings]
            conflict = "job_url_hash"
        else:
            table = "user_table_jobs"
            rows = [{**p.to_record(), "table_id": scope} for p in postings]
            conflict = "table_id,job_url_hash"
        created = self._request(
            "POST",
            table,
            json=rows,
            params={"on_conflict": conflict},
            headers={"Prefer": "resolution=ignore-duplicates,return=representation"},
        )
        return len(created) if isinstance(created, list) else 0

    def complete_session(self, session_id: str, jobs_found: int, duplicates_filtered: int) -> None:
        self._request(
            "PATCH",
            "scrape_sessions",
            params={"id": f"eq.{session_id}"},
            json={
                "jobs_found": jobs_found,
                "duplicates_filtered": duplicates_filtered,
                "status": "completed",
                "completed_at": now_iso(),
            },
        )

    def close(self) -> None:
        self.session.close()

    # ---- internals ----
    def _request(self, method: str, table: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise GatewayError(f"{method} {table} failed: {e}") from e
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GatewayError(f"{method} {table}: response is not JSON") from e


def build_gateway(settings: Settings) -> PersistenceGateway:
    """Pick the configured store."""
    if settings.gateway == "postgrest":
        return PostgrestGateway(settings.supabase_url, settings.supabase_key, timeout=settings.timeout)
    from .db import SqliteGateway

    return SqliteGateway(settings.sqlite_path)
