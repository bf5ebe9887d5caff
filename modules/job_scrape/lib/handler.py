"""
Request handling for one scrape call: validate, dedup scope, session,
aggregate (or serve a cached continuation page), persist, paginate.

Persistence is a side effect after results are computed; a failing store
is logged through logging_bridge and never changes the response.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Any

from . import logging_bridge
from .config import PAGE_SIZE, RequestError, ScrapeRequest, Settings
from .engine import ScraperFactory, aggregate, default_scraper_factory
from .gateway import GLOBAL_SCOPE, GatewayError, PersistenceGateway, build_gateway
from .models import JobPosting
from .pagination import page
from .scrapers import registry
from .session_cache import SessionCache


class ScrapeService:
    """
    Long-lived holder for the collaborators a request needs: settings, the
    persistence gateway, the session result cache and the adapter factory.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        gateway: PersistenceGateway | None = None,
        cache: SessionCache | None = None,
        scraper_factory: ScraperFactory | None = None,
    ):
        self.settings = settings
        self.gateway = gateway if gateway is not None else build_gateway(settings)
        self.cache = cache if cache is not None else SessionCache(settings.session_ttl)
        self._scraper_factory = scraper_factory

    def handle(self, payload: Any) -> tuple[int, dict[str, Any]]:
        """Return (http_status, response_body)."""
        start = time.perf_counter()
        try:
            req = ScrapeRequest.from_payload(
                payload,
                supported=registry.all_platforms(),
                defaults=registry.default_platforms(),
            )
            body = self._run(req, start)
            return 200, body
        except RequestError as e:
            logging_bridge.error({
                "component": "job_scrape.handler",
                "op": "invalid_request",
                "error": str(e),
            })
            return 500, _failure(str(e), start)
        except Exception as e:
            logging_bridge.error({
                "component": "job_scrape.handler",
                "op": "scrape",
                "error": repr(e),
            })
            return 500, _failure(str(e) or "Scrape failed", start)

    # ---- internals ----
    def _run(self, req: ScrapeRequest, start: float) -> dict[str, Any]:
        cached = self.cache.get(req.session_id)
        if cached is not None:
            logging_bridge.activity({
                "component": "job_scrape.handler",
                "op": "continuation",
                "session_id": cached.session_id,
                "offset": req.offset,
            })
            return _success(
                list(cached.postings),
                offset=req.offset,
                platform_stats=cached.platform_stats,
                duplicates_filtered=cached.duplicates_filtered,
                session_id=cached.session_id,
                start=start,
            )

        scope = _dedupe_scope(req)
        existing = self._load_hashes(scope) if scope else set()
        session_id = req.session_id or self._create_session(req)

        result = aggregate(
            req.query,
            req.platforms,
            req.limit,
            existing,
            req.usa_only,
            scraper_factory=self._factory_for(req),
            max_threads=self.settings.max_platform_threads,
        )
        self.cache.put(session_id, result.postings, result.platform_stats, result.duplicates_filtered)
        self._persist(req, session_id, result.postings, result.duplicates_filtered)

        return _success(
            result.postings,
            offset=req.offset,
            platform_stats=result.platform_stats,
            duplicates_filtered=result.duplicates_filtered,
            session_id=session_id,
            start=start,
        )

    def _factory_for(self, req: ScrapeRequest) -> ScraperFactory:
        if self._scraper_factory is not None:
            return self._scraper_factory
        return default_scraper_factory(self.settings, recency_days=req.posted_within_days)

    def _load_hashes(self, scope: str) -> set[str]:
        try:
            return self.gateway.load_existing_hashes(scope)
        except GatewayError as e:
            logging_bridge.error({
                "component": "job_scrape.handler",
                "op": "load_existing_hashes",
                "scope": scope,
                "error": repr(e),
            })
            return set()

    def _create_session(self, req: ScrapeRequest) -> str:
        try:
            return self.gateway.create_session(req.query, req.platforms, req.limit)
        except GatewayError as e:
            # A local id still lets continuation pages hit the cache.
            fallback = str(uuid.uuid4())
            logging_bridge.error({
                "component": "job_scrape.handler",
                "op": "create_session",
                "fallback_session_id": fallback,
                "error": repr(e),
            })
            return fallback

    def _persist(self, req: ScrapeRequest, session_id: str, postings: list[JobPosting], duplicates: int) -> None:
        steps: list[tuple[str, Callable[[], Any]]] = [
            ("insert_global", lambda: self.gateway.insert_postings(postings, GLOBAL_SCOPE, search_query=req.query)),
        ]
        if req.save_to_table_id:
            steps.append(("insert_table", lambda: self.gateway.insert_postings(postings, req.save_to_table_id)))
        steps.append(("complete_session", lambda: self.gateway.complete_session(session_id, len(postings), duplicates)))

        for op, step in steps:
            try:
                step()
            except GatewayError as e:
                logging_bridge.error({
                    "component": "job_scrape.handler",
                    "op": op,
                    "session_id": session_id,
                    "error": repr(e),
                })


def _dedupe_scope(req: ScrapeRequest) -> str | None:
    if req.dedupe_table_id:
        return req.dedupe_table_id
    if req.filter_duplicates:
        return GLOBAL_SCOPE
    return None


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _success(
    postings: list[JobPosting],
    *,
    offset: int,
    platform_stats: dict[str, int],
    duplicates_filtered: int,
    session_id: str,
    start: float,
) -> dict[str, Any]:
    items, has_more = page(postings, offset, PAGE_SIZE)
    return {
        "success": True,
        "jobs": [p.to_record() for p in items],
        "metadata": {
            "total_jobs": len(postings),
            "offset": offset,
            "limit": PAGE_SIZE,
            "has_more": has_more,
            "platform_stats": dict(platform_stats),
            "duplicates_filtered": duplicates_filtered,
            "response_time_ms": _elapsed_ms(start),
            "session_id": session_id,
        },
    }


def _failure(message: str, start: float) -> dict[str, Any]:
    return {"success": False, "error": message, "response_time_ms": _elapsed_ms(start)}


# ---- module-level convenience ----------------------------------------------

_default_service: ScrapeService | None = None


def get_service(settings: Settings | None = None) -> ScrapeService:
    """Process-wide service; the session cache lives as long as it does."""
    global _default_service
    if _default_service is None:
        _default_service = ScrapeService(settings or Settings.from_env_and_kwargs({}))
    return _default_service


def handle_scrape_request(payload: Any, *, service: ScrapeService | None = None) -> tuple[int, dict[str, Any]]:
    return (service or get_service()).handle(payload)
