"""
Aggregation orchestrator for the job_scrape module.

Features:
  - Even ceil apportionment of the overall limit across selected platforms
  - Platform-level parallelism (one thread per platform adapter)
  - Merge on the calling thread as each platform completes, with dedup
    against the persisted hash set and against hashes kept earlier in the run
  - Hard global cap; late platforms' excess output is discarded
  - Per-platform failure isolation (zero count, run continues)
  - Dependency injection for testability (`scraper_factory`)
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from . import logging_bridge
from .config import Settings
from .hashing import get_hasher
from .http_client import HttpClient
from .models import AggregateResult, JobPosting
from .scrapers.base import BaseScraper

ScraperFactory = Callable[[str], BaseScraper]

DEFAULT_MAX_PLATFORM_THREADS = 8


def apportion(total_limit: int, n_platforms: int) -> int:
    """Per-platform cap: ceil(total / n). Summed over n platforms it always covers the total."""
    if n_platforms <= 0 or total_limit <= 0:
        return 0
    return math.ceil(total_limit / n_platforms)


# =============================================================================
# DEFAULT SCRAPER CONSTRUCTION (PRODUCTION)
# =============================================================================
def default_scraper_factory(settings: Settings, *, recency_days: int | None = None) -> ScraperFactory:
    """
    Build adapters from the registry with the configured roster, timeout,
    batch size and hasher. `recency_days` overrides settings.recency_days
    for one request; 0 turns the recency filter off.
    """
    from .scrapers.registry import get as get_scraper_class

    rosters = settings.rosters()
    hasher = get_hasher(settings.hash_algorithm)
    window = settings.recency_days if recency_days is None else recency_days

    def _make(platform: str) -> BaseScraper:
        cls = get_scraper_class(platform)
        client = HttpClient(timeout=settings.timeout, pool_maxsize=settings.batch_size)
        return cls(
            client,
            roster=rosters.tenants(platform),
            batch_size=settings.batch_size,
            recency_days=window or None,
            hasher=hasher,
        )

    return _make


# =============================================================================
# MAIN ORCHESTRATOR
# =============================================================================
def aggregate(
    query: str,
    platforms: Sequence[str],
    total_limit: int,
    existing_hashes: Iterable[str],
    usa_only: bool,
    *,
    scraper_factory: ScraperFactory,
    max_threads: int = DEFAULT_MAX_PLATFORM_THREADS,
) -> AggregateResult:
    """
    Run every selected adapter concurrently and merge their output.

    Args:
        query: free-text relevance filter ("" matches everything).
        platforms: selected platform ids, order preserved in platform_stats.
        total_limit: hard cap on kept postings.
        existing_hashes: hashes already known to the dedup scope (read once).
        usa_only: apply the location gate.
        scraper_factory: platform id -> adapter instance.
        max_threads: upper bound on concurrently running adapters.

    Returns:
        AggregateResult with kept postings (<= total_limit), per-platform kept
        counts (0 for failed platforms) and the number of duplicates dropped.
    """
    start_ns = time.perf_counter_ns()
    selected = list(dict.fromkeys(platforms))
    result = AggregateResult(platform_stats={p: 0 for p in selected})
    if not selected or total_limit <= 0:
        return result

    per_platform = apportion(total_limit, len(selected))
    known = set(existing_hashes)
    seen: set[str] = set()
    durations_us: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # INNER: run one platform adapter in a worker thread
    # -------------------------------------------------------------------------
    def _run_platform(platform: str) -> tuple[list[JobPosting], int]:
        t0 = time.perf_counter_ns()
        scraper = scraper_factory(platform)
        try:
            postings = scraper.scrape(query, per_platform, usa_only)
        finally:
            scraper.close()
        outcome = scraper.last_outcome
        if outcome is not None and outcome.tenants_failed:
            logging_bridge.activity({
                "component": "job_scrape.engine",
                "op": "tenant_failures",
                "platform": platform,
                "attempted": outcome.tenants_attempted,
                "failed": outcome.tenants_failed,
            })
        return postings, int((time.perf_counter_ns() - t0) // 1000)

    # -------------------------------------------------------------------------
    # EXECUTE ADAPTERS IN PARALLEL, MERGE ON THIS THREAD
    # -------------------------------------------------------------------------
    with ThreadPoolExecutor(
        max_workers=max(1, min(len(selected), max_threads)),
        thread_name_prefix="job-scrape-platform",
    ) as pool:
        futures: dict[Future, str] = {pool.submit(_run_platform, p): p for p in selected}
        for fut in as_completed(futures):
            platform = futures[fut]
            try:
                postings, dt_us = fut.result()
            except Exception as e:
                result.failed_platforms.append(platform)
                logging_bridge.error({
                    "component": "job_scrape.engine",
                    "op": "platform_run",
                    "platform": platform,
                    "error": repr(e),
                })
                continue
            durations_us[platform] = dt_us

            for posting in postings:
                if len(result.postings) >= total_limit:
                    break
                if posting.url_hash in known or posting.url_hash in seen:
                    result.duplicates_filtered += 1
                    continue
                seen.add(posting.url_hash)
                result.postings.append(posting)
                result.platform_stats[platform] = result.platform_stats.get(platform, 0) + 1

    logging_bridge.activity({
        "component": "job_scrape.engine",
        "op": "summary",
        "query": query,
        "platforms": selected,
        "total_limit": total_limit,
        "per_platform_limit": per_platform,
        "kept": len(result.postings),
        "platform_stats": result.platform_stats,
        "duplicates_filtered": result.duplicates_filtered,
        "failed_platforms": result.failed_platforms,
        "durations_us": durations_us,
        "total_us": int((time.perf_counter_ns() - start_ns) // 1000),
    })
    return result
