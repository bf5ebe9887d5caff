"""
Batched concurrent driver for a platform's tenant roster.

The roster is cut into fixed-size batches. Inside a batch every tenant call
runs concurrently and the batch is awaited as a whole (success or failure)
before the next one starts. Results are merged in roster order after the
batch settles, so nothing is written concurrently. Once the running count
reaches the cap no further batch is started.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait

from .models import FetchOutcome, JobPosting, TenantResult

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 15

TenantFetch = Callable[[str], TenantResult]


def batches(items: Sequence[str], size: int) -> list[Sequence[str]]:
    if size <= 0:
        raise ValueError("batch size must be >= 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


def run_batched(
    platform: str,
    tenants: Sequence[str],
    fetch: TenantFetch,
    limit: int,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> FetchOutcome:
    """
    Drive `fetch` over `tenants` and return at most `limit` postings.

    `fetch` should return a TenantResult; an exception escaping it is
    converted to a failed result here, so one tenant can never sink the run.
    """
    outcome = FetchOutcome(platform=platform)
    if limit <= 0 or not tenants:
        return outcome

    collected: list[JobPosting] = []
    groups = batches(tenants, batch_size)

    with ThreadPoolExecutor(max_workers=min(batch_size, len(tenants)), thread_name_prefix=f"{platform}-batch") as pool:
        for idx, group in enumerate(groups):
            futures = [pool.submit(fetch, tenant) for tenant in group]
            wait(futures)
            outcome.tenants_attempted += len(group)

            for tenant, fut in zip(group, futures):
                try:
                    result = fut.result()
                except Exception as e:
                    result = TenantResult.failed(tenant, repr(e))
                if not result.ok:
                    outcome.tenants_failed += 1
                    log.debug("%s: tenant %s dropped: %s", platform, tenant, result.error)
                    continue
                collected.extend(result.items)

            if len(collected) >= limit:
                outcome.stopped_early = idx < len(groups) - 1
                break

    outcome.postings = collected[:limit]
    return outcome
