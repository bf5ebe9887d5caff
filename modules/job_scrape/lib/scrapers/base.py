from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from .. import classify
from ..fetch_engine import DEFAULT_BATCH_SIZE, run_batched
from ..hashing import HashFunc, url_hash
from ..http_client import HttpClient
from ..models import FetchOutcome, JobPosting, TenantResult
from ..utils import display_name, parse_timestamp

log = logging.getLogger(__name__)


class ScraperError(Exception):
    """A tenant answered, but not with anything the adapter can read."""


class BaseScraper(ABC):
    """
    Abstract platform adapter.

    One instance serves one aggregation request for one platform. It walks a
    fixed roster of tenant ids through the batched fetch engine; each tenant
    call is isolated, so a timeout or bad payload only removes that tenant's
    postings.

    Contract:
      - scrape(query, limit, usa_only) returns at most `limit` JobPostings
      - never raises for tenant-level failures
      - applies query relevance, the location gate and (when dates exist) recency
    """

    # Concrete subclasses MUST set this to a stable id, e.g. "greenhouse"
    platform: str = ""
    name: str = ""
    # Credential-gated platforms: kept in the registry, always empty.
    stub: bool = False

    def __init__(
        self,
        client: HttpClient | None = None,
        *,
        roster: Sequence[str] = (),
        batch_size: int = DEFAULT_BATCH_SIZE,
        recency_days: int | None = None,
        hasher: HashFunc = url_hash,
    ) -> None:
        self._client = client or HttpClient()
        self.roster = tuple(roster)
        self.batch_size = batch_size
        self.recency_days = recency_days
        self._hash = hasher
        self.last_outcome: FetchOutcome | None = None

    # ---- public ----
    def scrape(self, query: str, limit: int, usa_only: bool) -> list[JobPosting]:
        q = (query or "").strip().lower()
        self.last_outcome = run_batched(
            self.platform,
            self.roster,
            lambda tenant: self.fetch_tenant(tenant, q, usa_only),
            limit,
            batch_size=self.batch_size,
        )
        return self.last_outcome.postings

    def fetch_tenant(self, tenant: str, query: str, usa_only: bool) -> TenantResult:
        """One tenant call, reduced to a tagged result."""
        try:
            return TenantResult.succeeded(tenant, self.scrape_tenant(tenant, query, usa_only))
        except Exception as e:
            log.debug("%s: %s failed: %r", self.platform, tenant, e)
            return TenantResult.failed(tenant, repr(e))

    def close(self) -> None:
        self._client.close()

    @abstractmethod
    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        """
        Fetch and filter one tenant's board. `query` arrives lower-cased and
        stripped. May raise; fetch_tenant() turns that into a failed result.
        """
        raise NotImplementedError

    # ---- helpers for subclasses ----
    @staticmethod
    def matches_query(query: str, *texts: Any) -> bool:
        """Empty query matches everything; otherwise any text containing it."""
        if not query:
            return True
        return any(query in str(t).lower() for t in texts if t)

    def payload_list(self, tenant: str, data: Any, key: str | None = None) -> list[Any]:
        """
        The job array of a decoded JSON body: `data[key]`, or `data` itself
        when key is None. Any other shape raises ScraperError.
        """
        found = data if key is None else (data.get(key) if isinstance(data, dict) else None)
        if not isinstance(found, list):
            where = f"'{key}'" if key else "body"
            raise ScraperError(f"{self.platform}/{tenant}: expected a list in {where}, got {type(data).__name__}")
        return found

    def accept(self, location: str | None, posted_at: Any, usa_only: bool) -> bool:
        return classify.is_accepted(location, usa_only) and classify.is_recent(posted_at, self.recency_days)

    def make_posting(
        self,
        url: str,
        *,
        title: str | None,
        company: str | None,
        location: str | None = None,
        posted_at: datetime | str | int | float | None = None,
    ) -> JobPosting:
        url = url.strip()
        return JobPosting(
            url=url,
            url_hash=self._hash(url),
            platform=self.platform,
            title=(title or "").strip() or None,
            company=(company or "").strip() or None,
            location=(location or "").strip() or None,
            posted_at=parse_timestamp(posted_at),
        )

    @staticmethod
    def company_name(tenant: str) -> str:
        return display_name(tenant)


class StubScraper(BaseScraper):
    """
    Adapter for an ATS that needs enterprise/authenticated API access we do
    not hold. Registered so the platform list stays uniform; always empty.
    """

    stub = True

    def scrape(self, query: str, limit: int, usa_only: bool) -> list[JobPosting]:
        self.last_outcome = FetchOutcome(platform=self.platform)
        return []

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        return []
