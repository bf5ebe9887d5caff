from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .utils import to_iso

SESSION_IN_PROGRESS = "in_progress"
SESSION_COMPLETED = "completed"


@dataclass(frozen=True)
class JobPosting:
    """
    A single job posting as returned by a platform adapter.
    `url_hash` is derived from `url` by the adapter's hasher and is the dedup key.
    """

    url: str
    url_hash: str
    platform: str  # adapter id, e.g. "greenhouse"
    title: str | None = None
    company: str | None = None
    location: str | None = None
    posted_at: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """Wire/storage shape shared by the API response and the persistence layer."""
        return {
            "job_url": self.url,
            "job_url_hash": self.url_hash,
            "job_title": self.title,
            "company_name": self.company,
            "ats_platform": self.platform,
            "location": self.location,
            "posting_date": to_iso(self.posted_at),
        }


@dataclass(frozen=True)
class TenantResult:
    """
    Outcome of one tenant call: either ok (with postings, possibly none) or failed.
    The fetch engine reduces failures to a zero contribution.
    """

    tenant: str
    items: tuple[JobPosting, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(cls, tenant: str, items: list[JobPosting] | tuple[JobPosting, ...]) -> TenantResult:
        return cls(tenant=tenant, items=tuple(items))

    @classmethod
    def failed(cls, tenant: str, reason: str) -> TenantResult:
        return cls(tenant=tenant, error=reason or "unknown error")


@dataclass
class FetchOutcome:
    """What one adapter run produced, plus tenant bookkeeping for logs."""

    platform: str
    postings: list[JobPosting] = field(default_factory=list)
    tenants_attempted: int = 0
    tenants_failed: int = 0
    stopped_early: bool = False


@dataclass
class AggregateResult:
    """
    Merged, deduplicated output of one aggregation pass.
    - platform_stats: kept postings per selected platform (0 for failed ones)
    - duplicates_filtered: candidates dropped because their hash was already known
    """

    postings: list[JobPosting] = field(default_factory=list)
    platform_stats: dict[str, int] = field(default_factory=dict)
    duplicates_filtered: int = 0
    failed_platforms: list[str] = field(default_factory=list)


@dataclass
class ScrapeSession:
    id: str
    query: str
    platforms: tuple[str, ...]
    requested_limit: int
    jobs_found: int = 0
    duplicates_filtered: int = 0
    status: str = SESSION_IN_PROGRESS
    completed_at: str | None = None
