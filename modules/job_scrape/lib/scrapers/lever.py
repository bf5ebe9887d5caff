# modules/job_scrape/lib/scrapers/lever.py
from __future__ import annotations

from typing import Any

from ..models import JobPosting
from .base import BaseScraper
from .registry import register

# Category fields searched alongside the title.
_CATEGORY_KEYS = ("team", "department", "commitment", "location")


@register
class LeverScraper(BaseScraper):
    """
    Lever postings API (JSON mode).

        GET https://api.lever.co/v0/postings/{tenant}?mode=json
        -> [{"text", "hostedUrl", "applyUrl", "createdAt" (epoch ms),
             "categories": {"location", "team", "department", "commitment"}}, ...]

    Relevance: title or any category value.
    """

    platform = "lever"
    name = "Lever"
    API = "https://api.lever.co/v0/postings/{tenant}"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        data = self._client.get_json(self.API.format(tenant=tenant), params={"mode": "json"})
        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for job in self.payload_list(tenant, data):
            if not isinstance(job, dict):
                continue
            title = str(job.get("text") or "")
            categories = _categories(job)
            if not self.matches_query(query, title, *categories.values()):
                continue

            location = categories.get("location") or None
            posted_at = job.get("createdAt")
            if not self.accept(location, posted_at, usa_only):
                continue

            url = str(job.get("hostedUrl") or job.get("applyUrl") or "").strip()
            if not url:
                continue
            out.append(self.make_posting(url, title=title, company=company, location=location, posted_at=posted_at))
        return out


def _categories(job: dict[str, Any]) -> dict[str, str]:
    raw = job.get("categories")
    if not isinstance(raw, dict):
        return {}
    return {k: str(raw[k]) for k in _CATEGORY_KEYS if raw.get(k)}
