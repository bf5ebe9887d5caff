# modules/job_scrape/lib/scrapers/greenhouse.py
from __future__ import annotations

from typing import Any

from ..models import JobPosting
from .base import BaseScraper
from .registry import register


@register
class GreenhouseScraper(BaseScraper):
    """
    Greenhouse public Job Board API.

        GET https://boards-api.greenhouse.io/v1/boards/{tenant}/jobs
        -> {"jobs": [{"id", "title", "absolute_url", "location": {"name"},
                      "updated_at", "departments": [{"name"}]?}, ...]}

    Relevance: title or first department name.
    """

    platform = "greenhouse"
    name = "Greenhouse"
    API = "https://boards-api.greenhouse.io/v1/boards/{tenant}/jobs"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        data = self._client.get_json(self.API.format(tenant=tenant))
        jobs = self.payload_list(tenant, data, "jobs")

        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for job in jobs:
            if not isinstance(job, dict):
                continue
            title = str(job.get("title") or "")
            if not self.matches_query(query, title, _first_department(job)):
                continue

            loc = job.get("location")
            location = loc.get("name") if isinstance(loc, dict) else None
            posted_at = job.get("updated_at")
            if not self.accept(location, posted_at, usa_only):
                continue

            url = str(job.get("absolute_url") or "").strip()
            if not url and job.get("id"):
                url = f"https://boards.greenhouse.io/{tenant}/jobs/{job['id']}"
            if not url:
                continue
            out.append(self.make_posting(url, title=title, company=company, location=location, posted_at=posted_at))
        return out


def _first_department(job: dict[str, Any]) -> str:
    depts = job.get("departments")
    if isinstance(depts, list) and depts and isinstance(depts[0], dict):
        return str(depts[0].get("name") or "")
    return ""
