# modules/job_scrape/lib/scrapers/bamboohr.py
from __future__ import annotations

from typing import Any

from ..models import JobPosting
from .base import BaseScraper
from .registry import register


@register
class BambooHRScraper(BaseScraper):
    """
    BambooHR careers list (JSON behind the hosted careers page).

        GET https://{tenant}.bamboohr.com/careers/list
        -> {"result": [{"id", "jobOpeningName", "departmentLabel",
                        "location": {"city", "state"}, "isRemote"?, "dateCreated"?}, ...]}
    """

    platform = "bamboohr"
    name = "BambooHR"
    API = "https://{tenant}.bamboohr.com/careers/list"
    JOB_URL = "https://{tenant}.bamboohr.com/careers/{job_id}"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        data = self._client.get_json(self.API.format(tenant=tenant))
        result = self.payload_list(tenant, data, "result")

        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for job in result:
            if not isinstance(job, dict):
                continue
            title = str(job.get("jobOpeningName") or "")
            if not self.matches_query(query, title, job.get("departmentLabel")):
                continue

            location = _format_location(job)
            posted_at = job.get("dateCreated")
            if not self.accept(location, posted_at, usa_only):
                continue

            job_id = job.get("id")
            if not job_id:
                continue
            url = self.JOB_URL.format(tenant=tenant, job_id=job_id)
            out.append(self.make_posting(url, title=title, company=company, location=location, posted_at=posted_at))
        return out


def _format_location(job: dict[str, Any]) -> str | None:
    loc = job.get("location")
    parts: list[str] = []
    if isinstance(loc, dict):
        parts = [str(loc[k]).strip() for k in ("city", "state") if loc.get(k)]
    if not parts and job.get("isRemote"):
        return "Remote"
    return ", ".join(parts) or None
