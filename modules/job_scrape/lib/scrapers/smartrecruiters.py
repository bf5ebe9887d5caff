# modules/job_scrape/lib/scrapers/smartrecruiters.py
from __future__ import annotations

from typing import Any

from ..models import JobPosting
from .base import BaseScraper
from .registry import register


@register
class SmartRecruitersScraper(BaseScraper):
    """
    SmartRecruiters public Posting API.

        GET https://api.smartrecruiters.com/v1/companies/{tenant}/postings?limit=100
        -> {"content": [{"id", "name", "ref", "releasedDate",
                         "company": {"name"}, "department": {"label"},
                         "location": {"city", "region", "country", "remote"}}, ...]}

    `location.country` is an ISO code; with usa_only a non-"us" code drops the
    posting before the free-text check, since two-letter codes collide with
    US state abbreviations (CA, DE, IN, ...).
    """

    platform = "smartrecruiters"
    name = "SmartRecruiters"
    API = "https://api.smartrecruiters.com/v1/companies/{tenant}/postings"
    PUBLIC_URL = "https://jobs.smartrecruiters.com/{tenant}/{job_id}"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        data = self._client.get_json(self.API.format(tenant=tenant), params={"limit": 100})
        content = self.payload_list(tenant, data, "content")

        out: list[JobPosting] = []
        for job in content:
            if not isinstance(job, dict):
                continue
            title = str(job.get("name") or "")
            dept = job.get("department")
            department = dept.get("label") if isinstance(dept, dict) else None
            if not self.matches_query(query, title, department):
                continue

            loc = job.get("location")
            if not isinstance(loc, dict):
                loc = {}
            country = str(loc.get("country") or "").strip().lower()
            if usa_only and country and country != "us":
                continue
            location = _format_location(loc)
            posted_at = job.get("releasedDate")
            if not self.accept(location, posted_at, usa_only):
                continue

            job_id = job.get("id")
            url = self.PUBLIC_URL.format(tenant=tenant, job_id=job_id) if job_id else str(job.get("ref") or "")
            if not url:
                continue
            company_obj = job.get("company")
            company = (company_obj.get("name") if isinstance(company_obj, dict) else None) or self.company_name(tenant)
            out.append(self.make_posting(url, title=title, company=company, location=location, posted_at=posted_at))
        return out


def _format_location(loc: dict[str, Any]) -> str | None:
    parts = [str(loc.get(k)).strip() for k in ("city", "region") if loc.get(k)]
    if loc.get("country"):
        parts.append(str(loc["country"]).strip().upper())
    if loc.get("remote") and not parts:
        return "Remote"
    return ", ".join(p for p in parts if p) or None
