# modules/job_scrape/lib/scrapers/ashby.py
from __future__ import annotations

from typing import Any

from ..models import JobPosting
from .base import BaseScraper, ScraperError
from .registry import register

_GRAPHQL_QUERY = """
query ApiJobBoardWithTeams($organizationHostedJobsPageName: String!) {
  jobBoard: jobBoardWithTeams(organizationHostedJobsPageName: $organizationHostedJobsPageName) {
    jobPostings {
      id
      title
      locationName
      employmentType
      publishedDate
    }
  }
}
""".strip()


@register
class AshbyScraper(BaseScraper):
    """
    AshbyHQ hosted job board via its non-user GraphQL endpoint.

        POST https://jobs.ashbyhq.com/api/non-user-graphql?op=ApiJobBoardWithTeams
        {"operationName": "ApiJobBoardWithTeams",
         "variables": {"organizationHostedJobsPageName": tenant}, "query": ...}
        -> {"data": {"jobBoard": {"jobPostings": [...]}}}

    Older boards answer with "jobs" instead of "jobPostings"; both are read.
    A board that does not exist answers {"data": {"jobBoard": null}}; a
    GraphQL "errors" body fails the tenant.
    """

    platform = "ashbyhq"
    name = "AshbyHQ"
    API = "https://jobs.ashbyhq.com/api/non-user-graphql?op=ApiJobBoardWithTeams"
    JOB_URL = "https://jobs.ashbyhq.com/{tenant}/{job_id}"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        payload = {
            "operationName": "ApiJobBoardWithTeams",
            "variables": {"organizationHostedJobsPageName": tenant},
            "query": _GRAPHQL_QUERY,
        }
        data = self._client.post_json(self.API, payload)

        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for job in _extract_jobs(tenant, data):
            title = str(job.get("title") or "")
            if not self.matches_query(query, title):
                continue

            location = job.get("locationName") or None
            posted_at = job.get("publishedDate")
            if not self.accept(location, posted_at, usa_only):
                continue

            job_id = job.get("id")
            if not job_id:
                continue
            url = self.JOB_URL.format(tenant=tenant, job_id=job_id)
            out.append(self.make_posting(url, title=title, company=company, location=location, posted_at=posted_at))
        return out


def _extract_jobs(tenant: str, data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        raise ScraperError(f"ashbyhq/{tenant}: expected a JSON object, got {type(data).__name__}")
    if data.get("errors"):
        raise ScraperError(f"ashbyhq/{tenant}: GraphQL errors: {data['errors']!r}")
    inner = data.get("data")
    board = inner.get("jobBoard") if isinstance(inner, dict) else None
    if not isinstance(board, dict):
        return []
    for key in ("jobPostings", "jobs"):
        jobs = board.get(key)
        if isinstance(jobs, list):
            return [j for j in jobs if isinstance(j, dict)]
    return []
