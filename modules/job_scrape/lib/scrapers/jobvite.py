# modules/job_scrape/lib/scrapers/jobvite.py
from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..models import JobPosting
from .base import BaseScraper
from .registry import register


@register
class JobviteScraper(BaseScraper):
    """
    Jobvite hosted careers search page (HTML; there is no public JSON API).

        GET https://jobs.jobvite.com/{tenant}/search?q={query}

    Rows look like:
        <tr><td class="jv-job-list-name"><a href="/acme/job/oAbC123">Title</a></td>
            <td class="jv-job-list-location">Austin, TX</td></tr>

    Pages without the table are scanned for any '/job/' anchor. No dates.
    """

    platform = "jobvite"
    name = "Jobvite"
    BASE = "https://jobs.jobvite.com"
    SEARCH_URL = "https://jobs.jobvite.com/{tenant}/search"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        html = self._client.get_text(self.SEARCH_URL.format(tenant=tenant), params={"q": query} if query else None)
        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for title, href, location in self._parse_list_page(html):
            if not self.matches_query(query, title):
                continue
            if not self.accept(location, None, usa_only):
                continue
            out.append(self.make_posting(urljoin(self.BASE, href), title=title, company=company, location=location))
        return out

    # ---- internals ----

    def _parse_list_page(self, html: str) -> list[tuple[str, str, str | None]]:
        """
        Return list[(title, href, location)] in page order, one per distinct href.
        """
        soup = BeautifulSoup(html, "html5lib")
        out: list[tuple[str, str, str | None]] = []
        seen: set[str] = set()

        for row in soup.select("tr"):
            a = row.select_one("td.jv-job-list-name a[href]")
            if a is None:
                continue
            href = (a.get("href") or "").strip()
            title = a.get_text(" ", strip=True)
            loc_el = row.select_one("td.jv-job-list-location")
            location = loc_el.get_text(" ", strip=True) if loc_el else None
            if href and title and href not in seen:
                seen.add(href)
                out.append((title, href, location or None))

        if out:
            return out

        for a in soup.select("a[href]"):
            href = (a.get("href") or "").strip()
            if "/job/" not in href or href in seen:
                continue
            title = a.get_text(" ", strip=True)
            if title:
                seen.add(href)
                out.append((title, href, None))
        return out
