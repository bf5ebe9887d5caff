# modules/job_scrape/lib/scrapers/jazzhr.py
from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..models import JobPosting
from .base import BaseScraper
from .registry import register


@register
class JazzHRScraper(BaseScraper):
    """
    JazzHR hosted boards on per-tenant subdomains (HTML only).

        GET https://{tenant}.applytojob.com/apply

    Each opening is an <li class="list-group-item"> with the title link in
    h4.list-group-item-heading and the location next to a map-marker icon.
    Anything else on the page that links to '/apply/<id>' is picked up too.
    """

    platform = "jazzhr"
    name = "JazzHR"
    BOARD_URL = "https://{tenant}.applytojob.com/apply"

    def scrape_tenant(self, tenant: str, query: str, usa_only: bool) -> list[JobPosting]:
        board_url = self.BOARD_URL.format(tenant=tenant)
        html = self._client.get_text(board_url)
        out: list[JobPosting] = []
        company = self.company_name(tenant)
        for title, href, location in self._parse_board(html):
            if not self.matches_query(query, title):
                continue
            if not self.accept(location, None, usa_only):
                continue
            out.append(self.make_posting(urljoin(board_url, href), title=title, company=company, location=location))
        return out

    # ---- internals ----

    def _parse_board(self, html: str) -> list[tuple[str, str, str | None]]:
        soup = BeautifulSoup(html, "html5lib")
        out: list[tuple[str, str, str | None]] = []
        seen: set[str] = set()

        for item in soup.select("li.list-group-item"):
            a = item.select_one(".list-group-item-heading a[href]")
            if a is None:
                continue
            href = (a.get("href") or "").strip()
            title = a.get_text(" ", strip=True)
            location = None
            marker = item.select_one("i.fa-map-marker")
            if marker is not None and marker.parent is not None:
                location = marker.parent.get_text(" ", strip=True) or None
            if href and title and href not in seen:
                seen.add(href)
                out.append((title, href, location))

        for a in soup.select("a[href]"):
            href = (a.get("href") or "").strip()
            if "/apply/" not in href or href in seen:
                continue
            title = a.get_text(" ", strip=True)
            if title:
                seen.add(href)
                out.append((title, href, None))
        return out
