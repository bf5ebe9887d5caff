# modules/job_scrape/lib/scrapers/enterprise.py
"""
Enterprise ATSes whose listing APIs sit behind tenant credentials.

They are registered so clients can name them and the stats map stays
uniform, but they return nothing until credentials are available.
"""

from __future__ import annotations

from .base import StubScraper
from .registry import register


@register
class WorkdayScraper(StubScraper):
    platform = "workday"
    name = "Workday"


@register
class IcimsScraper(StubScraper):
    platform = "icims"
    name = "iCIMS"


@register
class TaleoScraper(StubScraper):
    platform = "taleo"
    name = "Taleo (Oracle)"


@register
class SuccessFactorsScraper(StubScraper):
    platform = "successfactors"
    name = "SuccessFactors (SAP)"
