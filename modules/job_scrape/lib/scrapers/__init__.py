# job_scrape/scrapers/__init__.py
from __future__ import annotations

# Importing the adapter modules registers them, in this order.
from . import greenhouse, lever, smartrecruiters, ashby, jobvite, jazzhr, bamboohr, enterprise  # noqa: F401
from .base import BaseScraper, ScraperError, StubScraper
from .registry import all_platforms, default_platforms, get, register

__all__ = [
    "BaseScraper",
    "ScraperError",
    "StubScraper",
    "all_platforms",
    "default_platforms",
    "get",
    "register",
]
