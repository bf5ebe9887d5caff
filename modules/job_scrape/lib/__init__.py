# modules/job_scrape/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import ConfigError, RequestError, Rosters, ScrapeRequest, Settings, load_rosters
from .engine import aggregate, apportion
from .gateway import GLOBAL_SCOPE, GatewayError, PersistenceGateway
from .handler import ScrapeService, handle_scrape_request
from .models import AggregateResult, JobPosting, ScrapeSession, TenantResult

# Importing the package registers every built-in adapter.
from . import scrapers as _scrapers  # noqa: F401

__all__ = [
    "GLOBAL_SCOPE",
    "AggregateResult",
    "ConfigError",
    "GatewayError",
    "JobPosting",
    "PersistenceGateway",
    "RequestError",
    "Rosters",
    "ScrapeRequest",
    "ScrapeService",
    "ScrapeSession",
    "Settings",
    "TenantResult",
    "aggregate",
    "apportion",
    "handle_scrape_request",
    "load_rosters",
]
