# tests/conftest.py
import json
import os
import pathlib
import tempfile
from collections.abc import Callable
from typing import Any

import pytest
import requests
from freezegun import freeze_time

from modules.job_scrape.lib import config as js_config
from modules.job_scrape.lib.db import SqliteGateway
from modules.job_scrape.lib.hashing import url_hash
from modules.job_scrape.lib.models import JobPosting
from modules.job_scrape.lib.scrapers.base import BaseScraper


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (network calls or external services).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls or hit external services (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="js-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    for name in (
        "JOB_SCRAPE_SQLITE_PATH",
        "JOB_SCRAPE_ROSTER_PATH",
        "JOB_SCRAPE_GATEWAY",
        "JOB_SCRAPE_RECENCY_DAYS",
        "JOB_SCRAPE_HASH",
        "JOB_SCRAPE_BATCH_SIZE",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


# ---------------------------------------------------------------------
# Files, settings, storage
# ---------------------------------------------------------------------
@pytest.fixture
def roster_file(tmp_path: pathlib.Path) -> pathlib.Path:
    data = {
        "version": "test-1",
        "platforms": {
            "greenhouse": ["acme", "globex"],
            "lever": ["initech"],
            "workday": [],
        },
    }
    path = tmp_path / "rosters.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def fresh_settings(roster_file, tmp_path):
    """A brand-new Settings per test: temp roster, temp SQLite file, recency off."""
    return js_config.Settings.from_env_and_kwargs({
        "roster_path": str(roster_file),
        "sqlite_path": str(tmp_path / "job_scrape.db"),
        "recency_days": 0,
        "max_platform_threads": 4,
    })


@pytest.fixture
def sqlite_gateway(fresh_settings) -> SqliteGateway:
    return SqliteGateway(fresh_settings.sqlite_path)


# ---------------------------------------------------------------------
# Fake network + fake adapters
# ---------------------------------------------------------------------
class FakeClient:
    """
    Stand-in for HttpClient. `routes` maps a URL (without query string) to a
    payload, an exception instance to raise, or a callable(url, params) -> payload.
    Unknown URLs raise requests.HTTPError (like a 404).
    """

    def __init__(self, routes: dict[str, Any] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, Any]] = []
        self.closed = False

    def _resolve(self, method: str, url: str, params: Any) -> Any:
        self.calls.append((method, url, params))
        if url not in self.routes:
            raise requests.HTTPError(f"404 for {url}")
        value = self.routes[url]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            return value(url, params)
        return value

    def get_json(self, url, *, params=None, headers=None, timeout=None, **kwargs):
        return self._resolve("GET", url, params)

    def get_text(self, url, *, params=None, headers=None, timeout=None, encoding=None, **kwargs):
        return self._resolve("GET", url, params)

    def post_json(self, url, payload, *, headers=None, timeout=None, **kwargs):
        return self._resolve("POST", url, payload)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client() -> type[FakeClient]:
    return FakeClient


def make_posting(url: str, platform: str = "greenhouse", **kw) -> JobPosting:
    return JobPosting(url=url, url_hash=url_hash(url), platform=platform, **kw)


class ListScraper(BaseScraper):
    """Adapter that returns a canned list (or raises) instead of touching the network."""

    def __init__(self, platform: str, postings: list[JobPosting] | None = None, error: Exception | None = None):
        super().__init__(FakeClient())
        self.platform = platform
        self._postings = list(postings or [])
        self._error = error
        self.calls: list[tuple[str, int, bool]] = []

    def scrape(self, query, limit, usa_only):
        self.calls.append((query, limit, usa_only))
        if self._error is not None:
            raise self._error
        return self._postings[:limit]

    def scrape_tenant(self, tenant, query, usa_only):
        return []


@pytest.fixture
def list_scraper_factory() -> Callable[[dict[str, Any]], Callable[[str], BaseScraper]]:
    """
    Build a scraper_factory from {platform: [postings] | Exception}.
    The returned factory records every adapter it hands out in `.made`.
    """

    def _build(canned: dict[str, Any]) -> Callable[[str], BaseScraper]:
        made: dict[str, ListScraper] = {}

        def factory(platform: str) -> BaseScraper:
            value = canned.get(platform, [])
            if isinstance(value, Exception):
                scraper = ListScraper(platform, error=value)
            else:
                scraper = ListScraper(platform, postings=value)
            made[platform] = scraper
            return scraper

        factory.made = made  # type: ignore[attr-defined]
        return factory

    return _build


@pytest.fixture
def mk_posting() -> Callable[..., JobPosting]:
    return make_posting
