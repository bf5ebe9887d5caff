# tests/test_engine.py
import threading

import pytest

from modules.job_scrape.lib import classify, engine
from modules.job_scrape.lib.hashing import url_hash


def _urls(platform, n, start=0):
    return [f"https://{platform}.example.com/jobs/{i}" for i in range(start, start + n)]


# ----------------------------------------------------------------------
# Apportionment
# ----------------------------------------------------------------------
@pytest.mark.parametrize("total", [400, 500, 1000, 2000, 1, 7])
@pytest.mark.parametrize("n", [1, 2, 3, 6, 7, 11])
def test_apportion_never_under_covers(total, n):
    per = engine.apportion(total, n)
    assert per * n >= total
    assert per == -(-total // n)


def test_apportion_degenerate_inputs():
    assert engine.apportion(400, 0) == 0
    assert engine.apportion(0, 3) == 0


# ----------------------------------------------------------------------
# Aggregation
# ----------------------------------------------------------------------
def test_each_adapter_gets_ceil_share(list_scraper_factory, mk_posting):
    factory = list_scraper_factory({
        "greenhouse": [mk_posting(u) for u in _urls("gh", 5)],
        "lever": [mk_posting(u, "lever") for u in _urls("lv", 5)],
        "ashbyhq": [],
    })

    result = engine.aggregate("python", ["greenhouse", "lever", "ashbyhq"], 400, set(), True, scraper_factory=factory)

    assert {p: s.calls for p, s in factory.made.items()} == {
        "greenhouse": [("python", 134, True)],
        "lever": [("python", 134, True)],
        "ashbyhq": [("python", 134, True)],
    }
    assert result.platform_stats == {"greenhouse": 5, "lever": 5, "ashbyhq": 0}
    assert len(result.postings) == 10
    assert result.duplicates_filtered == 0


def test_existing_hashes_never_reappear(list_scraper_factory, mk_posting):
    urls = _urls("gh", 6)
    factory = list_scraper_factory({"greenhouse": [mk_posting(u) for u in urls]})
    existing = {url_hash(urls[0]), url_hash(urls[3].upper())}

    result = engine.aggregate("", ["greenhouse"], 400, existing, True, scraper_factory=factory)

    assert [p.url for p in result.postings] == [urls[1], urls[2], urls[4], urls[5]]
    assert not existing & {p.url_hash for p in result.postings}
    assert result.duplicates_filtered == 2
    assert result.platform_stats == {"greenhouse": 4}


def test_same_url_from_two_platforms_survives_once(list_scraper_factory, mk_posting):
    shared = "https://careers.example.com/apply/42"
    factory = list_scraper_factory({
        "greenhouse": [mk_posting(shared), mk_posting("https://gh.example.com/1")],
        "lever": [mk_posting("  " + shared.upper(), "lever"), mk_posting("https://lv.example.com/1", "lever")],
    })

    result = engine.aggregate("", ["greenhouse", "lever"], 400, set(), True, scraper_factory=factory)

    hashes = [p.url_hash for p in result.postings]
    assert len(hashes) == len(set(hashes)) == 3
    assert result.duplicates_filtered == 1
    assert sum(result.platform_stats.values()) == 3


def test_total_limit_is_a_hard_cap(list_scraper_factory, mk_posting):
    factory = list_scraper_factory({
        p: [mk_posting(u, p) for u in _urls(p, 300)] for p in ("greenhouse", "lever", "jobvite")
    })

    result = engine.aggregate("", ["greenhouse", "lever", "jobvite"], 400, set(), True, scraper_factory=factory)

    assert len(result.postings) == 400
    assert sum(result.platform_stats.values()) == 400


def test_failing_platform_counts_zero_and_others_continue(list_scraper_factory, mk_posting):
    factory = list_scraper_factory({
        "greenhouse": RuntimeError("adapter exploded"),
        "lever": [mk_posting(u, "lever") for u in _urls("lv", 3)],
    })

    result = engine.aggregate("", ["greenhouse", "lever"], 400, set(), True, scraper_factory=factory)

    assert result.platform_stats == {"greenhouse": 0, "lever": 3}
    assert result.failed_platforms == ["greenhouse"]
    assert len(result.postings) == 3


def test_factory_error_is_isolated_too(list_scraper_factory, mk_posting):
    inner = list_scraper_factory({"lever": [mk_posting("https://lv.example.com/1", "lever")]})

    def factory(platform):
        if platform == "nope":
            raise KeyError(platform)
        return inner(platform)

    result = engine.aggregate("", ["nope", "lever"], 400, set(), True, scraper_factory=factory)
    assert result.platform_stats == {"nope": 0, "lever": 1}


def test_adapters_run_concurrently(mk_posting):
    barrier = threading.Barrier(3, timeout=5)

    class Waiting:
        last_outcome = None

        def __init__(self, platform):
            self.platform = platform

        def scrape(self, query, limit, usa_only):
            barrier.wait()
            return [mk_posting(f"https://{self.platform}.example.com/1", self.platform)]

        def close(self):
            pass

    result = engine.aggregate("", ["greenhouse", "lever", "jobvite"], 400, set(), True, scraper_factory=Waiting)
    assert len(result.postings) == 3


def test_adapters_are_closed(list_scraper_factory):
    factory = list_scraper_factory({"greenhouse": [], "lever": RuntimeError("x")})
    engine.aggregate("", ["greenhouse", "lever"], 400, set(), True, scraper_factory=factory)
    assert all(s._client.closed for s in factory.made.values())


def test_greenhouse_only_scenario_respects_location_gate(fake_client):
    from modules.job_scrape.lib.scrapers.greenhouse import GreenhouseScraper

    jobs = [
        {"id": i, "title": f"Role {i}", "absolute_url": f"https://boards.greenhouse.io/acme/jobs/{i}", "location": {"name": loc}}
        for i, loc in enumerate(["Denver, CO", "Paris, France", None, "Remote", "Tokyo, Japan", "Chicago, IL"] * 100)
    ]
    client = fake_client({"https://boards-api.greenhouse.io/v1/boards/acme/jobs": {"jobs": jobs}})

    result = engine.aggregate(
        "",
        ["greenhouse"],
        400,
        set(),
        True,
        scraper_factory=lambda p: GreenhouseScraper(client, roster=["acme"]),
    )

    assert 0 < len(result.postings) <= 400
    assert {p.platform for p in result.postings} == {"greenhouse"}
    assert all(classify.is_accepted(p.location, True) for p in result.postings)


def test_usa_only_false_passes_every_location(fake_client):
    from modules.job_scrape.lib.scrapers.lever import LeverScraper

    client = fake_client({
        "https://api.lever.co/v0/postings/initech": [
            {"text": "A", "hostedUrl": "https://jobs.lever.co/initech/1", "categories": {"location": "London"}},
            {"text": "B", "hostedUrl": "https://jobs.lever.co/initech/2", "categories": {"location": "Austin, TX"}},
        ]
    })
    result = engine.aggregate(
        "", ["lever"], 400, set(), False, scraper_factory=lambda p: LeverScraper(client, roster=["initech"])
    )
    assert len(result.postings) == 2


def test_default_factory_wires_roster_and_settings(fresh_settings):
    make = engine.default_scraper_factory(fresh_settings, recency_days=7)
    scraper = make("greenhouse")
    try:
        assert scraper.roster == ("acme", "globex")
        assert scraper.recency_days == 7
        assert scraper.batch_size == fresh_settings.batch_size
        assert scraper._client.timeout == fresh_settings.timeout
    finally:
        scraper.close()

    # settings.recency_days == 0 means no window
    assert engine.default_scraper_factory(fresh_settings)("lever").recency_days is None


def test_empty_selection_returns_empty_result(list_scraper_factory):
    result = engine.aggregate("", [], 400, set(), True, scraper_factory=list_scraper_factory({}))
    assert result.postings == []
    assert result.platform_stats == {}
