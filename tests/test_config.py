# tests/test_config.py
import json

import pytest

from modules.job_scrape.lib import config as js_config
from modules.job_scrape.lib.config import ConfigError, RequestError, ScrapeRequest
from modules.job_scrape.lib.scrapers import all_platforms, default_platforms

SUPPORTED = ["greenhouse", "lever", "workday"]
DEFAULTS = ["greenhouse", "lever"]


def _req(payload):
    return ScrapeRequest.from_payload(payload, supported=SUPPORTED, defaults=DEFAULTS)


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------
def test_defaults():
    s = js_config.Settings.from_env_and_kwargs({})
    assert s.gateway == "sqlite"
    assert s.batch_size == 15
    assert s.recency_days == 30
    assert s.session_ttl == 3600.0
    assert s.hash_algorithm == "rolling"
    assert s.roster_path == js_config.DEFAULT_ROSTER_PATH


def test_env_is_used_when_kwargs_missing(monkeypatch):
    monkeypatch.setenv("JOB_SCRAPE_BATCH_SIZE", "5")
    monkeypatch.setenv("JOB_SCRAPE_HASH", "SHA256")
    s = js_config.Settings.from_env_and_kwargs({"timeout": 3})
    assert s.batch_size == 5
    assert s.hash_algorithm == "sha256"
    assert s.timeout == 3.0


def test_kwargs_win_over_env(monkeypatch):
    monkeypatch.setenv("JOB_SCRAPE_BATCH_SIZE", "5")
    assert js_config.Settings.from_env_and_kwargs({"batch_size": 9}).batch_size == 9


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0},
        {"batch_size": "many"},
        {"timeout": -1},
        {"recency_days": -2},
        {"max_platform_threads": 0},
        {"session_ttl": -5},
        {"hash_algorithm": "md5"},
        {"gateway": "mongo"},
        {"gateway": "postgrest"},  # no url/key
    ],
)
def test_invalid_settings_raise(kwargs):
    with pytest.raises(ConfigError):
        js_config.Settings.from_env_and_kwargs(kwargs)


def test_supabase_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co/")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "secret")
    s = js_config.Settings.from_env_and_kwargs({"gateway": "postgrest"})
    assert s.supabase_url == "https://x.supabase.co"
    assert "secret" not in repr(s)


# ----------------------------------------------------------------------
# Rosters
# ----------------------------------------------------------------------
def test_bundled_roster_covers_every_registered_platform():
    rosters = js_config.load_rosters()
    assert rosters.version
    assert set(all_platforms()) <= set(rosters.platforms)
    for platform in default_platforms():
        assert rosters.tenants(platform), platform
    assert rosters.tenants("workday") == ()


def test_roster_normalization(tmp_path):
    path = tmp_path / "r.json"
    path.write_text(json.dumps({"version": 3, "platforms": {"Lever": [" Initech ", "initech", "hooli"]}}), encoding="utf-8")

    rosters = js_config.load_rosters(str(path))

    assert rosters.version == "3"
    assert rosters.tenants("LEVER") == ("initech", "hooli")
    assert rosters.tenants("greenhouse") == ()
    assert rosters.sizes() == {"lever": 2}
    with pytest.raises(TypeError):
        rosters.platforms["lever"] = ()


def test_yaml_roster(tmp_path):
    path = tmp_path / "r.yaml"
    path.write_text("version: '2025.01'\nplatforms:\n  greenhouse:\n    - acme\n    - globex\n", encoding="utf-8")
    assert js_config.load_rosters(str(path)).tenants("greenhouse") == ("acme", "globex")


@pytest.mark.parametrize(
    "doc",
    [
        "[]",
        '{"platforms": {}}',
        '{"version": "1", "platforms": []}',
        '{"version": "1", "platforms": {"lever": "initech"}}',
        '{"version": "1", "platforms": {"lever": [""]}}',
        "{not json",
    ],
)
def test_invalid_rosters(tmp_path, doc):
    path = tmp_path / "bad.json"
    path.write_text(doc, encoding="utf-8")
    with pytest.raises(ConfigError):
        js_config.load_rosters(str(path))


def test_missing_roster(tmp_path):
    with pytest.raises(ConfigError):
        js_config.load_rosters(str(tmp_path / "nope.json"))


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------
def test_request_defaults():
    r = _req({})
    assert r.query == ""
    assert r.platforms == ("greenhouse", "lever")
    assert r.limit == 400
    assert r.offset == 0
    assert r.filter_duplicates is True
    assert r.usa_only is True
    assert r.session_id is None
    assert r.posted_within_days is None


@pytest.mark.parametrize("limit,expected", [(500, 500), (2000, 2000), ("1000", 1000), (123, 400), (None, 400), ("x", 400)])
def test_limit_coercion(limit, expected):
    assert _req({"limit": limit}).limit == expected


def test_platforms_are_filtered_and_deduped():
    r = _req({"platforms": ["Lever", "bogus", "lever", "workday"]})
    assert r.platforms == ("lever", "workday")
    assert _req({"platforms": "greenhouse, lever"}).platforms == ("greenhouse", "lever")


def test_camel_case_fields():
    r = _req({
        "query": "  Data Engineer ",
        "offset": "200",
        "filterDuplicates": "false",
        "dedupeTableId": "t1",
        "saveToTableId": 7,
        "usaOnly": False,
        "sessionId": "abc",
        "postedWithinDays": 14,
    })
    assert r.query == "Data Engineer"
    assert r.offset == 200
    assert r.filter_duplicates is False
    assert r.dedupe_table_id == "t1"
    assert r.save_to_table_id == "7"
    assert r.usa_only is False
    assert r.session_id == "abc"
    assert r.posted_within_days == 14


@pytest.mark.parametrize(
    "payload",
    [
        "body",
        {"query": ["x"]},
        {"platforms": ["bogus"]},
        {"platforms": {"a": 1}},
        {"offset": True},
        {"offset": -100},
        {"postedWithinDays": -1},
        {"sessionId": {"id": 1}},
    ],
)
def test_request_errors(payload):
    with pytest.raises(RequestError):
        _req(payload)
