# tests/test_hashing.py
import re

import pytest

from modules.job_scrape.lib import hashing


def test_rolling_hash_known_values():
    assert hashing.rolling_hash("") == "0"
    assert hashing.rolling_hash("a") == "61"  # 97
    assert hashing.rolling_hash("ab") == "c21"  # 97 * 31 + 98 = 3105


@pytest.mark.parametrize(
    "url",
    [
        "https://boards.greenhouse.io/acme/jobs/123",
        "  https://jobs.lever.co/Initech/abc-def  ",
        "HTTPS://JOBS.ASHBYHQ.COM/Globex/9f1e",
    ],
)
def test_hash_ignores_case_and_surrounding_whitespace(url):
    for fn in (hashing.rolling_hash, hashing.sha256_hash):
        assert fn(url) == fn(url.strip().lower())
        assert fn(url) == fn(f"\t{url.upper()}\n")


def test_rolling_hash_is_compact_hex_of_32bit_magnitude():
    h = hashing.rolling_hash("https://boards.greenhouse.io/acme/jobs/4000123456789")
    assert re.fullmatch(r"[0-9a-f]+", h)
    assert int(h, 16) <= 2**31


def test_distinct_urls_usually_differ():
    urls = [f"https://boards.greenhouse.io/acme/jobs/{i}" for i in range(500)]
    assert len({hashing.rolling_hash(u) for u in urls}) == 500


def test_non_ascii_urls_hash_deterministically():
    url = "https://jobs.smartrecruiters.com/Zürich/1"
    assert hashing.rolling_hash(url) == hashing.rolling_hash(url)
    assert hashing.rolling_hash(url) != hashing.rolling_hash(url.replace("ü", "u"))


def test_get_hasher_resolves_names():
    assert hashing.get_hasher(None) is hashing.rolling_hash
    assert hashing.get_hasher("SHA256") is hashing.sha256_hash
    assert hashing.available_hashers() == ["rolling", "sha256"]
    with pytest.raises(KeyError):
        hashing.get_hasher("md5")
