# tests/test_session_cache.py
import pytest

from modules.job_scrape.lib.pagination import page
from modules.job_scrape.lib.session_cache import SessionCache


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl(mk_posting):
    clock = Clock()
    cache = SessionCache(ttl=60, clock=clock)
    cache.put("s1", [mk_posting("https://a.example.com/1")], {"greenhouse": 1}, 2)

    hit = cache.get("s1")
    assert hit.session_id == "s1"
    assert len(hit.postings) == 1
    assert hit.platform_stats == {"greenhouse": 1}
    assert hit.duplicates_filtered == 2

    clock.now += 60
    assert cache.get("s1") is not None
    clock.now += 1
    assert cache.get("s1") is None
    assert len(cache) == 0


def test_stored_lists_are_snapshots(mk_posting):
    cache = SessionCache()
    postings = [mk_posting("https://a.example.com/1")]
    stats = {"greenhouse": 1}
    cache.put("s1", postings, stats, 0)
    postings.append(mk_posting("https://a.example.com/2"))
    stats["greenhouse"] = 99

    hit = cache.get("s1")
    assert len(hit.postings) == 1
    assert hit.platform_stats == {"greenhouse": 1}


def test_zero_ttl_disables_cache(mk_posting):
    cache = SessionCache(ttl=0)
    cache.put("s1", [mk_posting("https://a.example.com/1")], {}, 0)
    assert cache.get("s1") is None
    assert len(cache) == 0


def test_missing_ids():
    cache = SessionCache()
    cache.put("", [], {}, 0)
    assert cache.get(None) is None
    assert cache.get("unknown") is None
    assert len(cache) == 0


@pytest.mark.parametrize(
    "n,offset,expected_len,has_more",
    [
        (250, 0, 100, True),
        (250, 100, 100, True),
        (250, 200, 50, False),
        (200, 100, 100, False),
        (250, 300, 0, False),
        (0, 0, 0, False),
    ],
)
def test_page(n, offset, expected_len, has_more):
    items = list(range(n))
    chunk, more = page(items, offset)
    assert len(chunk) == expected_len
    assert more is has_more
    if chunk:
        assert chunk[0] == offset


def test_page_rejects_bad_bounds():
    with pytest.raises(ValueError):
        page([1, 2], -1)
    with pytest.raises(ValueError):
        page([1, 2], 0, page_size=0)
