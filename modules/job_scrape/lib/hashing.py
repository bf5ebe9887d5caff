"""
Dedup keys for job-posting URLs.

The default key is a 32-bit rolling hash (h = h * 31 + c over UTF-16 code
units, wrapped to a signed int, rendered as hex of its absolute value). It is
fast and compact; collisions between distinct URLs are possible and accepted.
Stores written with the rolling key stay comparable with keys produced by the
browser-side tooling that uses the same function.

`sha256` is available where a stronger key is wanted; the signature is the same.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable

HashFunc = Callable[[str], str]


def normalize_url(url: str | None) -> str:
    return (url or "").strip().lower()


def rolling_hash(url: str | None) -> str:
    s = normalize_url(url)
    data = s.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


def sha256_hash(url: str | None) -> str:
    return hashlib.sha256(normalize_url(url).encode("utf-8")).hexdigest()


_HASHERS: dict[str, HashFunc] = {
    "rolling": rolling_hash,
    "sha256": sha256_hash,
}

# Default dedup key
url_hash: HashFunc = rolling_hash


def get_hasher(name: str | None) -> HashFunc:
    """Resolve a hasher by name ('rolling' | 'sha256'); empty means the default."""
    key = (name or "rolling").strip().lower()
    if key not in _HASHERS:
        raise KeyError(f"Unknown url hash algorithm {name!r}; expected one of {sorted(_HASHERS)}.")
    return _HASHERS[key]


def available_hashers() -> list[str]:
    return sorted(_HASHERS)
