from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from .config import PAGE_SIZE

T = TypeVar("T")


def page(items: Sequence[T], offset: int, page_size: int = PAGE_SIZE) -> tuple[list[T], bool]:
    """Slice one page; has_more is offset + page_size < len(items)."""
    if offset < 0:
        raise ValueError("offset must be >= 0")
    if page_size <= 0:
        raise ValueError("page_size must be >= 1")
    return list(items[offset : offset + page_size]), offset + page_size < len(items)
