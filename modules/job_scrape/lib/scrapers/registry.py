from __future__ import annotations

from .base import BaseScraper

# Global in-process registry: platform id -> adapter class
_REGISTRY: dict[str, type[BaseScraper]] = {}


def register(cls: type[BaseScraper]) -> type[BaseScraper]:
    """
    Class decorator or direct call to register an adapter class.
    Requires cls.platform to be a non-empty string.
    """
    platform = getattr(cls, "platform", "") or ""
    if not isinstance(platform, str) or not platform.strip():
        raise ValueError(f"Cannot register scraper {cls!r}: missing/empty 'platform'.")
    key = platform.strip().lower()
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        # Allow idempotent re-registers of the same class; otherwise reject.
        raise ValueError(f"Platform {key!r} already registered to {_REGISTRY[key]!r}.")
    _REGISTRY[key] = cls
    return cls


def get(platform: str) -> type[BaseScraper]:
    """
    Look up an adapter class by platform id (case-insensitive).
    Raises KeyError if not found.
    """
    key = (platform or "").strip().lower()
    if key not in _REGISTRY:
        raise KeyError(f"No scraper registered for platform {platform!r}.")
    return _REGISTRY[key]


def all_platforms() -> dict[str, type[BaseScraper]]:
    """
    Return a shallow copy of the registry (useful for debugging/tests).
    """
    return dict(_REGISTRY)


def default_platforms() -> list[str]:
    """Every registered platform that is not a stub, in registration order."""
    return [k for k, cls in _REGISTRY.items() if not cls.stub]
