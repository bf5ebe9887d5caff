from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .hashing import available_hashers
from .utils import truthy

DEFAULT_ROSTER_PATH = str(Path(__file__).resolve().parent.parent / "data" / "rosters.json")
DEFAULT_SQLITE_PATH = "/app/local/state/job_scrape.db"

ALLOWED_LIMITS = (400, 500, 1000, 2000)
DEFAULT_LIMIT = 400
PAGE_SIZE = 100

GATEWAY_KINDS = ("sqlite", "postgrest")


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env or a roster file cannot form a valid configuration."""


class RequestError(ValueError):
    """Raised when a scrape request payload is malformed or unusable."""


# -----------------------------
# Rosters
# -----------------------------
@dataclass(frozen=True)
class Rosters:
    """
    Versioned, read-only catalog of known tenant identifiers per platform.
    Loaded once; tenant lists are tuples and the mapping is a read-only proxy.
    """

    version: str
    platforms: Mapping[str, tuple[str, ...]]
    source: str = ""

    def tenants(self, platform: str) -> tuple[str, ...]:
        return self.platforms.get((platform or "").strip().lower(), ())

    def sizes(self) -> dict[str, int]:
        return {k: len(v) for k, v in self.platforms.items()}


def load_rosters(path: str | None = None) -> Rosters:
    """
    Load a roster document:

        {"version": "2025.01", "platforms": {"greenhouse": ["stripe", ...], ...}}

    JSON by default; .yml/.yaml files are read with PyYAML.
    Tenant ids are stripped, lower-cased and de-duplicated (first occurrence wins).
    """
    resolved = path or DEFAULT_ROSTER_PATH
    try:
        with open(resolved, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigError(f"Roster file not found: {resolved}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read roster file: {resolved}: {e}") from e

    if resolved.lower().endswith((".yml", ".yaml")):
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {resolved}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {resolved}: {e}") from e

    return _parse_rosters(data, source=resolved)


def _parse_rosters(data: Any, *, source: str) -> Rosters:
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: top-level roster document must be an object.")
    version = data.get("version")
    if not isinstance(version, (str, int)) or not str(version).strip():
        raise ConfigError(f"{source}: 'version' is required.")
    platforms = data.get("platforms")
    if not isinstance(platforms, dict):
        raise ConfigError(f"{source}: 'platforms' must be an object of platform -> tenant list.")

    out: dict[str, tuple[str, ...]] = {}
    for name, tenants in platforms.items():
        key = str(name).strip().lower()
        if not key:
            raise ConfigError(f"{source}: empty platform name.")
        if not isinstance(tenants, list):
            raise ConfigError(f"{source}: platforms.{key} must be a list of tenant ids.")
        seen: dict[str, None] = {}
        for i, t in enumerate(tenants):
            if not isinstance(t, str) or not t.strip():
                raise ConfigError(f"{source}: platforms.{key}[{i}] must be a non-empty string.")
            seen.setdefault(t.strip().lower(), None)
        out[key] = tuple(seen)
    return Rosters(version=str(version).strip(), platforms=MappingProxyType(out), source=source)


# -----------------------------
# Settings
# -----------------------------
@dataclass
class Settings:
    """
    Runtime configuration for the aggregation engine.

    Every field can come from kwargs; otherwise the matching environment
    variable is consulted, then the default.
    """

    roster_path: str = DEFAULT_ROSTER_PATH
    sqlite_path: str = DEFAULT_SQLITE_PATH
    gateway: str = "sqlite"
    supabase_url: str = ""
    supabase_key: str = field(default="", repr=False)

    batch_size: int = 15
    timeout: float = 15.0
    recency_days: int = 30
    max_platform_threads: int = 8
    session_ttl: float = 3600.0
    hash_algorithm: str = "rolling"

    _rosters: Rosters | None = field(default=None, repr=False)

    def rosters(self) -> Rosters:
        if self._rosters is None:
            self._rosters = load_rosters(self.roster_path)
        return self._rosters

    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None = None) -> Settings:
        """
        Build Settings with validation.

        kwargs / env:
            roster_path           JOB_SCRAPE_ROSTER_PATH          (bundled rosters.json)
            sqlite_path           JOB_SCRAPE_SQLITE_PATH          (/app/local/state/job_scrape.db)
            gateway               JOB_SCRAPE_GATEWAY              sqlite | postgrest
            supabase_url          SUPABASE_URL
            supabase_key          SUPABASE_SERVICE_ROLE_KEY
            batch_size            JOB_SCRAPE_BATCH_SIZE           15
            timeout               JOB_SCRAPE_TIMEOUT              15.0 seconds
            recency_days          JOB_SCRAPE_RECENCY_DAYS         30 (0 disables)
            max_platform_threads  JOB_SCRAPE_MAX_PLATFORM_THREADS 8
            session_ttl           JOB_SCRAPE_SESSION_TTL          3600 seconds
            hash_algorithm        JOB_SCRAPE_HASH                 rolling | sha256
        """
        kw = dict(kwargs or {})

        def pick(key: str, env: str, default: Any) -> Any:
            v = kw.get(key)
            if v is None or v == "":
                v = os.getenv(env)
            return default if v is None or v == "" else v

        try:
            settings = cls(
                roster_path=str(pick("roster_path", "JOB_SCRAPE_ROSTER_PATH", DEFAULT_ROSTER_PATH)),
                sqlite_path=str(pick("sqlite_path", "JOB_SCRAPE_SQLITE_PATH", DEFAULT_SQLITE_PATH)),
                gateway=str(pick("gateway", "JOB_SCRAPE_GATEWAY", "sqlite")).strip().lower(),
                supabase_url=str(pick("supabase_url", "SUPABASE_URL", "")).strip().rstrip("/"),
                supabase_key=str(pick("supabase_key", "SUPABASE_SERVICE_ROLE_KEY", "")).strip(),
                batch_size=int(pick("batch_size", "JOB_SCRAPE_BATCH_SIZE", 15)),
                timeout=float(pick("timeout", "JOB_SCRAPE_TIMEOUT", 15.0)),
                recency_days=int(pick("recency_days", "JOB_SCRAPE_RECENCY_DAYS", 30)),
                max_platform_threads=int(pick("max_platform_threads", "JOB_SCRAPE_MAX_PLATFORM_THREADS", 8)),
                session_ttl=float(pick("session_ttl", "JOB_SCRAPE_SESSION_TTL", 3600)),
                hash_algorithm=str(pick("hash_algorithm", "JOB_SCRAPE_HASH", "rolling")).strip().lower(),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        _validate_settings(settings)
        return settings


def _validate_settings(s: Settings) -> None:
    if s.batch_size <= 0:
        raise ConfigError("'batch_size' must be >= 1.")
    if s.timeout <= 0:
        raise ConfigError("'timeout' must be > 0.")
    if s.recency_days < 0:
        raise ConfigError("'recency_days' must be >= 0.")
    if s.max_platform_threads <= 0:
        raise ConfigError("'max_platform_threads' must be >= 1.")
    if s.session_ttl < 0:
        raise ConfigError("'session_ttl' must be >= 0.")
    if s.hash_algorithm not in available_hashers():
        raise ConfigError(f"'hash_algorithm' must be one of {available_hashers()}.")
    if s.gateway not in GATEWAY_KINDS:
        raise ConfigError(f"'gateway' must be one of {list(GATEWAY_KINDS)}.")
    if s.gateway == "sqlite" and not s.sqlite_path.strip():
        raise ConfigError("'sqlite_path' cannot be empty.")
    if s.gateway == "postgrest" and not (s.supabase_url and s.supabase_key):
        raise ConfigError("The postgrest gateway needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.")


# -----------------------------
# Requests
# -----------------------------
@dataclass(frozen=True)
class ScrapeRequest:
    query: str = ""
    platforms: tuple[str, ...] = ()
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    filter_duplicates: bool = True
    dedupe_table_id: str | None = None
    save_to_table_id: str | None = None
    usa_only: bool = True
    session_id: str | None = None
    posted_within_days: int | None = None

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        *,
        supported: Iterable[str],
        defaults: Iterable[str],
    ) -> ScrapeRequest:
        """
        Validate a request body (camelCase keys, as sent by clients).

        - limit outside ALLOWED_LIMITS coerces to DEFAULT_LIMIT
        - unknown platform ids are dropped; none left is a RequestError
        - missing/empty platforms means `defaults`
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise RequestError("Request body must be a JSON object.")

        query = payload.get("query", "")
        if query is None:
            query = ""
        if not isinstance(query, str):
            raise RequestError("'query' must be a string.")

        supported_set = {p.lower() for p in supported}
        raw_platforms = payload.get("platforms")
        if raw_platforms is None or raw_platforms == []:
            platforms = tuple(defaults)
        else:
            if isinstance(raw_platforms, str):
                raw_platforms = raw_platforms.split(",")
            if not isinstance(raw_platforms, list) or not all(isinstance(p, str) for p in raw_platforms):
                raise RequestError("'platforms' must be a list of strings.")
            seen: dict[str, None] = {}
            for p in raw_platforms:
                key = p.strip().lower()
                if key in supported_set:
                    seen.setdefault(key, None)
            platforms = tuple(seen)
        if not platforms:
            raise RequestError("No supported platforms selected.")

        limit = _coerce_limit(payload.get("limit"))
        offset = _coerce_int(payload.get("offset"), "offset", default=0)
        if offset < 0:
            raise RequestError("'offset' must be >= 0.")

        posted_within = payload.get("postedWithinDays")
        if posted_within is not None:
            posted_within = _coerce_int(posted_within, "postedWithinDays", default=0)
            if posted_within < 0:
                raise RequestError("'postedWithinDays' must be >= 0.")

        return cls(
            query=query.strip(),
            platforms=platforms,
            limit=limit,
            offset=offset,
            filter_duplicates=_coerce_bool(payload.get("filterDuplicates"), default=True),
            dedupe_table_id=_opt_str(payload.get("dedupeTableId"), "dedupeTableId"),
            save_to_table_id=_opt_str(payload.get("saveToTableId"), "saveToTableId"),
            usa_only=_coerce_bool(payload.get("usaOnly"), default=True),
            session_id=_opt_str(payload.get("sessionId"), "sessionId"),
            posted_within_days=posted_within,
        )


def _coerce_limit(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return n if n in ALLOWED_LIMITS else DEFAULT_LIMIT


def _coerce_int(value: Any, name: str, *, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise RequestError(f"'{name}' must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise RequestError(f"'{name}' must be an integer.") from e


def _coerce_bool(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    return truthy(value)


def _opt_str(value: Any, name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int)):
        raise RequestError(f"'{name}' must be a string.")
    s = str(value).strip()
    return s or None
