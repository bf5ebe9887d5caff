# service/cli.py
"""
User-facing command-line entrypoints for the container.

Subcommands
-----------
scrape [--query Q] [--platforms a,b] [--limit N] [--offset N] [--no-dedupe]
       [--dedupe-table ID] [--save-to-table ID] [--all-locations]
       [--posted-within DAYS] [--json]
    - Runs one aggregation via the request handler and prints a table or JSON

platforms
    - Lists registered platform adapters with stub flags and roster sizes

validate-roster [--roster PATH]
    - Loads/validates the roster file and returns nonzero on error

serve [--host H] [--port P]
    - Runs the HTTP API (service.api) under uvicorn
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Iterable
from typing import Any

from modules.job_scrape.lib.config import ConfigError, Settings, load_rosters
from modules.job_scrape.lib.handler import ScrapeService
from modules.job_scrape.lib.scrapers import registry
from service import logging_utils as L

LOG = logging.getLogger("service.cli")


# -------------------------- Utility / glue code ------------------------------
def _print_table(rows: Iterable[tuple[str, ...]], headers: tuple[str, ...]) -> None:
    """Very simple fixed-width table printer."""
    rows = [tuple(str(c) for c in r) for r in rows]
    widths = [max([len(h)] + [len(r[i]) for r in rows]) for i, h in enumerate(headers)]
    sep = "+-" + "-+-".join("-" * w for w in widths) + "-+"
    print(sep)
    print("| " + " | ".join(h.ljust(w) for h, w in zip(headers, widths)) + " |")
    print(sep)
    for r in rows:
        print("| " + " | ".join(c.ljust(w) for c, w in zip(r, widths)) + " |")
    print(sep)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings.from_env_and_kwargs({
        "roster_path": getattr(args, "roster", None),
        "sqlite_path": getattr(args, "sqlite_path", None),
    })


def _payload_from_args(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "query": args.query,
        "limit": args.limit,
        "offset": args.offset,
        "filterDuplicates": not args.no_dedupe,
        "usaOnly": not args.all_locations,
    }
    if args.platforms:
        payload["platforms"] = [p.strip() for p in args.platforms.split(",") if p.strip()]
    if args.dedupe_table:
        payload["dedupeTableId"] = args.dedupe_table
    if args.save_to_table:
        payload["saveToTableId"] = args.save_to_table
    if args.posted_within is not None:
        payload["postedWithinDays"] = args.posted_within
    return payload


# ------------------------------ Subcommands ----------------------------------
def cmd_scrape(args: argparse.Namespace) -> int:
    start_time = time.monotonic()
    payload = _payload_from_args(args)
    try:
        settings = _settings_from_args(args)
        status, body = ScrapeService(settings).handle(payload)
    except KeyboardInterrupt:
        return 130
    except ConfigError as e:
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 2

    L.write_activity_log({
        "event": "cli_scrape",
        "request": payload,
        "status": status,
        "duration_ms": int((time.monotonic() - start_time) * 1000),
    })

    if args.json:
        print(json.dumps(body, indent=2, ensure_ascii=False))
        return 0 if body.get("success") else 1

    if not body.get("success"):
        print(f"FAILURE: {body.get('error')}", file=sys.stderr)
        return 1

    meta = body["metadata"]
    _print_table(
        [
            (j.get("ats_platform") or "", j.get("company_name") or "", j.get("job_title") or "", j.get("location") or "")
            for j in body["jobs"]
        ],
        headers=("PLATFORM", "COMPANY", "TITLE", "LOCATION"),
    )
    stats = ", ".join(f"{k}={v}" for k, v in meta["platform_stats"].items())
    print(
        f"{len(body['jobs'])} shown of {meta['total_jobs']} (offset {meta['offset']}, "
        f"more: {meta['has_more']}); duplicates filtered: {meta['duplicates_filtered']}; "
        f"{meta['response_time_ms']} ms"
    )
    print(f"per platform: {stats}")
    print(f"session: {meta['session_id']}")
    return 0


def cmd_platforms(args: argparse.Namespace) -> int:
    try:
        rosters = load_rosters(args.roster)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    defaults = set(registry.default_platforms())
    rows = [
        (pid, cls.name or pid, str(len(rosters.tenants(pid))), "stub" if cls.stub else ("default" if pid in defaults else ""))
        for pid, cls in registry.all_platforms().items()
    ]
    _print_table(rows, headers=("ID", "NAME", "TENANTS", "NOTES"))
    return 0


def cmd_validate_roster(args: argparse.Namespace) -> int:
    try:
        rosters = load_rosters(args.roster)
    except ConfigError as e:
        LOG.error("Roster validation failed: %s", e)
        print(f"ERROR: roster invalid: {e}", file=sys.stderr)
        return 1

    unknown = sorted(set(rosters.platforms) - set(registry.all_platforms()))
    empty = sorted(p for p in registry.default_platforms() if not rosters.tenants(p))
    if unknown:
        print(f"WARNING: roster lists unregistered platforms: {', '.join(unknown)}")
    if empty:
        print(f"WARNING: no tenants for: {', '.join(empty)}")
    print(f"OK: roster {rosters.version} ({sum(rosters.sizes().values())} tenants) from {rosters.source}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    L.write_activity_log({"event": "serve_start", "host": args.host, "port": args.port})
    try:
        uvicorn.run("service.api:app", host=args.host, port=args.port, log_level=args.log_level)
    except KeyboardInterrupt:
        return 130
    finally:
        L.write_activity_log({"event": "serve_stop"})
    return 0


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m service.cli",
        description="Job posting aggregator tools",
    )
    p.add_argument("--roster", help="Roster file (fallbacks to JOB_SCRAPE_ROSTER_PATH or the bundled one).")
    p.add_argument("--sqlite-path", dest="sqlite_path", help="SQLite store (fallbacks to JOB_SCRAPE_SQLITE_PATH).")
    sub = p.add_subparsers(dest="cmd", required=True)

    # scrape
    sp = sub.add_parser("scrape", help="Run one aggregation and print the first page.")
    sp.add_argument("--query", "-q", default="", help="Free-text relevance filter.")
    sp.add_argument("--platforms", help="Comma-separated platform ids (default: all non-stub).")
    sp.add_argument("--limit", type=int, default=400, help="400, 500, 1000 or 2000 (others fall back to 400).")
    sp.add_argument("--offset", type=int, default=0)
    sp.add_argument("--no-dedupe", action="store_true", help="Do not filter previously seen postings.")
    sp.add_argument("--dedupe-table", help="Dedup against this saved table instead of the global store.")
    sp.add_argument("--save-to-table", help="Also store results in this saved table.")
    sp.add_argument("--all-locations", action="store_true", help="Disable the USA-only location filter.")
    sp.add_argument("--posted-within", type=int, default=None, help="Recency window in days (0 disables).")
    sp.add_argument("--json", action="store_true", help="Print the raw response body.")
    sp.set_defaults(func=cmd_scrape)

    # platforms
    sp = sub.add_parser("platforms", help="List registered platforms.")
    sp.set_defaults(func=cmd_platforms)

    # validate-roster
    sp = sub.add_parser("validate-roster", help="Verify the roster file.")
    sp.set_defaults(func=cmd_validate_roster)

    # serve
    sp = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    sp.add_argument("--host", default="0.0.0.0")
    sp.add_argument("--port", type=int, default=8000)
    sp.add_argument("--log-level", default="info")
    sp.set_defaults(func=cmd_serve)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    L.configure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
