#!/usr/bin/env python3

import argparse
import os
import sys
from datetime import datetime

from modules.job_scrape.lib.config import DEFAULT_SQLITE_PATH
from modules.job_scrape.lib.db import SqliteGateway
from modules.job_scrape.lib.gateway import GatewayError

DEFAULT_DB = os.getenv("JOB_SCRAPE_SQLITE_PATH", DEFAULT_SQLITE_PATH)


def format_timestamp(iso_str: str) -> str:
    """Convert ISO timestamp to readable local format."""
    try:
        dt = datetime.fromisoformat(iso_str.replace("Z", "+00:00"))
        return dt.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
    except (AttributeError, TypeError, ValueError):
        return str(iso_str)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Show the most recently stored job postings.")
    ap.add_argument("limit", nargs="?", type=int, default=15)
    ap.add_argument("--db", default=DEFAULT_DB, help="SQLite file (default: %(default)s)")
    ap.add_argument("--platform", default=None, help="Only rows from this ATS platform")
    args = ap.parse_args(argv)

    # The gateway creates missing files; a typo'd path should not.
    if not os.path.exists(args.db):
        print(f"Database not found: {args.db}")
        return 1
    if args.limit <= 0:
        print(f"Invalid limit: {args.limit}. Using default (15).", file=sys.stderr)
        args.limit = 15

    try:
        rows = SqliteGateway(args.db).latest_postings(args.limit, platform=args.platform)
    except GatewayError as e:
        print(f"Error reading {args.db}: {e}", file=sys.stderr)
        return 1

    print(f"DATABASE: {args.db}")
    print("-" * 80)
    if not rows:
        print("  No entries found.")
        return 0

    for i, row in enumerate(rows, 1):
        print(f"{i:2d}. [{format_timestamp(row['first_seen_utc'])}] {row['ats_platform']}")
        print(f"     Title:    {row['job_title'] or '-'}")
        print(f"     Company:  {row['company_name'] or '-'}")
        print(f"     Location: {row['location'] or '-'}")
        print(f"     URL:      {row['job_url']}")
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
