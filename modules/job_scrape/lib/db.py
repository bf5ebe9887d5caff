from __future__ import annotations

import contextlib
import json
import os
import sqlite3
import threading
import uuid
from collections.abc import Sequence

from .gateway import GLOBAL_SCOPE, GatewayError, PersistenceGateway
from .logging_bridge import error as log_error
from .models import SESSION_COMPLETED, SESSION_IN_PROGRESS, ScrapeSession
from .utils import now_iso


class SqliteGateway(PersistenceGateway):
    """
    Local persistence in one SQLite file.

    Dedupe keys: job_links.job_url_hash, user_table_jobs(table_id, job_url_hash).
    All inserts are INSERT OR IGNORE; a conflict is an expected no-op.

    The file and schema are created on first use, so an unusable path only
    fails the operations that touch it (as GatewayError).
    """

    def __init__(self, sqlite_path: str):
        self.sqlite_path = sqlite_path
        self._initialised = False
        self._init_lock = threading.Lock()

    @contextlib.contextmanager
    def _open(self):
        with self._init_lock:
            if not self._initialised:
                init_db(self.sqlite_path)
                self._initialised = True
        with _connect(self.sqlite_path) as conn:
            _apply_pragmas(conn)
            yield conn

    # ---- contract ----
    def load_existing_hashes(self, scope: str = GLOBAL_SCOPE) -> set[str]:
        try:
            with self._open() as conn:
                if scope == GLOBAL_SCOPE:
                    cur = conn.execute("SELECT job_url_hash FROM job_links")
                else:
                    cur = conn.execute("SELECT job_url_hash FROM user_table_jobs WHERE table_id = ?", (scope,))
                return {row[0] for row in cur.fetchall()}
        except (sqlite3.Error, OSError) as e:
            self._fail("load_existing_hashes", e, scope=scope)

    def create_session(self, query: str, platforms: Sequence[str], requested_limit: int) -> str:
        session_id = str(uuid.uuid4())
        try:
            with self._open() as conn:
                conn.execute(
                    """
                    INSERT INTO scrape_sessions (id, search_query, platforms, requested_limit, status, created_utc)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (session_id, query, json.dumps(list(platforms)), requested_limit, SESSION_IN_PROGRESS, now_iso()),
                )
        except (sqlite3.Error, OSError) as e:
            self._fail("create_session", e)
        return session_id

    def insert_postings(self, postings, scope: str = GLOBAL_SCOPE, *, search_query: str | None = None) -> int:
        """Insert unseen postings; returns how many rows were new."""
        if not postings:
            return 0
        ts = now_iso()
        inserted = 0
        try:
            with self._open() as conn:
                cur = conn.cursor()
                cur.execute("BEGIN IMMEDIATE")
                for p in postings:
                    r = p.to_record()
                    if scope == GLOBAL_SCOPE:
                        cur.execute(
                            """
                            INSERT OR IGNORE INTO job_links (job_url_hash, job_url, job_title, company_name,
                                ats_platform, location, posting_date, search_query, first_seen_utc)
                            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                            """,
                            (
                                r["job_url_hash"], r["job_url"], r["job_title"], r["company_name"],
                                r["ats_platform"], r["location"], r["posting_date"], search_query, ts,
                            ),
                        )
                    else:
                        cur.execute(
                            """
                            INSERT OR IGNORE INTO user_table_jobs (table_id, job_url_hash, job_url, job_title,
                                company_name, ats_platform, location, posting_date, added_utc)
                            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                            """,
                            (
                                scope, r["job_url_hash"], r["job_url"], r["job_title"], r["company_name"],
                                r["ats_platform"], r["location"], r["posting_date"], ts,
                            ),
                        )
                    if cur.rowcount == 1:
                        inserted += 1
                conn.commit()
        except (sqlite3.Error, OSError) as e:
            self._fail("insert_postings", e, scope=scope, count=len(postings))
        return inserted

    def complete_session(self, session_id: str, jobs_found: int, duplicates_filtered: int) -> None:
        try:
            with self._open() as conn:
                conn.execute(
                    """
                    UPDATE scrape_sessions
                       SET jobs_found = ?, duplicates_filtered = ?, status = ?, completed_at = ?
                     WHERE id = ?
                    """,
                    (jobs_found, duplicates_filtered, SESSION_COMPLETED, now_iso(), session_id),
                )
        except (sqlite3.Error, OSError) as e:
            self._fail("complete_session", e, session_id=session_id)

    # ---- diagnostics ----
    def get_session(self, session_id: str) -> ScrapeSession | None:
        try:
            with self._open() as conn:
                row = conn.execute(
                    """
                    SELECT id, search_query, platforms, requested_limit, jobs_found,
                           duplicates_filtered, status, completed_at
                      FROM scrape_sessions WHERE id = ?
                    """,
                    (session_id,),
                ).fetchone()
        except (sqlite3.Error, OSError) as e:
            self._fail("get_session", e, session_id=session_id)
        if row is None:
            return None
        return ScrapeSession(
            id=row[0],
            query=row[1],
            platforms=tuple(json.loads(row[2] or "[]")),
            requested_limit=int(row[3]),
            jobs_found=int(row[4] or 0),
            duplicates_filtered=int(row[5] or 0),
            status=row[6],
            completed_at=row[7],
        )

    def latest_postings(self, limit: int = 20, platform: str | None = None) -> list[dict]:
        """Most recently stored global postings, newest first, optionally for one platform."""
        sql = """
            SELECT job_url, job_url_hash, job_title, company_name, ats_platform,
                   location, posting_date, first_seen_utc
              FROM job_links
        """
        params: list = []
        if platform:
            sql += " WHERE ats_platform = ?"
            params.append(platform)
        sql += " ORDER BY first_seen_utc DESC, id DESC LIMIT ?"
        params.append(limit)
        try:
            with self._open() as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(sql, params).fetchall()
        except (sqlite3.Error, OSError) as e:
            self._fail("latest_postings", e, platform=platform)
        return [dict(r) for r in rows]

    def _fail(self, op: str, e: Exception, **ctx) -> None:
        log_error({
            "component": "job_scrape.db",
            "op": op,
            "sqlite_path": self.sqlite_path,
            "error": repr(e),
            **ctx,
        })
        raise GatewayError(f"sqlite {op} failed: {e}") from e


# ---- Module-level helpers ---------------------------------------------------


def init_db(sqlite_path: str) -> None:
    """
    Ensure the SQLite database and schema exist.
    Safe to call multiple times.
    """
    _ensure_dir(sqlite_path)
    with _connect(sqlite_path) as conn:
        _apply_pragmas(conn)
        _ensure_schema(conn)


def count_rows(sqlite_path: str, table: str = "job_links") -> int:
    """Return total rows in `table`; 0 if DB missing/empty."""
    if table not in ("job_links", "scrape_sessions", "user_table_jobs"):
        raise ValueError(f"unknown table {table!r}")
    if not os.path.exists(sqlite_path):
        return 0
    with _connect(sqlite_path) as conn:
        _apply_pragmas(conn)
        _ensure_schema(conn)
        (n,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    return int(n or 0)


def reset_db(sqlite_path: str) -> None:
    """
    Remove the DB file entirely (for pytest fixtures).
    Safe if it doesn't exist.
    """
    for suffix in ("", "-wal", "-shm"):
        with contextlib.suppress(FileNotFoundError):
            os.remove(sqlite_path + suffix)


# ---- Internal utilities -----------------------------------------------------


def _ensure_dir(sqlite_path: str) -> None:
    d = os.path.dirname(os.path.abspath(sqlite_path)) or "."
    os.makedirs(d, exist_ok=True)


@contextlib.contextmanager
def _connect(sqlite_path: str):
    # Autocommit mode; transactions are opened explicitly where batching matters.
    conn = sqlite3.connect(sqlite_path, timeout=30.0, isolation_level=None)
    try:
        yield conn
    finally:
        conn.close()


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA temp_store=MEMORY;")
    conn.execute("PRAGMA cache_size=-8000;")  # approx 8MB cache


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS job_links (
          id INTEGER PRIMARY KEY,
          job_url_hash TEXT NOT NULL UNIQUE,
          job_url      TEXT NOT NULL,
          job_title    TEXT,
          company_name TEXT,
          ats_platform TEXT NOT NULL,
          location     TEXT,
          posting_date TEXT,
          search_query TEXT,
          first_seen_utc TEXT NOT NULL
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS scrape_sessions (
          id TEXT PRIMARY KEY,
          search_query TEXT NOT NULL,
          platforms TEXT NOT NULL,
          requested_limit INTEGER NOT NULL,
          jobs_found INTEGER NOT NULL DEFAULT 0,
          duplicates_filtered INTEGER NOT NULL DEFAULT 0,
          status TEXT NOT NULL,
          created_utc TEXT NOT NULL,
          completed_at TEXT
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS user_table_jobs (
          id INTEGER PRIMARY KEY,
          table_id TEXT NOT NULL,
          job_url_hash TEXT NOT NULL,
          job_url      TEXT NOT NULL,
          job_title    TEXT,
          company_name TEXT,
          ats_platform TEXT NOT NULL,
          location     TEXT,
          posting_date TEXT,
          added_utc    TEXT NOT NULL
        );
        """
    )
    conn.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS ux_user_table_jobs_dedupe
          ON user_table_jobs (table_id, job_url_hash);
        """
    )
