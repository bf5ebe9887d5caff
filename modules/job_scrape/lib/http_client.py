# job_scrape/http_client.py
from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

LOG = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

# Some ATS endpoints reject non-browser clients outright.
BROWSER_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_JSON_HEADERS = {"Accept": "application/json"}


class HttpClient:
    """
    Shared HTTP client for platform adapters.

    - browser-like default headers
    - one bounded timeout per call (seconds)
    - no retries by default: a failed tenant is dropped for the run, not re-fetched
    - connection pool sized for one concurrent batch of tenant calls
    """

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = BROWSER_USER_AGENT,
        *,
        retries: int = 0,
        pool_maxsize: int = 20,
    ):
        self.timeout = float(timeout)
        self.session = requests.Session()
        self.session.headers.update(BROWSER_HEADERS)
        self.session.headers["User-Agent"] = user_agent

        adapter = HTTPAdapter(
            max_retries=Retry(
                total=retries,
                backoff_factor=0.5,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=frozenset(["GET", "POST", "HEAD"]),
                raise_on_status=False,
            ),
            pool_connections=10,
            pool_maxsize=max(pool_maxsize, 1),
        )
        for prefix in ("http://", "https://"):
            self.session.mount(prefix, adapter)

    def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        encoding: str | None = None,
        **kwargs: Any,
    ) -> str:
        """GET an HTML/text page. `encoding` forces the charset; otherwise sniffed when missing."""
        resp = self._send("GET", url, params=params, headers=headers, timeout=timeout, **kwargs)
        if encoding:
            resp.encoding = encoding
        elif not resp.encoding and resp.apparent_encoding:
            resp.encoding = resp.apparent_encoding
        return resp.text

    def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        resp = self._send("GET", url, params=params, headers={**_JSON_HEADERS, **(headers or {})}, timeout=timeout, **kwargs)
        return _decode_json(resp, url)

    def post_json(
        self,
        url: str,
        payload: Any,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> Any:
        """POST a JSON body and parse the JSON reply (empty body -> None)."""
        resp = self._send("POST", url, json=payload, headers={**_JSON_HEADERS, **(headers or {})}, timeout=timeout, **kwargs)
        if not resp.content:
            return None
        return _decode_json(resp, url)

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)

    def _send(self, method: str, url: str, *, timeout: float | None = None, **kwargs: Any) -> requests.Response:
        """One request with the client timeout; non-2xx raises requests.HTTPError."""
        t0 = time.perf_counter()
        resp = self.session.request(method, url, timeout=timeout or self.timeout, **kwargs)
        LOG.debug("%s %s -> %s in %.0f ms", method, url, resp.status_code, (time.perf_counter() - t0) * 1000)
        resp.raise_for_status()
        return resp


def _decode_json(resp: requests.Response, url: str) -> Any:
    # Some boards label JSON as text/html; retry on the raw text before giving up.
    try:
        return resp.json()
    except ValueError as e:
        try:
            return json.loads(resp.text)
        except ValueError:
            preview = resp.text[:200].replace("\n", " ")
            raise ValueError(f"{url!r} did not return JSON; body starts: {preview!r}") from e
