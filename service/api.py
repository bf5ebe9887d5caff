# service/api.py
"""
HTTP surface for the job_scrape aggregator.

Routes
------
POST /scrape-jobs   request body as documented on ScrapeRequest.from_payload;
                    200 with the page on success, 500 with {success: false, ...}
GET  /platforms     registered adapters, stub flags and roster sizes
GET  /health        liveness

Run with `python -m service.cli serve` or `uvicorn service.api:app`.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from modules.job_scrape.lib.config import ConfigError, Settings
from modules.job_scrape.lib.handler import ScrapeService
from modules.job_scrape.lib.scrapers import registry
from service import logging_utils as L

LOG = logging.getLogger("service.api")


def create_app(settings: Settings | None = None, *, service: ScrapeService | None = None) -> FastAPI:
    """
    Build the app. The ScrapeService (gateway + session cache) is created on
    first use unless one is passed in, so importing this module touches no
    storage.
    """
    L.configure_logging()
    app = FastAPI(title="Job Scrape", version="1.0.0")

    # Browser clients call this cross-origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    state: dict[str, Any] = {"service": service}
    lock = threading.Lock()

    def get_service() -> ScrapeService:
        with lock:
            if state["service"] is None:
                state["service"] = ScrapeService(settings or Settings.from_env_and_kwargs({}))
            return state["service"]

    app.state.get_service = get_service

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/platforms")
    def platforms() -> dict[str, Any]:
        svc = get_service()
        rosters = svc.settings.rosters()
        return {
            "roster_version": rosters.version,
            "default": registry.default_platforms(),
            "platforms": [
                {
                    "id": pid,
                    "name": cls.name or pid,
                    "stub": bool(cls.stub),
                    "tenants": len(rosters.tenants(pid)),
                }
                for pid, cls in registry.all_platforms().items()
            ],
        }

    @app.post("/scrape-jobs")
    async def scrape_jobs(request: Request) -> JSONResponse:
        start = time.perf_counter()
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw.strip() else {}
        except ValueError:
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Request body is not valid JSON.",
                    "response_time_ms": int((time.perf_counter() - start) * 1000),
                },
            )
        try:
            svc = get_service()
        except Exception as e:
            if isinstance(e, ConfigError):
                LOG.error("Service configuration invalid: %s", e)
            else:
                LOG.exception("Service construction failed")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": f"Service misconfigured: {e}",
                    "response_time_ms": int((time.perf_counter() - start) * 1000),
                },
            )
        # Adapters block on network I/O; keep the event loop free.
        status, body = await run_in_threadpool(svc.handle, payload)
        return JSONResponse(status_code=status, content=body)

    return app


app = create_app()
