"""FastAPI query interface over the retained-log store."""

import logging
import time as _time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from .metrics import HTTP_REQUEST_DURATION, VERSION
from .presentation import render_logs_page
from .query import QueryService
from .store import RetainedLogStore
from .workers import BaseWorker

logger = logging.getLogger(__name__)

# Unknown paths share one label to keep Prometheus cardinality bounded
_KNOWN_PATHS = {'/logs', '/api/logs', '/api/health'}


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record request duration for query endpoints."""

    async def dispatch(self, request: Request, call_next):
        # Skip the /metrics endpoint itself to avoid recursion
        if request.url.path == '/metrics':
            return await call_next(request)

        start = _time.monotonic()
        response = await call_next(request)
        duration = _time.monotonic() - start

        path = request.url.path
        endpoint = path if path in _KNOWN_PATHS else 'other'

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=str(response.status_code),
        ).observe(duration)

        return response


def create_app(
    store: RetainedLogStore,
    ingestion: Optional[BaseWorker] = None,
) -> FastAPI:
    """Build the HTTP app bound to an explicitly constructed store.

    Args:
        store: The shared retained-log store (read-only from here).
        ingestion: The ingestion worker, reported by /api/health when given.
    """
    app = FastAPI(
        title="UDP Logger",
        description="Recent log records received over UDP",
        version=VERSION,
    )
    app.state.store = store
    app.state.query_service = QueryService(store)
    app.state.ingestion = ingestion

    # Allow all origins for LAN access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)

    # Endpoints touching the store are sync so FastAPI runs them in its
    # threadpool; the store lock is a blocking threading.Lock.

    @app.get("/logs", response_class=HTMLResponse)
    def logs_page(request: Request, search: str = Query("", description="Case-insensitive filter")):
        """Serve retained records as an HTML page with a search form."""
        records = request.app.state.query_service.run(search)
        return HTMLResponse(content=render_logs_page(search, records))

    @app.get("/api/logs")
    def logs_json(request: Request, search: str = Query("", description="Case-insensitive filter")):
        """Get retained records as JSON."""
        records = request.app.state.query_service.run(search)
        return {
            "lines": records,
            "count": len(records),
            "search": search,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/health")
    def health(request: Request):
        """Get daemon health status."""
        worker = request.app.state.ingestion
        if worker is None:
            ingestion_status = "unknown"
        elif worker.is_running:
            ingestion_status = "running"
        else:
            ingestion_status = "stopped"

        return {
            "status": "degraded" if ingestion_status == "stopped" else "healthy",
            "retained": len(request.app.state.store),
            "capacity": request.app.state.store.capacity,
            "ingestion": ingestion_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/metrics")
    async def prometheus_metrics():
        """Expose Prometheus metrics."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
