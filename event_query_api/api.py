"""
FastAPI application with REST endpoints.
Routes map onto query keys; the query gate does the rest.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from .event_bus import UpstreamError
from .gate import QueryGate, QueryValidationError
from .models import HealthResponse, StatsResponse

logger = logging.getLogger(__name__)

WHITELIST_DESCRIPTION = "Set to false to include sources that are not on the allowlist"
EXPERIMENTAL_DESCRIPTION = "Set to true to include experimental events"


def create_app(homepage_url: str, version: str = "0.1.0") -> FastAPI:
    """
    Create and configure FastAPI application.

    Components (gate, uploader, start_time) are read from app.state, which
    the lifespan handler or the caller populates.

    Args:
        homepage_url: Where GET / redirects
        version: Reported in the OpenAPI schema

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Event Data Query API",
        description="Cached, filtered views over daily Event Data archives",
        version=version
    )

    @app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.exception_handler(QueryValidationError)
    async def handle_validation_error(request: Request, exc: QueryValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        logger.error(f"Upstream failure for {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    async def run_query(
        request: Request,
        whitelist: Optional[str],
        experimental: Optional[str],
        **params
    ) -> JSONResponse:
        gate: Optional[QueryGate] = getattr(request.app.state, "gate", None)
        if gate is None:
            raise HTTPException(status_code=503, detail="Service not ready")

        outcome = await gate.handle(
            apply_allowlist=whitelist != "false",
            include_experimental=experimental == "true",
            **params
        )
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)

    @app.get("/", tags=["Root"], include_in_schema=False)
    async def root():
        """Redirect to the service homepage"""
        return RedirectResponse(url=homepage_url)

    @app.get("/health", response_model=HealthResponse, tags=["Monitoring"])
    async def health_check():
        """
        Health check endpoint.

        Returns:
            HealthResponse with status and current timestamp
        """
        return HealthResponse(
            status="healthy",
            timestamp=datetime.utcnow().isoformat() + 'Z'
        )

    @app.get("/stats", response_model=StatsResponse, tags=["Monitoring"])
    async def get_stats(request: Request):
        """
        Background upload statistics.

        Returns:
            Counters for enqueued, dropped, uploaded and failed uploads,
            the current queue size, and service uptime
        """
        uploader = getattr(request.app.state, "uploader", None)
        if uploader is None:
            raise HTTPException(status_code=503, detail="Service not ready: uploader not initialized")

        stats = uploader.get_stats()
        stats["uptime"] = str(datetime.utcnow() - request.app.state.start_time)
        return stats

    @app.get("/{view}/{date}/events.json", tags=["Events"])
    async def view_date(
        request: Request,
        view: str,
        date: str,
        whitelist: Optional[str] = Query(None, description=WHITELIST_DESCRIPTION),
        experimental: Optional[str] = Query(None, description=EXPERIMENTAL_DESCRIPTION)
    ):
        """All events for a view and day"""
        return await run_query(request, whitelist, experimental, view=view, date_str=date)

    @app.get("/{view}/{date}/sources/{source}/events.json", tags=["Events"])
    async def view_date_source(
        request: Request,
        view: str,
        date: str,
        source: str,
        whitelist: Optional[str] = Query(None, description=WHITELIST_DESCRIPTION),
        experimental: Optional[str] = Query(None, description=EXPERIMENTAL_DESCRIPTION)
    ):
        """Events for a view and day from one source"""
        return await run_query(
            request, whitelist, experimental, view=view, date_str=date, source=source
        )

    @app.get("/{view}/{date}/prefixes/{prefix}/events.json", tags=["Events"])
    async def view_date_prefix(
        request: Request,
        view: str,
        date: str,
        prefix: str,
        whitelist: Optional[str] = Query(None, description=WHITELIST_DESCRIPTION),
        experimental: Optional[str] = Query(None, description=EXPERIMENTAL_DESCRIPTION)
    ):
        """Events for a view and day mentioning a DOI prefix"""
        return await run_query(
            request, whitelist, experimental, view=view, date_str=date, prefix=prefix
        )

    @app.get("/{view}/{date}/sources/{source}/works/{work:path}/events.json", tags=["Events"])
    async def view_date_source_work(
        request: Request,
        view: str,
        date: str,
        source: str,
        work: str,
        whitelist: Optional[str] = Query(None, description=WHITELIST_DESCRIPTION),
        experimental: Optional[str] = Query(None, description=EXPERIMENTAL_DESCRIPTION)
    ):
        """Events for a view and day about one work from one source"""
        return await run_query(
            request, whitelist, experimental, view=view, date_str=date, source=source, work=work
        )

    @app.get("/{view}/{date}/works/{work:path}/events.json", tags=["Events"])
    async def view_date_work(
        request: Request,
        view: str,
        date: str,
        work: str,
        whitelist: Optional[str] = Query(None, description=WHITELIST_DESCRIPTION),
        experimental: Optional[str] = Query(None, description=EXPERIMENTAL_DESCRIPTION)
    ):
        """Events for a view and day about one work"""
        return await run_query(
            request, whitelist, experimental, view=view, date_str=date, work=work
        )

    return app
