"""
FastAPI + Uvicorn ASGI application.

Endpoints:
  - GET /         the current CRL (DER, application/pkix-crl)
  - GET /healthz  liveness/readiness probe, always "ok" once started

The CrlCache lives on `app.state.cache`. When the app is created without
one, the lifespan builds it from AppSettings; a credential failure there
aborts startup.

Entry point for production: uvicorn crl_server.asgi:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from crl_server import __version__
from crl_server.cache import CrlCache
from crl_server.config import AppSettings
from crl_server.domain.models import FRESHNESS_WINDOW
from crl_server.main import StartupError, build_cache, configure_structlog
from crl_server.railway import ErrorCode

CRL_MEDIA_TYPE = "application/pkix-crl"
CACHE_CONTROL = f"max-age={int(FRESHNESS_WINDOW.total_seconds())}"

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the cache on startup unless one was injected."""
    if app.state.cache is None:
        try:
            settings = AppSettings()
        except Exception as e:
            log.error(
                "asgi.startup_error",
                error_code=ErrorCode.CONFIGURATION_ERROR.value,
                error=f"Configuration error: {e}",
            )
            raise

        configure_structlog(settings.log_level)
        log.info("asgi.startup", version=__version__, log_level=settings.log_level)

        try:
            app.state.cache = await asyncio.to_thread(build_cache, settings)
        except StartupError as e:
            log.error("asgi.startup_error", error=str(e))
            raise

    log.info("asgi.startup_complete")

    yield

    log.info("asgi.shutdown_complete")


async def serve_crl(request: Request) -> Response:
    """
    Return the current CRL, regenerating it first when stale.

    The blocking cache call runs in a worker thread so concurrent requests
    contend on the cache lock, not on the event loop.
    """
    cache: CrlCache | None = request.app.state.cache
    if cache is None:
        return PlainTextResponse("Service Unavailable", status_code=503)

    result = await asyncio.to_thread(cache.get)
    if result.is_failure():
        failure = result.error()
        log.error("http.crl_failed", error_code=failure.code.value, error=failure.detail())
        return PlainTextResponse("Internal Server Error", status_code=500)

    artifact = result.value()
    return Response(
        content=artifact.payload,
        media_type=CRL_MEDIA_TYPE,
        headers={"Cache-Control": CACHE_CONTROL},
    )


async def healthz() -> PlainTextResponse:
    return PlainTextResponse("ok")


def create_app(cache: CrlCache | None = None) -> FastAPI:
    """Create the ASGI app, optionally around an already-built cache."""
    app = FastAPI(
        title="crl-server",
        description="Certificate Revocation List server with lazy hourly regeneration",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.cache = cache
    app.add_api_route("/", serve_crl, methods=["GET"])
    app.add_api_route("/healthz", healthz, methods=["GET"])
    return app


app = create_app()


if __name__ == "__main__":
    # For local testing: python -m crl_server.asgi
    import uvicorn

    settings = AppSettings()
    uvicorn.run(
        "crl_server.asgi:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
