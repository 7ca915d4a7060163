"""
FastAPI application entry point for the site backend.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.gzip import GZipMiddleware

from linnsite.config import Settings, get_settings
from linnsite.dependencies import get_site_service
from linnsite.exceptions import StoreError
from linnsite.routes import health_router, router
from linnsite.static import mount_static_site

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("linnsite.access")

SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Serving without persistence is not an option: a store that cannot be
    # opened aborts startup.
    try:
        get_site_service()
    except StoreError:
        logger.critical("Failed to open database, refusing to start", exc_info=True)
        raise
    yield


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        if settings.is_production:
            access_logger.info(
                '%s "%s %s HTTP/%s" %s %s "%s" "%s"',
                request.client.host if request.client else "-",
                request.method,
                request.url.path,
                request.scope.get("http_version", "1.1"),
                response.status_code,
                response.headers.get("content-length", "-"),
                request.headers.get("referer", "-"),
                request.headers.get("user-agent", "-"),
            )
        else:
            access_logger.info(
                "%s %s %s %.3f ms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="linn.games site backend", version="0.1.0", lifespan=lifespan)
    _install_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(router, prefix=settings.api_prefix)
    # Mounted last: the public root catches every path the API did not claim.
    mount_static_site(app, settings.public_dir, settings.static_dir)
    return app


app = create_app()
