from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
import structlog

from storefront.version import VERSION
from storefront.api import routes
from storefront.api.deps import Services, build_sql_services
from storefront.core.config import Settings
from storefront.core.errors import StorageError, StorefrontError
from storefront.core.logging import configure_logging
from storefront.db.session import make_engine, make_session_factory

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Build the order service.

    Run with ``uvicorn storefront.main:create_app --factory``. Tests pass their
    own ``settings`` and, for the in-memory stores, prebuilt ``services``.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)
    if services is None:
        services = build_sql_services(settings, make_session_factory(make_engine(settings)))

    app = FastAPI(title="Order Service", version=VERSION)
    app.state.settings = settings
    app.state.services = services

    if settings.METRICS_ENABLED:
        # Instrument the app BEFORE adding routes or middleware
        Instrumentator().instrument(app).expose(
            app,
            include_in_schema=False,
            endpoint="/orders/metrics",
            should_gzip=True,
        )

    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        detail = "Internal storage error" if isinstance(exc, StorageError) else exc.message
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": detail})

    # Health endpoints
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/orders/health")
    def orders_health():
        return {"status": "ok"}

    @app.get("/v1/_info")
    def info():
        return {"service": "orders", "version": VERSION}

    @app.on_event("startup")
    async def startup_event():
        for route in app.routes:
            if hasattr(route, "methods") and hasattr(route, "path"):
                logger.debug("route", methods=sorted(route.methods), path=route.path)

    @app.on_event("shutdown")
    async def shutdown_event():
        services.events.close()

    app.include_router(routes.orders_router, prefix="/orders", tags=["orders"])
    app.include_router(routes.seller_router, prefix="/seller", tags=["seller"])
    return app
