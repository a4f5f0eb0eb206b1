from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from indexing_gateway.indexing.presentation.indexing_models import HealthResponse
from indexing_gateway.main.config import get_settings
from indexing_gateway.main.container.container import Container
from indexing_gateway.main.logging import get_logger
from indexing_gateway.server import api_documentation
from indexing_gateway.server.dependencies.lifespan import lifespan
from indexing_gateway.server.exception_handlers import (
    add_exception_handlers,
    internal_error_response,
)
from indexing_gateway.server.middleware.request_context import RequestContextMiddleware
from indexing_gateway.server.routers import router as api_router

logger = get_logger(__name__)


def get_application(container: Container | None = None):
    settings = get_settings()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container or Container()

    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
        expose_headers=["X-Correlation-ID"],
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    # Add handlers of all errors except 500
    add_exception_handlers(app)

    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        app.openapi_schema = get_openapi(
            title=api_documentation.TITLE,
            version=settings.app_version,
            description=api_documentation.SUMMARY,
            tags=api_documentation.TAGS_METADATA,
            routes=app.routes,
        )
        return app.openapi_schema

    app.openapi = custom_openapi

    @app.exception_handler(500)
    async def custom_http_500_exception_handler(request, exc):
        return internal_error_response(exc)

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    async def get_health():
        return HealthResponse(
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            version=get_settings().app_version,
        )

    return app


app = get_application()


def start():
    settings = get_settings()
    uvicorn.run(
        "indexing_gateway.server.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.dev,
        reload_dirs=["./src/"] if settings.dev else None,
    )
