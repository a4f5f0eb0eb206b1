from contextlib import asynccontextmanager

from fastapi import FastAPI

from indexing_gateway.main.config import get_settings
from indexing_gateway.main.container.container import Container
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    yield
    await shutdown(app)


async def startup():
    settings = get_settings()

    logger.info(
        f"Starting indexing gateway {settings.app_version} ({settings.app_env})",
        extra={
            "api_prefix": settings.api_prefix,
            "max_batch_size": settings.max_batch_size,
            "request_timeout_seconds": settings.request_timeout_seconds,
            "api_key_enabled": bool(settings.api_key),
        },
    )


async def shutdown(app: FastAPI):
    container: Container = app.state.container
    container.client_cache().close()
    logger.info("Indexing gateway stopped")
