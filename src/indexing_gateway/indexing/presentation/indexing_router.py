import asyncio
from typing import Callable, Optional, TypeVar

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import FailureKind
from indexing_gateway.indexing.domain.urls import all_valid_urls, is_valid_url
from indexing_gateway.indexing.presentation.indexing_models import (
    BatchIndexRequest,
    BatchIndexResponse,
    CacheClearResponse,
    CacheStatsResponse,
    IndexRequest,
    IndexResponse,
    StatusRequest,
    StatusResponse,
)
from indexing_gateway.main.container.container import Container
from indexing_gateway.main.exceptions import BadRequestException
from indexing_gateway.main.request_context import set_request_context
from indexing_gateway.server.dependencies.container import get_container
from indexing_gateway.server.protocol import responses

router = APIRouter()

T = TypeVar("T")


async def run_with_deadline(
    container: Container, func: Callable[..., T], *args
) -> T:
    """Run a blocking core call on a worker thread, bounded by the request timeout.

    ``func`` receives a ``CancellationToken`` as its last argument. If the
    awaiting task is cancelled (client gone, server shutting down) the token is
    cancelled too, so in-flight submissions stop instead of running on.
    """
    cancellation = CancellationToken.with_timeout(
        container.settings().request_timeout_seconds
    )
    try:
        return await asyncio.to_thread(func, *args, cancellation)
    except asyncio.CancelledError:
        cancellation.cancel()
        raise


def bind_tenant(service_account: Optional[ServiceAccountCredentials]) -> None:
    """Tag this request's log lines, worker threads included, with the tenant."""
    identity = service_account.identity if service_account is not None else ""
    set_request_context(service_account=identity or None)


@router.post(
    "/index",
    tags=["indexing"],
    response_model=IndexResponse,
    responses=responses.get_responses([400, 401, 502, 504]),
)
async def submit_url(
    index_request: IndexRequest,
    container: Container = Depends(get_container),
):
    """Notify Google that a single URL was updated."""
    if not is_valid_url(index_request.url):
        raise BadRequestException("Invalid URL format")

    bind_tenant(index_request.service_account)
    service = container.indexing_service()
    result = await run_with_deadline(
        container, service.submit, index_request.url, index_request.service_account
    )

    response = IndexResponse.from_domain(result)
    if result.succeeded:
        return response

    status_code = 504 if result.kind == FailureKind.CANCELLED else 502
    return JSONResponse(status_code=status_code, content=response.model_dump())


@router.post(
    "/index/batch",
    tags=["indexing"],
    response_model=BatchIndexResponse,
    responses=responses.get_responses([400, 401]),
)
async def submit_batch(
    batch_request: BatchIndexRequest,
    container: Container = Depends(get_container),
):
    """Submit many URLs concurrently. Per-URL failures are reported in ``results``."""
    if not all_valid_urls(batch_request.urls):
        raise BadRequestException("One or more URLs have invalid format")

    bind_tenant(batch_request.service_account)
    service = container.indexing_service()
    batch = await run_with_deadline(
        container, service.submit_batch, batch_request.urls, batch_request.service_account
    )

    return BatchIndexResponse.from_domain(batch)


@router.post(
    "/status",
    tags=["indexing"],
    response_model=StatusResponse,
    responses=responses.get_responses([400, 401, 502]),
)
async def get_url_status(
    status_request: StatusRequest,
    container: Container = Depends(get_container),
):
    if not is_valid_url(status_request.url):
        raise BadRequestException("Invalid URL format")

    bind_tenant(status_request.service_account)
    service = container.indexing_service()
    result = await run_with_deadline(
        container, service.status, status_request.url, status_request.service_account
    )

    return StatusResponse.from_domain(result)


@router.get(
    "/status/{url:path}",
    tags=["indexing"],
    response_model=StatusResponse,
    responses=responses.get_responses([400, 401]),
)
async def get_url_status_by_path(
    url: str,
    container: Container = Depends(get_container),
):
    """Path form of the status lookup.

    A status read needs the tenant's credential, which a GET carries no body
    for, so this always answers 400 once the URL is well formed. Use
    ``POST /status`` instead.
    """
    if not is_valid_url(url):
        raise BadRequestException("Invalid URL format")

    service = container.indexing_service()
    result = await run_with_deadline(container, service.status, url, None)

    return StatusResponse.from_domain(result)


@router.get("/cache/stats", response_model=CacheStatsResponse, tags=["cache"])
async def get_cache_stats(container: Container = Depends(get_container)):
    service = container.indexing_service()
    return CacheStatsResponse.from_domain(service.cache_stats())


@router.post("/cache/clear", response_model=CacheClearResponse, tags=["cache"])
async def clear_cache(container: Container = Depends(get_container)):
    service = container.indexing_service()
    await asyncio.to_thread(service.cache_clear)
    return CacheClearResponse()
