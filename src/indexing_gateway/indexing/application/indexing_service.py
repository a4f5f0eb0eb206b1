from typing import Optional, Sequence

from indexing_gateway.credentials.credential_validator import validate_service_account
from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.application.batch_dispatcher import BatchDispatcher
from indexing_gateway.indexing.application.status_query import StatusQuery
from indexing_gateway.indexing.application.submission_engine import SubmissionEngine
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import (
    BatchResult,
    CacheStats,
    StatusResult,
    SubmissionResult,
)
from indexing_gateway.indexing.domain.urls import is_valid_url
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.main.exceptions import ClientConstructionError


def _is_cancelled(cancellation: Optional[CancellationToken]) -> bool:
    return cancellation is not None and cancellation.cancelled


class IndexingService:
    def __init__(
        self,
        client_cache: ClientCache,
        submission_engine: SubmissionEngine,
        batch_dispatcher: BatchDispatcher,
        status_query: StatusQuery,
    ):
        self.client_cache = client_cache
        self.submission_engine = submission_engine
        self.batch_dispatcher = batch_dispatcher
        self.status_query = status_query

    def submit(
        self,
        url: str,
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> SubmissionResult:
        """Submit a single URL.

        Unlike a batch, a credential that cannot authenticate fails the whole
        call instead of coming back as a per-URL failure.

        Raises:
            InvalidCredential
            ClientConstructionError: Not raised once the request is cancelled;
                the result is then a cancelled ``SubmissionFailure``.
        """
        validate_service_account(service_account)

        if is_valid_url(url) and not _is_cancelled(cancellation):
            try:
                self.client_cache.get_or_create(
                    service_account.identity, service_account, cancellation
                )
            except ClientConstructionError:
                # A handshake cut off by the deadline is reported by the engine as cancelled
                if not _is_cancelled(cancellation):
                    raise

        return self.submission_engine.submit(url, service_account, cancellation)

    def submit_batch(
        self,
        urls: Sequence[str],
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> BatchResult:
        return self.batch_dispatcher.submit_batch(urls, service_account, cancellation)

    def status(
        self,
        url: str,
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> StatusResult:
        return self.status_query.status(url, service_account, cancellation)

    def cache_stats(self) -> CacheStats:
        return self.client_cache.stats()

    def cache_clear(self) -> None:
        self.client_cache.clear()
