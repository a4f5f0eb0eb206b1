from typing import Any, Optional

from indexing_gateway.credentials.credential_validator import validate_service_account
from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import STATUS_UNKNOWN, StatusResult
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.main.exceptions import (
    ClientConstructionError,
    RemoteIndexingError,
    StatusQueryError,
    SubmissionCancelled,
)
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)


def status_from_metadata(url: str, metadata: dict[str, Any]) -> StatusResult:
    latest_update = metadata.get("latestUpdate")
    if not latest_update:
        return StatusResult.unknown(url)

    return StatusResult(
        url=url,
        status=latest_update.get("type") or STATUS_UNKNOWN,
        last_updated=latest_update.get("notifyTime"),
    )


class StatusQuery:
    """Single best-effort read of the Indexing API's notification metadata."""

    def __init__(self, client_cache: ClientCache):
        self.client_cache = client_cache

    def status(
        self,
        url: str,
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> StatusResult:
        """
        Raises:
            InvalidCredential: No credential, or a malformed one.
            StatusQueryError: The lookup failed; ``.result`` holds a
                ``status="error"`` result for the URL.
        """
        validate_service_account(service_account)
        cancellation = cancellation or CancellationToken()

        try:
            cancellation.raise_if_cancelled()
            client = self.client_cache.get_or_create(
                service_account.identity, service_account, cancellation
            )
            metadata = client.read_metadata(url, timeout=cancellation.remaining())

        except RemoteIndexingError as e:
            # The API answers 404 for URLs it has never been notified about
            if e.is_not_found:
                return StatusResult.unknown(url)
            raise self._query_error(url, service_account, e) from e

        except (ClientConstructionError, SubmissionCancelled) as e:
            raise self._query_error(url, service_account, e) from e

        return status_from_metadata(url, metadata)

    @staticmethod
    def _query_error(
        url: str, service_account: ServiceAccountCredentials, error: Exception
    ) -> StatusQueryError:
        logger.warning(
            f"Status query failed: {error}",
            extra={"url": url, "service_account": service_account.identity},
        )
        return StatusQueryError(
            f"Failed to get URL status: {error}", result=StatusResult.error(url)
        )
