from typing import Optional

from indexing_gateway.credentials.credential_validator import validate_service_account
from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import (
    URL_UPDATED,
    FailureKind,
    SubmissionFailure,
    SubmissionResult,
    SubmissionSuccess,
)
from indexing_gateway.indexing.domain.urls import is_valid_url
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.main.exceptions import (
    ClientConstructionError,
    InvalidCredential,
    RemoteIndexingError,
    SubmissionCancelled,
)
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)


class SubmissionEngine:
    """Submits one URL with one attempt and reports the outcome as a value.

    ``submit`` never raises: invalid input, authentication failures, remote
    errors and cancellation all come back as a ``SubmissionFailure`` so the
    batch dispatcher can run many submissions side by side.
    """

    def __init__(self, client_cache: ClientCache):
        self.client_cache = client_cache

    def submit(
        self,
        url: str,
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> SubmissionResult:
        if not is_valid_url(url):
            return SubmissionFailure(
                url=url, message="Invalid URL format", kind=FailureKind.INVALID_URL
            )

        try:
            validate_service_account(service_account)
        except InvalidCredential as e:
            return SubmissionFailure(
                url=url, message=str(e), kind=FailureKind.INVALID_CREDENTIAL
            )

        cancellation = cancellation or CancellationToken()
        identity = service_account.identity

        try:
            cancellation.raise_if_cancelled()
            client = self.client_cache.get_or_create(
                identity, service_account, cancellation
            )

            cancellation.raise_if_cancelled()
            client.notify(url, URL_UPDATED, timeout=cancellation.remaining())

        except SubmissionCancelled as e:
            return SubmissionFailure(url=url, message=str(e), kind=FailureKind.CANCELLED)

        except ClientConstructionError as e:
            return self._failure(
                url, f"Failed to authenticate: {e}", FailureKind.CLIENT_CONSTRUCTION, cancellation
            )

        except RemoteIndexingError as e:
            logger.warning(
                f"URL submission failed: {e}",
                extra={"url": url, "service_account": identity, "status_code": e.status_code},
            )
            return self._failure(
                url, f"Failed to submit URL: {e}", FailureKind.REMOTE_CALL, cancellation
            )

        except Exception as e:
            logger.exception(
                "Unexpected error while submitting URL",
                extra={"url": url, "service_account": identity},
            )
            return SubmissionFailure(
                url=url, message=f"Unexpected error: {e}", kind=FailureKind.UNEXPECTED
            )

        logger.debug("URL submitted", extra={"url": url, "service_account": identity})
        return SubmissionSuccess(url=url)

    @staticmethod
    def _failure(
        url: str, message: str, kind: FailureKind, cancellation: CancellationToken
    ) -> SubmissionFailure:
        # A call cut short by the deadline reports as cancelled, not as a remote fault
        if cancellation.cancelled:
            return SubmissionFailure(url=url, message=message, kind=FailureKind.CANCELLED)
        return SubmissionFailure(url=url, message=message, kind=kind)
