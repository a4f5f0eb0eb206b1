"""Concurrent fan-out of a URL batch over the submission engine.

One worker thread per URL, all started at once and joined before the result
is built. Each result lands in the slot of its URL, so the output order
matches the input order regardless of completion order. Workers run in a copy
of the caller's context and keep the request's log fields.
"""

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Sequence

from indexing_gateway.credentials.credential_validator import validate_service_account
from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.application.submission_engine import SubmissionEngine
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import (
    BatchResult,
    FailureKind,
    SubmissionFailure,
    SubmissionResult,
)
from indexing_gateway.main.exceptions import BatchTooLarge
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_BATCH_SIZE = 100


class BatchDispatcher:
    def __init__(
        self,
        submission_engine: SubmissionEngine,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ):
        self.submission_engine = submission_engine
        self.max_batch_size = max_batch_size

    def submit_batch(
        self,
        urls: Sequence[str],
        service_account: Optional[ServiceAccountCredentials],
        cancellation: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """Submit every URL concurrently and aggregate the outcomes.

        Raises:
            BatchTooLarge: More than ``max_batch_size`` URLs; nothing is submitted.
            InvalidCredential: The credential is malformed; nothing is submitted.
        """
        urls = list(urls)
        if len(urls) > self.max_batch_size:
            raise BatchTooLarge(len(urls), self.max_batch_size)

        validate_service_account(service_account)

        if not urls:
            return BatchResult.from_results([])

        cancellation = cancellation or CancellationToken()

        with ThreadPoolExecutor(
            max_workers=len(urls), thread_name_prefix="index-batch"
        ) as executor:
            futures = [
                executor.submit(
                    contextvars.copy_context().run,
                    self.submission_engine.submit,
                    url,
                    service_account,
                    cancellation,
                )
                for url in urls
            ]
            wait(futures)

        result = BatchResult.from_results(
            self._collect(url, future) for url, future in zip(urls, futures)
        )

        logger.info(
            result.message,
            extra={
                "service_account": service_account.identity,
                "total": result.total,
                "successful": result.successful,
                "failed": result.failed,
            },
        )
        return result

    @staticmethod
    def _collect(url: str, future: Future) -> SubmissionResult:
        error = future.exception()
        if error is None:
            return future.result()

        logger.error(
            f"Submission worker raised {type(error).__name__}: {error}",
            extra={"url": url},
        )
        return SubmissionFailure(
            url=url, message=f"Unexpected error: {error}", kind=FailureKind.UNEXPECTED
        )
