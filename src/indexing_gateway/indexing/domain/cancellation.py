from __future__ import annotations

import threading
import time
from typing import Optional

from indexing_gateway.main.exceptions import SubmissionCancelled


class CancellationToken:
    """Caller-owned cancellation signal shared by every submission of a request.

    Cancelled either explicitly (the HTTP request was abandoned) or implicitly
    once ``deadline`` (a ``time.monotonic()`` value) has passed. Workers check
    the token before doing network work and bound each remote call's timeout
    with ``remaining()``; nothing else imposes a timeout.

    Example:
        token = CancellationToken.with_timeout(30)
        result = dispatcher.submit_batch(urls, credentials, token)
    """

    def __init__(self, deadline: Optional[float] = None):
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise SubmissionCancelled("Request was cancelled")
        if self.cancelled:
            raise SubmissionCancelled("Request deadline exceeded")
