"""Per-URL and per-batch outcomes of an indexing request.

A submission either succeeds or fails; failures are values, not exceptions,
so that the batch dispatcher treats every URL the same way and one bad URL
never aborts its siblings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Literal, Optional, Union

URL_UPDATED = "URL_UPDATED"

STATUS_UNKNOWN = "unknown"
STATUS_ERROR = "error"


class FailureKind(str, Enum):
    INVALID_URL = "invalid_url"
    INVALID_CREDENTIAL = "invalid_credential"
    CLIENT_CONSTRUCTION = "client_construction"
    REMOTE_CALL = "remote_call"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, slots=True)
class SubmissionSuccess:
    url: str
    message: str = "URL submitted successfully"
    succeeded: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True, slots=True)
class SubmissionFailure:
    url: str
    message: str
    kind: FailureKind
    succeeded: Literal[False] = field(default=False, init=False)


SubmissionResult = Union[SubmissionSuccess, SubmissionFailure]


@dataclass(frozen=True, slots=True)
class BatchStatistics:
    total: int
    successful: int
    failed: int

    @classmethod
    def from_results(cls, results: Iterable[SubmissionResult]) -> "BatchStatistics":
        total = successful = failed = 0
        for result in results:
            total += 1
            if result.succeeded:
                successful += 1
            else:
                failed += 1
        return cls(total=total, successful=successful, failed=failed)


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Results in the same order as the submitted URLs, plus their statistics."""

    results: tuple[SubmissionResult, ...]
    statistics: BatchStatistics

    @classmethod
    def from_results(cls, results: Iterable[SubmissionResult]) -> "BatchResult":
        ordered = tuple(results)
        return cls(results=ordered, statistics=BatchStatistics.from_results(ordered))

    @property
    def total(self) -> int:
        return self.statistics.total

    @property
    def successful(self) -> int:
        return self.statistics.successful

    @property
    def failed(self) -> int:
        return self.statistics.failed

    @property
    def succeeded(self) -> bool:
        return self.statistics.failed == 0

    @property
    def message(self) -> str:
        return (
            f"Processed {self.total} URLs: "
            f"{self.successful} successful, {self.failed} failed"
        )


@dataclass(frozen=True, slots=True)
class StatusResult:
    url: str
    status: str
    last_updated: Optional[str] = None

    @classmethod
    def unknown(cls, url: str) -> "StatusResult":
        return cls(url=url, status=STATUS_UNKNOWN)

    @classmethod
    def error(cls, url: str) -> "StatusResult":
        return cls(url=url, status=STATUS_ERROR)


@dataclass(frozen=True, slots=True)
class CacheStats:
    entry_count: int
    timestamp: str
