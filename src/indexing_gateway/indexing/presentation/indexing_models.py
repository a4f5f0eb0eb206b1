from typing import Optional

from pydantic import BaseModel, Field

from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.domain.results import (
    BatchResult,
    CacheStats,
    StatusResult,
    SubmissionResult,
)


# The credential is optional in every request body so that a missing one is
# reported as an invalid credential rather than a schema error
class IndexRequest(BaseModel):
    url: str
    service_account: Optional[ServiceAccountCredentials] = None


class BatchIndexRequest(BaseModel):
    urls: list[str] = Field(min_length=1)
    service_account: Optional[ServiceAccountCredentials] = None


class StatusRequest(BaseModel):
    url: str
    service_account: Optional[ServiceAccountCredentials] = None


class IndexResponse(BaseModel):
    success: bool
    message: str
    url: str

    @classmethod
    def from_domain(cls, result: SubmissionResult) -> "IndexResponse":
        return cls(success=result.succeeded, message=result.message, url=result.url)


class BatchStatisticsPublic(BaseModel):
    total: int
    successful: int
    failed: int


class BatchIndexResponse(BaseModel):
    success: bool
    message: str
    results: list[IndexResponse]
    statistics: BatchStatisticsPublic

    @classmethod
    def from_domain(cls, batch: BatchResult) -> "BatchIndexResponse":
        return cls(
            success=batch.succeeded,
            message=batch.message,
            results=[IndexResponse.from_domain(result) for result in batch.results],
            statistics=BatchStatisticsPublic(
                total=batch.total,
                successful=batch.successful,
                failed=batch.failed,
            ),
        )


class StatusResponse(BaseModel):
    url: str
    status: str
    last_updated: Optional[str] = None

    @classmethod
    def from_domain(cls, result: StatusResult) -> "StatusResponse":
        return cls(url=result.url, status=result.status, last_updated=result.last_updated)


class CacheStatsResponse(BaseModel):
    entry_count: int
    timestamp: str

    @classmethod
    def from_domain(cls, stats: CacheStats) -> "CacheStatsResponse":
        return cls(entry_count=stats.entry_count, timestamp=stats.timestamp)


class CacheClearResponse(BaseModel):
    success: bool = True
    message: str = "Cache cleared successfully"


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str
    version: str
