from enum import IntEnum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from indexing_gateway.indexing.domain.results import StatusResult


class ErrorCodes(IntEnum):
    BAD_REQUEST = 9000
    INVALID_CREDENTIAL = 9001
    BATCH_TOO_LARGE = 9002
    UNAUTHORIZED = 9010
    CLIENT_CONSTRUCTION = 9020
    REMOTE_INDEXING = 9021
    STATUS_QUERY = 9022


class GatewayException(Exception):
    pass


class BadRequestException(GatewayException):
    pass


class UnauthorizedException(GatewayException):
    pass


class InvalidCredential(BadRequestException):
    """Structurally malformed service account. Never retried."""


class BatchTooLarge(BadRequestException):
    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"Batch size cannot exceed {max_size} URLs (got {size})")


class ClientConstructionError(GatewayException):
    """The Indexing API client could not be built from the credential material."""


class RemoteIndexingError(GatewayException):
    """A call against the Google Indexing API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class SubmissionCancelled(GatewayException):
    """The caller abandoned the request or its deadline passed."""


class StatusQueryError(GatewayException):
    """Status lookup failed. ``result`` holds the partial ``status="error"`` result."""

    def __init__(self, message: str, result: "StatusResult"):
        self.result = result
        super().__init__(message)


# Map exceptions to response codes and error messages.
# A message of None means the exception text is used.
EXCEPTION_MAP = {
    BatchTooLarge: (400, None, ErrorCodes.BATCH_TOO_LARGE),
    InvalidCredential: (400, None, ErrorCodes.INVALID_CREDENTIAL),
    BadRequestException: (400, None, ErrorCodes.BAD_REQUEST),
    UnauthorizedException: (401, None, ErrorCodes.UNAUTHORIZED),
    ClientConstructionError: (
        502,
        "Failed to authenticate against Google Indexing API",
        ErrorCodes.CLIENT_CONSTRUCTION,
    ),
    RemoteIndexingError: (
        502,
        "Failed to submit URL to Google Indexing API",
        ErrorCodes.REMOTE_INDEXING,
    ),
    StatusQueryError: (
        502,
        "Failed to get URL status from Google Indexing API",
        ErrorCodes.STATUS_QUERY,
    ),
}
