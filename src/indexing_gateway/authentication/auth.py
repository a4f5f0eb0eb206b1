import secrets

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from indexing_gateway.main.config import get_settings
from indexing_gateway.main.exceptions import UnauthorizedException
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "

AUTHORIZATION_SCHEME = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer token holding the gateway API key",
)


def authenticate_api_key(
    request: Request,
    authorization: str | None = Security(AUTHORIZATION_SCHEME),
):
    """
    Require ``Authorization: Bearer <API_KEY>`` when an API key is configured.

    The key is read from settings at request time, not at import time, so
    tests can switch authentication on and off with ``set_settings``.
    """
    api_key = get_settings().api_key
    if not api_key:
        return None

    if not authorization:
        raise UnauthorizedException("Missing Authorization header")

    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedException("Invalid Authorization header format")

    provided = authorization[len(BEARER_PREFIX) :]
    if not secrets.compare_digest(provided.encode(), api_key.encode()):
        logger.warning(
            "Rejected request with invalid API key",
            extra={"path": request.url.path},
        )
        raise UnauthorizedException("Invalid API key")

    return provided
