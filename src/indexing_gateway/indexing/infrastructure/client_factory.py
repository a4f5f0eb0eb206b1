from typing import Optional, Sequence

import httpx
from cryptography.exceptions import UnsupportedAlgorithm
from google.auth import exceptions as google_auth_exceptions
from google.oauth2 import service_account as google_service_account

from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.infrastructure.indexing_client import (
    DEFAULT_API_BASE_URL,
    INDEXING_SCOPE,
    IndexingClient,
)
from indexing_gateway.main.exceptions import ClientConstructionError
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)


class ClientFactory:
    """Builds an authenticated ``IndexingClient`` from a validated credential.

    Building performs the authentication handshake (an access token fetch), so
    a returned client is known to work against the token endpoint. The factory
    holds no per-tenant state; caching is the ``ClientCache``'s job.

    Args:
        api_base_url: Indexing API root, e.g. ``https://indexing.googleapis.com/v3``.
        scopes: OAuth scopes requested for every client.
        transport: Optional httpx transport shared by built clients (tests use
            ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_base_url: str = DEFAULT_API_BASE_URL,
        scopes: Sequence[str] = (INDEXING_SCOPE,),
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_base_url = api_base_url
        self.scopes = list(scopes)
        self.transport = transport

    def _load_credentials(
        self, service_account: ServiceAccountCredentials
    ) -> google_service_account.Credentials:
        try:
            return google_service_account.Credentials.from_service_account_info(
                service_account.to_service_account_info(),
                scopes=self.scopes,
            )
        except (
            ValueError,
            TypeError,
            UnsupportedAlgorithm,
            google_auth_exceptions.GoogleAuthError,
        ) as e:
            raise ClientConstructionError(
                f"Invalid service account key material: {e}"
            ) from e

    def build(
        self,
        service_account: ServiceAccountCredentials,
        timeout: Optional[float] = None,
    ) -> IndexingClient:
        """
        Raises:
            ClientConstructionError: Key material is unusable or the token
                endpoint rejected the credential.
        """
        credentials = self._load_credentials(service_account)

        client = IndexingClient(
            credentials=credentials,
            http_client=httpx.Client(timeout=None, transport=self.transport),
            api_base_url=self.api_base_url,
        )

        try:
            client.ensure_token(timeout=timeout)
        except (
            google_auth_exceptions.RefreshError,
            google_auth_exceptions.TransportError,
        ) as e:
            client.close()
            logger.warning(
                f"Authentication handshake failed: {e}",
                extra={"service_account": service_account.identity},
            )
            raise ClientConstructionError(f"Failed to obtain access token: {e}") from e

        logger.info(
            "Created Indexing API client",
            extra={"service_account": service_account.identity},
        )
        return client
