"""Process-wide cache of authenticated Indexing API clients.

Keyed by the credential identity (the service account email). Lookups share a
read lock; a miss builds the client with no lock held and then inserts under
the write lock, so a slow handshake for one tenant never blocks hits for
another. Two concurrent misses for the same identity may both build. The first
insert is kept; the later caller returns the stored client and closes its own
duplicate, which no one else has seen.

Entries live until ``clear()``; there is no expiry and no size bound.
"""

from datetime import datetime, timezone
from typing import Optional

from indexing_gateway.credentials.service_account import ServiceAccountCredentials
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import CacheStats
from indexing_gateway.indexing.infrastructure.client_factory import ClientFactory
from indexing_gateway.indexing.infrastructure.indexing_client import IndexingClient
from indexing_gateway.indexing.infrastructure.read_write_lock import ReadWriteLock
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)


class ClientCache:
    def __init__(self, factory: ClientFactory):
        self.factory = factory
        self._clients: dict[str, IndexingClient] = {}
        self._lock = ReadWriteLock()

    def get_or_create(
        self,
        identity: str,
        service_account: ServiceAccountCredentials,
        cancellation: Optional[CancellationToken] = None,
    ) -> IndexingClient:
        """Return the cached client for ``identity``, building it on a miss.

        A failed build is not cached; the next call for the same identity
        tries again.

        Raises:
            ClientConstructionError: The factory could not build a client.
        """
        with self._lock.read_locked():
            client = self._clients.get(identity)

        if client is not None:
            logger.debug("Client cache hit", extra={"service_account": identity})
            return client

        logger.debug("Client cache miss", extra={"service_account": identity})
        timeout = cancellation.remaining() if cancellation is not None else None
        client = self.factory.build(service_account, timeout=timeout)

        with self._lock.write_locked():
            stored = self._clients.setdefault(identity, client)

        if stored is not client:
            logger.debug(
                "Concurrent build lost the race, closing duplicate client",
                extra={"service_account": identity},
            )
            client.close()

        return stored

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed.

        Dropped clients are not closed: in-flight submissions may still hold
        them. Their connection pools are released once the last borrower lets
        go of them. Only ``close()`` closes clients.
        """
        with self._lock.write_locked():
            evicted = len(self._clients)
            self._clients = {}

        logger.info(f"Cleared client cache ({evicted} entries)")
        return evicted

    def stats(self) -> CacheStats:
        with self._lock.read_locked():
            entry_count = len(self._clients)

        return CacheStats(
            entry_count=entry_count,
            timestamp=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        )

    def close(self) -> None:
        """Empty the cache and close every client's connection pool. Used at shutdown."""
        with self._lock.write_locked():
            clients = list(self._clients.values())
            self._clients = {}

        for client in clients:
            client.close()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._clients)

    def __contains__(self, identity: object) -> bool:
        with self._lock.read_locked():
            return identity in self._clients
