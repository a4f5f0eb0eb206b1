import pytest

from indexing_gateway.indexing.application.status_query import StatusQuery
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.main.exceptions import (
    InvalidCredential,
    RemoteIndexingError,
    StatusQueryError,
)


@pytest.fixture
def status_query(client_cache: ClientCache) -> StatusQuery:
    return StatusQuery(client_cache)


def test_latest_update_is_reported(status_query, shared_client, service_account):
    shared_client.metadata = {
        "url": "https://example.com/page",
        "latestUpdate": {
            "url": "https://example.com/page",
            "type": "URL_UPDATED",
            "notifyTime": "2024-05-01T10:00:00.123Z",
        },
    }

    result = status_query.status("https://example.com/page", service_account)

    assert result.url == "https://example.com/page"
    assert result.status == "URL_UPDATED"
    assert result.last_updated == "2024-05-01T10:00:00.123Z"


def test_no_latest_update_is_unknown(status_query, shared_client, service_account):
    shared_client.metadata = {"url": "https://example.com/page"}

    result = status_query.status("https://example.com/page", service_account)

    assert result.status == "unknown"
    assert result.last_updated is None


def test_not_found_is_unknown(status_query, shared_client, service_account):
    shared_client.metadata_error = RemoteIndexingError("Requested entity was not found.", 404)

    result = status_query.status("https://example.com/page", service_account)

    assert result.status == "unknown"


def test_remote_failure_carries_error_result(status_query, shared_client, service_account):
    shared_client.metadata_error = RemoteIndexingError("Quota exceeded", 429)

    with pytest.raises(StatusQueryError, match="Quota exceeded") as exc_info:
        status_query.status("https://example.com/page", service_account)

    assert exc_info.value.result.status == "error"
    assert exc_info.value.result.url == "https://example.com/page"


def test_construction_failure_becomes_status_error(failing_factory, service_account):
    status_query = StatusQuery(ClientCache(failing_factory))

    with pytest.raises(StatusQueryError) as exc_info:
        status_query.status("https://example.com/page", service_account)

    assert exc_info.value.result.status == "error"


def test_missing_credential_fails_fast(status_query, fake_factory):
    with pytest.raises(InvalidCredential, match="Service account is required"):
        status_query.status("https://example.com/page", None)

    assert fake_factory.build_count == 0


def test_invalid_credential_fails_fast(status_query, fake_factory, make_account):
    with pytest.raises(InvalidCredential):
        status_query.status("https://example.com/page", make_account(token_uri=""))

    assert fake_factory.build_count == 0


def test_cancelled_query_is_a_status_error(status_query, fake_factory, service_account):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(StatusQueryError, match="cancelled"):
        status_query.status("https://example.com/page", service_account, token)

    assert fake_factory.build_count == 0
