from unittest.mock import MagicMock

import pytest

from indexing_gateway.indexing.application.submission_engine import SubmissionEngine
from indexing_gateway.indexing.domain.cancellation import CancellationToken
from indexing_gateway.indexing.domain.results import (
    FailureKind,
    SubmissionFailure,
    SubmissionSuccess,
)
from indexing_gateway.indexing.infrastructure.client_cache import ClientCache
from indexing_gateway.main.exceptions import RemoteIndexingError


@pytest.fixture
def engine(client_cache: ClientCache) -> SubmissionEngine:
    return SubmissionEngine(client_cache)


def test_successful_submission(engine, fake_factory, service_account):
    result = engine.submit("https://example.com/page", service_account)

    assert isinstance(result, SubmissionSuccess)
    assert result.succeeded
    assert result.url == "https://example.com/page"
    assert fake_factory.built[0].notified == [("https://example.com/page", "URL_UPDATED")]


@pytest.mark.parametrize(
    "url", ["", "not a url", "ftp://example.com/file", "https://", "/relative/path"]
)
def test_invalid_url_fails_without_building_a_client(engine, fake_factory, service_account, url):
    result = engine.submit(url, service_account)

    assert not result.succeeded
    assert result.kind == FailureKind.INVALID_URL
    assert result.message == "Invalid URL format"
    assert fake_factory.build_count == 0


def test_invalid_credential_becomes_failure(engine, fake_factory, make_account):
    result = engine.submit("https://example.com", make_account(type="user"))

    assert result.kind == FailureKind.INVALID_CREDENTIAL
    assert "type must be 'service_account'" in result.message
    assert fake_factory.build_count == 0


def test_missing_credential_becomes_failure(engine):
    result = engine.submit("https://example.com", None)

    assert result.kind == FailureKind.INVALID_CREDENTIAL


def test_client_construction_error_becomes_failure(failing_factory, service_account):
    engine = SubmissionEngine(ClientCache(failing_factory))

    result = engine.submit("https://example.com", service_account)

    assert result.kind == FailureKind.CLIENT_CONSTRUCTION
    assert "invalid_grant" in result.message


def test_remote_error_becomes_failure(engine, fake_factory, service_account):
    fake_factory.failing_urls.add("https://example.com/forbidden")

    result = engine.submit("https://example.com/forbidden", service_account)

    assert isinstance(result, SubmissionFailure)
    assert result.kind == FailureKind.REMOTE_CALL
    assert result.message.startswith("Failed to submit URL: ")
    assert "ownership" in result.message


def test_unexpected_error_becomes_failure(service_account):
    cache = MagicMock()
    cache.get_or_create.side_effect = RuntimeError("boom")
    engine = SubmissionEngine(cache)

    result = engine.submit("https://example.com", service_account)

    assert result.kind == FailureKind.UNEXPECTED
    assert "boom" in result.message


def test_cancelled_before_start_makes_no_call(engine, fake_factory, service_account):
    token = CancellationToken()
    token.cancel()

    result = engine.submit("https://example.com", service_account, token)

    assert result.kind == FailureKind.CANCELLED
    assert fake_factory.build_count == 0


def test_remote_failure_after_cancellation_reports_cancelled(service_account):
    token = CancellationToken()
    client = MagicMock()

    def notify(url, change_type, timeout=None):
        token.cancel()
        raise RemoteIndexingError("Request to Google Indexing API timed out")

    client.notify.side_effect = notify
    cache = MagicMock()
    cache.get_or_create.return_value = client

    result = SubmissionEngine(cache).submit("https://example.com", service_account, token)

    assert result.kind == FailureKind.CANCELLED


def test_notify_timeout_follows_deadline(service_account):
    client = MagicMock()
    cache = MagicMock()
    cache.get_or_create.return_value = client

    SubmissionEngine(cache).submit(
        "https://example.com", service_account, CancellationToken.with_timeout(20)
    )

    timeout = client.notify.call_args.kwargs["timeout"]
    assert 0 < timeout <= 20


def test_client_is_looked_up_by_identity(service_account):
    cache = MagicMock()
    token = CancellationToken()

    SubmissionEngine(cache).submit("https://example.com", service_account, token)

    cache.get_or_create.assert_called_once_with(
        service_account.identity, service_account, token
    )
