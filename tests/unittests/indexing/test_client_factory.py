import httpx
import pytest

from indexing_gateway.indexing.infrastructure.client_factory import ClientFactory
from indexing_gateway.indexing.infrastructure.indexing_client import IndexingClient
from indexing_gateway.main.exceptions import ClientConstructionError


def token_endpoint(status_code=200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/token"
        return httpx.Response(
            status_code,
            json=body or {"access_token": "ya29.handshake", "expires_in": 3600, "token_type": "Bearer"},
        )

    return handler


def test_build_performs_token_handshake(signing_service_account):
    calls = []

    def handler(request):
        calls.append(request)
        return token_endpoint()(request)

    factory = ClientFactory(transport=httpx.MockTransport(handler))

    client = factory.build(signing_service_account)

    assert isinstance(client, IndexingClient)
    assert client.identity == signing_service_account.client_email
    assert len(calls) == 1
    assert b"grant_type" in calls[0].content
    client.close()


def test_rejected_credential_raises_construction_error(signing_service_account):
    factory = ClientFactory(
        transport=httpx.MockTransport(
            token_endpoint(
                401,
                {"error": "invalid_grant", "error_description": "Invalid JWT Signature."},
            )
        )
    )

    with pytest.raises(ClientConstructionError, match="Failed to obtain access token"):
        factory.build(signing_service_account)


def test_malformed_key_material_raises_construction_error(service_account):
    # The conftest key passes the structural check but is not a parseable RSA key
    factory = ClientFactory(transport=httpx.MockTransport(token_endpoint()))

    with pytest.raises(ClientConstructionError, match="Invalid service account key material"):
        factory.build(service_account)


def test_unreachable_token_endpoint_raises_construction_error(signing_service_account):
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    factory = ClientFactory(transport=httpx.MockTransport(handler))

    with pytest.raises(ClientConstructionError):
        factory.build(signing_service_account)


def test_factory_uses_configured_base_url(signing_service_account):
    seen = []

    def handler(request):
        if request.url.path == "/token":
            return token_endpoint()(request)
        seen.append(str(request.url))
        return httpx.Response(200, json={})

    factory = ClientFactory(
        api_base_url="https://indexing.internal.example/v3",
        transport=httpx.MockTransport(handler),
    )

    client = factory.build(signing_service_account)
    client.notify("https://example.com")

    assert seen == ["https://indexing.internal.example/v3/urlNotifications:publish"]
