from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from scholarflow.services.domains.orcid.errors import OrcidApiError, OrcidClientError
from scholarflow.services.domains.orcid.oauth import OrcidOAuthClient

TOKEN_URL = "https://orcid.test/oauth/token"


def _oauth_client(status_code: int = 200, payload: object | None = None, calls: list | None = None):
    async def _request(*, url: str, data: dict[str, str], timeout_seconds: float) -> httpx.Response:
        if calls is not None:
            calls.append({"url": url, "data": data, "timeout_seconds": timeout_seconds})
        return httpx.Response(status_code, json=payload or {}, request=httpx.Request("POST", url))

    return OrcidOAuthClient(
        client_id="APP-123",
        client_secret="secret",
        redirect_uri="https://scholarflow.test/api/v1/auth/orcid/callback",
        oauth_base_url="https://orcid.test/",
        scope="/authenticate",
        timeout_seconds=2.0,
        request_fn=_request,
    )


def test_authorization_url_carries_client_scope_and_state() -> None:
    url = urlparse(_oauth_client().authorization_url(state="state-123"))

    assert (url.scheme, url.netloc, url.path) == ("https", "orcid.test", "/oauth/authorize")
    query = parse_qs(url.query)
    assert query["client_id"] == ["APP-123"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["/authenticate"]
    assert query["redirect_uri"] == ["https://scholarflow.test/api/v1/auth/orcid/callback"]
    assert query["state"] == ["state-123"]


def test_is_configured_requires_id_and_secret() -> None:
    assert _oauth_client().is_configured
    assert not OrcidOAuthClient(client_id="", client_secret="secret").is_configured
    assert not OrcidOAuthClient(client_id="APP-123", client_secret="").is_configured


@pytest.mark.asyncio
async def test_exchange_code_returns_grant() -> None:
    calls: list = []
    client = _oauth_client(
        payload={
            "orcid": "0000000218250097",
            "name": " Josiah Carberry ",
            "access_token": "member-token",
            "scope": "/authenticate",
        },
        calls=calls,
    )

    grant = await client.exchange_code("auth-code")

    assert grant.orcid_id == "0000-0002-1825-0097"
    assert grant.name == "Josiah Carberry"
    assert grant.access_token == "member-token"
    assert grant.scope == "/authenticate"
    assert calls[0]["url"] == TOKEN_URL
    assert calls[0]["data"]["grant_type"] == "authorization_code"
    assert calls[0]["data"]["code"] == "auth-code"
    assert calls[0]["timeout_seconds"] == 2.0


@pytest.mark.asyncio
async def test_exchange_code_raises_on_rejection() -> None:
    client = _oauth_client(status_code=400, payload={"error": "invalid_grant"})

    with pytest.raises(OrcidApiError) as exc_info:
        await client.exchange_code("stale-code")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"orcid": "not-an-id", "access_token": "member-token"},
        {"orcid": "0000-0002-1825-0097", "access_token": ""},
    ],
)
async def test_exchange_code_rejects_incomplete_grants(payload: dict) -> None:
    client = _oauth_client(payload=payload)

    with pytest.raises(OrcidClientError):
        await client.exchange_code("auth-code")
