from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.runtime_deps import get_orcid_client_factory
from scholarflow.auth.deps import get_orcid_oauth_client
from scholarflow.main import app
from scholarflow.services.domains.orcid.client import OrcidApiClient
from scholarflow.services.domains.orcid.oauth import OrcidTokenGrant

ORCID_API_BASE_URL = "https://pub.orcid.test/v3.0"


class FakeOrcidOAuthClient:
    is_configured = True

    def __init__(self, *, orcid_id: str, name: str, access_token: str) -> None:
        self._grant = OrcidTokenGrant(orcid_id=orcid_id, name=name, access_token=access_token)
        self.exchanged_codes: list[str] = []

    def authorization_url(self, *, state: str) -> str:
        return f"https://orcid.test/oauth/authorize?client_id=test&state={state}"

    async def exchange_code(self, code: str) -> OrcidTokenGrant:
        self.exchanged_codes.append(code)
        return self._grant


def sign_in_with_orcid(
    client: TestClient,
    *,
    orcid_id: str,
    name: str = "Ada Lovelace",
    access_token: str = "orcid-access-token",
) -> str:
    """Walk the ORCID redirect flow against a fake token endpoint; returns the redirect target."""
    oauth_client = FakeOrcidOAuthClient(orcid_id=orcid_id, name=name, access_token=access_token)
    app.dependency_overrides[get_orcid_oauth_client] = lambda: oauth_client

    login_response = client.get("/api/v1/auth/orcid/login", follow_redirects=False)
    assert login_response.status_code == 307
    state = parse_qs(urlparse(login_response.headers["location"]).query)["state"][0]

    callback_response = client.get(
        "/api/v1/auth/orcid/callback",
        params={"code": "authorization-code", "state": state},
        follow_redirects=False,
    )
    assert callback_response.status_code == 307
    return callback_response.headers["location"]


def csrf_headers(client: TestClient) -> dict[str, str]:
    bootstrap_response = client.get("/api/v1/auth/csrf")
    assert bootstrap_response.status_code == 200
    token = bootstrap_response.json()["data"]["csrf_token"]
    assert isinstance(token, str) and token
    return {"X-CSRF-Token": token}


def orcid_work(
    put_code: int,
    *,
    title: str,
    year: int | None = None,
    doi: str | None = None,
    work_type: str = "journal-article",
    authors: list[str] | None = None,
) -> dict[str, Any]:
    work: dict[str, Any] = {
        "put-code": put_code,
        "title": {"title": {"value": title}},
        "type": work_type,
        "journal-title": {"value": "Journal of Tests"},
        "contributors": {
            "contributor": [{"credit-name": {"value": author}} for author in authors or []]
        },
    }
    if year is not None:
        work["publication-date"] = {"year": {"value": str(year)}}
    if doi is not None:
        work["external-ids"] = {
            "external-id": [{"external-id-type": "doi", "external-id-value": doi}]
        }
    return work


def orcid_works_listing(*put_codes: int) -> dict[str, Any]:
    return {"group": [{"work-summary": [{"put-code": put_code}]} for put_code in put_codes]}


def install_fake_orcid_api(routes: dict[str, tuple[int, Any]]) -> list[dict[str, Any]]:
    """Route ORCID API calls to canned ``(status, payload)`` pairs keyed by path.

    A ``str`` payload is served as an HTML body.
    """
    calls: list[dict[str, Any]] = []

    async def _request(*, url: str, headers: dict[str, str], timeout_seconds: float) -> httpx.Response:
        path = url.removeprefix(ORCID_API_BASE_URL)
        calls.append({"path": path, "headers": headers})
        status_code, payload = routes.get(path, (404, {"error": "not found"}))
        request = httpx.Request("GET", url)
        if isinstance(payload, str):
            return httpx.Response(status_code, text=payload, headers={"content-type": "text/html"}, request=request)
        return httpx.Response(status_code, json=payload, request=request)

    def _factory(access_token: str | None) -> OrcidApiClient:
        return OrcidApiClient(access_token, base_url=ORCID_API_BASE_URL, request_fn=_request)

    app.dependency_overrides[get_orcid_client_factory] = lambda: _factory
    return calls


async def insert_user(
    db_session: AsyncSession,
    *,
    orcid_id: str,
    name: str = "Existing User",
    is_active: bool = True,
) -> int:
    result = await db_session.execute(
        text(
            """
            INSERT INTO users (orcid_id, name, is_active)
            VALUES (:orcid_id, :name, :is_active)
            RETURNING id
            """
        ),
        {
            "orcid_id": orcid_id,
            "name": name,
            "is_active": is_active,
        },
    )
    user_id = int(result.scalar_one())
    await db_session.commit()
    return user_id


def create_profile(client: TestClient, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"first_name": "Ada", "last_name": "Lovelace"}
    payload.update(overrides)
    response = client.post("/api/v1/profile", json=payload, headers=csrf_headers(client))
    assert response.status_code == 201, response.text
    return response.json()["data"]
