from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.orcid.errors import OrcidApiError, OrcidClientError
from scholarflow.services.domains.orcid.identifiers import format_orcid_id, is_valid_orcid_id
from scholarflow.settings import settings

OrcidTokenRequestFn = Callable[..., Awaitable[httpx.Response]]
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrcidTokenGrant:
    orcid_id: str
    name: str
    access_token: str
    scope: str | None = None


async def _post_token_request(
    *,
    url: str,
    data: dict[str, str],
    timeout_seconds: float,
) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        return await client.post(url, data=data, headers={"Accept": "application/json"})


class OrcidOAuthClient:
    """Authorization-code exchange against the ORCID OAuth endpoints."""

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        oauth_base_url: str | None = None,
        scope: str | None = None,
        timeout_seconds: float | None = None,
        request_fn: OrcidTokenRequestFn | None = None,
    ) -> None:
        self._client_id = client_id if client_id is not None else settings.orcid_client_id
        self._client_secret = client_secret if client_secret is not None else settings.orcid_client_secret
        self._redirect_uri = redirect_uri or settings.orcid_redirect_uri
        self._oauth_base_url = (oauth_base_url or settings.orcid_oauth_base_url).rstrip("/")
        self._scope = scope or settings.orcid_oauth_scope
        self._timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.orcid_timeout_seconds
        )
        self._request_fn = request_fn or _post_token_request

    @property
    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def authorization_url(self, *, state: str) -> str:
        query = urlencode(
            {
                "client_id": self._client_id,
                "response_type": "code",
                "scope": self._scope,
                "redirect_uri": self._redirect_uri,
                "state": state,
            }
        )
        return f"{self._oauth_base_url}/oauth/authorize?{query}"

    @retry(
        retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def exchange_code(self, code: str) -> OrcidTokenGrant:
        response = await self._request_fn(
            url=f"{self._oauth_base_url}/oauth/token",
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._redirect_uri,
            },
            timeout_seconds=self._timeout_seconds,
        )
        if not response.is_success:
            structured_log(
                logger, "warning", "orcid.token_exchange_rejected",
                status_code=response.status_code,
            )
            raise OrcidApiError(response.status_code)

        payload = response.json()
        orcid_id = format_orcid_id(str(payload.get("orcid") or "").strip())
        access_token = str(payload.get("access_token") or "").strip()
        if not is_valid_orcid_id(orcid_id) or not access_token:
            raise OrcidClientError("ORCID token response is missing the iD or access token.")
        return OrcidTokenGrant(
            orcid_id=orcid_id,
            name=str(payload.get("name") or "").strip(),
            access_token=access_token,
            scope=payload.get("scope"),
        )
