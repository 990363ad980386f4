from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.orcid.errors import (
    OrcidApiError,
    OrcidPayloadError,
    OrcidResponseError,
)
from scholarflow.services.domains.orcid.types import (
    AffiliationSummary,
    OrcidPublication,
    affiliation_summaries,
)
from scholarflow.settings import settings

OrcidRequestFn = Callable[..., Awaitable[httpx.Response]]
logger = logging.getLogger(__name__)

USER_AGENT = "scholarflow/1.0"
DEFAULT_DETAIL_CONCURRENCY = 4

_retry_transient = retry(
    retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


async def _request_orcid(
    *,
    url: str,
    headers: dict[str, str],
    timeout_seconds: float,
) -> httpx.Response:
    async with httpx.AsyncClient(timeout=timeout_seconds, follow_redirects=True) as client:
        return await client.get(url, headers=headers)


class OrcidApiClient:
    """Read-only client for the ORCID public/member record API."""

    def __init__(
        self,
        access_token: str | None = None,
        *,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        detail_concurrency: int = DEFAULT_DETAIL_CONCURRENCY,
        request_fn: OrcidRequestFn | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = (base_url or settings.orcid_api_base_url).rstrip("/")
        self._timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.orcid_timeout_seconds
        )
        self._detail_concurrency = max(1, detail_concurrency)
        self._request_fn = request_fn or _request_orcid

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def _get(self, path: str) -> httpx.Response:
        return await self._request_fn(
            url=f"{self._base_url}{path}",
            headers=self._headers,
            timeout_seconds=self._timeout_seconds,
        )

    @_retry_transient
    async def fetch_works(self, orcid_id: str) -> list[OrcidPublication]:
        """Fetch every work on the record, newest first.

        The ``/works`` listing only carries summaries, so each put-code is
        resolved through ``/work/{put-code}``. Details that fail to load or
        map are skipped.
        """
        response = await self._get(f"/{orcid_id}/works")
        if not response.is_success:
            raise OrcidApiError(response.status_code)

        groups = _work_groups(_json_body(response))
        if not groups:
            return []

        put_codes: list[int] = []
        for group in groups:
            for summary in (group or {}).get("work-summary") or []:
                put_code = (summary or {}).get("put-code")
                if put_code is not None:
                    put_codes.append(put_code)

        semaphore = asyncio.Semaphore(self._detail_concurrency)

        async def _bounded(put_code: int) -> OrcidPublication | None:
            async with semaphore:
                return await self._fetch_work_details(orcid_id, put_code)

        details = await asyncio.gather(*(_bounded(put_code) for put_code in put_codes))
        publications = [item for item in details if item is not None]
        publications.sort(key=lambda item: item.year, reverse=True)
        structured_log(
            logger, "info", "orcid.works_fetched",
            orcid_id=orcid_id,
            summary_count=len(put_codes),
            publication_count=len(publications),
        )
        return publications

    async def _fetch_work_details(
        self,
        orcid_id: str,
        put_code: int,
    ) -> OrcidPublication | None:
        try:
            response = await self._get(f"/{orcid_id}/work/{put_code}")
        except httpx.HTTPError as exc:
            structured_log(
                logger, "warning", "orcid.work_detail_failed",
                orcid_id=orcid_id,
                put_code=put_code,
                error_type=type(exc).__name__,
            )
            return None
        if not response.is_success:
            structured_log(
                logger, "warning", "orcid.work_detail_failed",
                orcid_id=orcid_id,
                put_code=put_code,
                status_code=response.status_code,
            )
            return None

        try:
            return OrcidPublication.from_work(response.json())
        except (OrcidPayloadError, ValueError, TypeError, AttributeError) as exc:
            structured_log(
                logger, "warning", "orcid.work_detail_unparseable",
                orcid_id=orcid_id,
                put_code=put_code,
                error_type=type(exc).__name__,
            )
            return None

    @_retry_transient
    async def fetch_profile(self, orcid_id: str) -> dict[str, Any]:
        response = await self._get(f"/{orcid_id}/person")
        if not response.is_success:
            raise OrcidApiError(response.status_code)
        return _json_body(response)

    async def fetch_education(self, orcid_id: str) -> list[AffiliationSummary]:
        return await self._fetch_affiliations(orcid_id, kind="education", path="educations")

    async def fetch_employment(self, orcid_id: str) -> list[AffiliationSummary]:
        return await self._fetch_affiliations(orcid_id, kind="employment", path="employments")

    async def _fetch_affiliations(
        self,
        orcid_id: str,
        *,
        kind: str,
        path: str,
    ) -> list[AffiliationSummary]:
        # Affiliations are optional enrichment: any failure yields an empty list.
        try:
            response = await self._get(f"/{orcid_id}/{path}")
            if not response.is_success:
                structured_log(
                    logger, "info", "orcid.affiliations_unavailable",
                    orcid_id=orcid_id,
                    kind=kind,
                    status_code=response.status_code,
                )
                return []
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            structured_log(
                logger, "warning", "orcid.affiliations_failed",
                orcid_id=orcid_id,
                kind=kind,
                error_type=type(exc).__name__,
            )
            return []

        if not isinstance(payload, dict):
            return []
        parsed = [AffiliationSummary.from_summary(item) for item in affiliation_summaries(payload, kind=kind)]
        return [item for item in parsed if item is not None]


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise OrcidResponseError(
            f"ORCID returned a non-JSON body ({response.headers.get('content-type', 'unknown')})."
        ) from exc


def _work_groups(payload: Any) -> list[dict[str, Any]]:
    # `/works` returns groups at the top level; `/activities` nests them under "works".
    if not isinstance(payload, dict):
        return []
    groups = payload.get("group")
    if groups is None:
        groups = (payload.get("works") or {}).get("group")
    return [group for group in groups or [] if isinstance(group, dict)]


def create_orcid_client(access_token: str | None = None) -> OrcidApiClient:
    return OrcidApiClient(access_token)
