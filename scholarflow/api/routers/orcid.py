from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.deps import get_api_current_user
from scholarflow.api.errors import ApiException
from scholarflow.api.responses import success_payload
from scholarflow.api.routers.profile_helpers import (
    raise_profile_service_error,
    require_current_profile,
)
from scholarflow.api.runtime_deps import get_orcid_client_factory
from scholarflow.api.schemas.orcid import (
    OrcidImportEnvelope,
    OrcidImportRequest,
    OrcidWorksEnvelope,
)
from scholarflow.auth import runtime as auth_runtime
from scholarflow.auth.deps import get_orcid_import_rate_limiter
from scholarflow.auth.rate_limit import SlidingWindowRateLimiter
from scholarflow.db.models import User
from scholarflow.db.session import get_db_session
from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.profiles import orcid_import as orcid_import_service
from scholarflow.services.domains.profiles.errors import ProfileServiceError
from scholarflow.services.domains.profiles.orcid_import import OrcidClientFactory

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api-orcid"])


def _raise_rate_limited(user: User, retry_after_seconds: int) -> NoReturn:
    structured_log(
        logger, "warning", "api.orcid.import_rate_limited",
        user_id=int(user.id),
        retry_after_seconds=retry_after_seconds,
    )
    raise ApiException(
        status_code=429,
        code="rate_limited",
        message="Too many ORCID imports. Please try again later.",
        details={"retry_after_seconds": retry_after_seconds},
        headers={"Retry-After": str(retry_after_seconds)},
    )


@router.get(
    "/orcid/works",
    response_model=OrcidWorksEnvelope,
)
async def preview_orcid_works(
    request: Request,
    current_user: User = Depends(get_api_current_user),
    client_factory: OrcidClientFactory = Depends(get_orcid_client_factory),
):
    try:
        works = await orcid_import_service.preview_orcid_works(
            user=current_user,
            client_factory=client_factory,
        )
    except ProfileServiceError as exc:
        raise_profile_service_error(exc)
    return success_payload(
        request,
        data={
            "orcid_id": current_user.orcid_id,
            "works": [work.as_dict() for work in works],
        },
    )


@router.post(
    "/profile/orcid/import",
    response_model=OrcidImportEnvelope,
)
async def import_orcid_record(
    request: Request,
    payload: OrcidImportRequest | None = None,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
    client_factory: OrcidClientFactory = Depends(get_orcid_client_factory),
    rate_limiter: SlidingWindowRateLimiter = Depends(get_orcid_import_rate_limiter),
):
    profile = await require_current_profile(db_session, user=current_user)

    limiter_key = auth_runtime.orcid_import_rate_limit_key(current_user)
    decision = rate_limiter.acquire(limiter_key)
    if not decision.allowed:
        _raise_rate_limited(current_user, int(decision.retry_after_seconds))

    try:
        result = await orcid_import_service.import_orcid_record(
            db_session,
            user=current_user,
            profile=profile,
            client_factory=client_factory,
            include_affiliations=bool(payload and payload.include_affiliations),
        )
    except ProfileServiceError as exc:
        raise_profile_service_error(exc)
    return success_payload(request, data=result.as_dict())
