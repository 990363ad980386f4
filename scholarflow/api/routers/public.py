from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.responses import success_payload
from scholarflow.api.routers.profile_helpers import raise_profile_not_found
from scholarflow.api.routers.profile_serializers import (
    serialize_public_profile,
    serialize_public_summary,
)
from scholarflow.api.schemas.profiles import PublicProfileEnvelope, PublicProfilesListEnvelope
from scholarflow.db.session import get_db_session
from scholarflow.services.domains.profiles import application as profile_service

router = APIRouter(prefix="/public", tags=["api-public"])

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@router.get(
    "/profiles",
    response_model=PublicProfilesListEnvelope,
)
async def list_public_profiles(
    request: Request,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    db_session: AsyncSession = Depends(get_db_session),
):
    profiles, total = await profile_service.list_public_profiles(
        db_session,
        limit=limit,
        offset=offset,
    )
    return success_payload(
        request,
        data={
            "profiles": [serialize_public_summary(profile) for profile in profiles],
            "total": total,
            "limit": limit,
            "offset": offset,
        },
    )


@router.get(
    "/profiles/{username}",
    response_model=PublicProfileEnvelope,
)
async def get_public_profile(
    username: str,
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.get_public_profile_by_username(db_session, username)
    if profile is None:
        raise_profile_not_found()
    bundle = await profile_service.load_profile_bundle(db_session, profile)
    return success_payload(request, data=serialize_public_profile(bundle))
