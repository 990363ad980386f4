from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.deps import get_api_current_user, get_api_optional_user
from scholarflow.api.errors import ApiException
from scholarflow.api.responses import success_payload
from scholarflow.api.routers.profile_helpers import (
    raise_profile_not_found,
    raise_profile_service_error,
    require_current_profile,
)
from scholarflow.api.routers.profile_serializers import serialize_profile, serialize_profile_bundle
from scholarflow.api.schemas.common import MessageEnvelope
from scholarflow.api.schemas.profiles import (
    CurrentProfileEnvelope,
    ProfileCreateRequest,
    ProfileDetailEnvelope,
    ProfileEnvelope,
    ProfileUpdateRequest,
)
from scholarflow.auth import runtime as auth_runtime
from scholarflow.auth.session import get_session_user
from scholarflow.db.models import User
from scholarflow.db.session import get_db_session
from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.profiles import application as profile_service
from scholarflow.services.domains.profiles.errors import ProfileServiceError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api-profiles"])


@router.get(
    "/profile",
    response_model=CurrentProfileEnvelope,
)
async def get_current_profile(
    request: Request,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.get_profile_for_user(db_session, user_id=int(current_user.id))
    if profile is None:
        return success_payload(request, data={"profile": None})
    bundle = await profile_service.load_profile_bundle(db_session, profile)
    return success_payload(request, data={"profile": serialize_profile_bundle(bundle)})


@router.post(
    "/profile",
    response_model=ProfileDetailEnvelope,
    status_code=201,
)
async def create_profile(
    payload: ProfileCreateRequest,
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
):
    if get_session_user(request) is None:
        raise ApiException(status_code=401, code="auth_required", message="Authentication required.")
    current_user = await auth_runtime.get_authenticated_user(request, db_session)
    if current_user is None:
        raise ApiException(status_code=404, code="user_not_found", message="User not found.")
    user_id = int(current_user.id)

    try:
        profile = await profile_service.create_profile_for_user(
            db_session,
            user=current_user,
            values=payload.model_dump(mode="json"),
        )
    except ProfileServiceError as exc:
        structured_log(
            logger, "info", "api.profiles.create_rejected",
            user_id=user_id,
            error_type=type(exc).__name__,
        )
        raise_profile_service_error(exc)

    bundle = await profile_service.load_profile_bundle(db_session, profile)
    return success_payload(request, data=serialize_profile_bundle(bundle))


@router.put(
    "/profile",
    response_model=ProfileEnvelope,
)
async def update_current_profile(
    payload: ProfileUpdateRequest,
    request: Request,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    profile = await require_current_profile(db_session, user=current_user)
    try:
        profile = await profile_service.update_profile(
            db_session,
            profile=profile,
            values=payload.model_dump(mode="json", exclude_unset=True),
        )
    except ProfileServiceError as exc:
        raise_profile_service_error(exc)
    return success_payload(request, data=serialize_profile(profile))


@router.get(
    "/profiles/by-id/{profile_id}",
    response_model=ProfileDetailEnvelope,
)
async def get_profile_by_id(
    profile_id: int,
    request: Request,
    current_user: User | None = Depends(get_api_optional_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.get_profile_by_id(db_session, profile_id)
    viewer_user_id = int(current_user.id) if current_user is not None else None
    if profile is None or not profile_service.can_view_profile(profile, viewer_user_id=viewer_user_id):
        raise_profile_not_found()
    bundle = await profile_service.load_profile_bundle(
        db_session,
        profile,
        publication_limit=profile_service.BY_ID_PUBLICATION_LIMIT,
    )
    return success_payload(request, data=serialize_profile_bundle(bundle))


@router.put(
    "/profiles/by-id/{profile_id}",
    response_model=ProfileEnvelope,
)
async def update_profile_by_id(
    profile_id: int,
    payload: ProfileUpdateRequest,
    request: Request,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        profile = await profile_service.require_owned_profile(
            db_session,
            profile_id=profile_id,
            user_id=int(current_user.id),
        )
        profile = await profile_service.update_profile(
            db_session,
            profile=profile,
            values=payload.model_dump(mode="json", exclude_unset=True),
        )
    except ProfileServiceError as exc:
        raise_profile_service_error(exc)
    return success_payload(request, data=serialize_profile(profile))


@router.delete(
    "/profiles/by-id/{profile_id}",
    response_model=MessageEnvelope,
)
async def delete_profile_by_id(
    profile_id: int,
    request: Request,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        profile = await profile_service.require_owned_profile(
            db_session,
            profile_id=profile_id,
            user_id=int(current_user.id),
        )
    except ProfileServiceError as exc:
        raise_profile_service_error(exc)
    await profile_service.delete_profile(db_session, profile=profile)
    return success_payload(request, data={"message": "Profile deleted successfully."})
