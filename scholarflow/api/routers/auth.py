from __future__ import annotations

import logging
from secrets import compare_digest, token_urlsafe
from typing import NoReturn

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.deps import get_api_current_user
from scholarflow.api.errors import ApiException
from scholarflow.api.responses import success_payload
from scholarflow.api.schemas.auth import AuthMeEnvelope, CsrfBootstrapEnvelope
from scholarflow.api.schemas.common import MessageEnvelope
from scholarflow.auth import runtime as auth_runtime
from scholarflow.auth.deps import get_orcid_oauth_client
from scholarflow.auth.session import pop_oauth_state, set_session_user, store_oauth_state
from scholarflow.db.models import User
from scholarflow.db.session import get_db_session
from scholarflow.logging_utils import structured_log
from scholarflow.security.csrf import ensure_csrf_token
from scholarflow.services.domains.orcid.errors import OrcidClientError
from scholarflow.services.domains.orcid.oauth import OrcidOAuthClient
from scholarflow.services.domains.profiles import application as profile_service
from scholarflow.services.domains.users import application as user_service
from scholarflow.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["api-auth"])


def _serialize_user_payload(user: User) -> dict[str, object]:
    return {
        "id": int(user.id),
        "orcid_id": user.orcid_id,
        "name": user.name,
        "is_active": bool(user.is_active),
    }


def _raise_sign_in_failed(reason: str) -> NoReturn:
    structured_log(logger, "info", "api.auth.orcid_sign_in_failed", reason=reason)
    raise ApiException(
        status_code=400,
        code="orcid_sign_in_failed",
        message="ORCID sign-in failed. Please try again.",
    )


@router.get("/orcid/login")
async def orcid_login(
    request: Request,
    oauth_client: OrcidOAuthClient = Depends(get_orcid_oauth_client),
):
    if not oauth_client.is_configured:
        raise ApiException(
            status_code=503,
            code="orcid_not_configured",
            message="ORCID sign-in is not configured.",
        )
    state = token_urlsafe(24)
    store_oauth_state(request, state)
    return RedirectResponse(oauth_client.authorization_url(state=state), status_code=307)


@router.get("/orcid/callback")
async def orcid_callback(
    request: Request,
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    error: str | None = Query(default=None),
    db_session: AsyncSession = Depends(get_db_session),
    oauth_client: OrcidOAuthClient = Depends(get_orcid_oauth_client),
):
    expected_state = pop_oauth_state(request)
    if not state or expected_state is None or not compare_digest(state, expected_state):
        structured_log(logger, "warning", "api.auth.oauth_state_mismatch")
        raise ApiException(
            status_code=400,
            code="invalid_oauth_state",
            message="Sign-in request expired or was tampered with. Please try again.",
        )
    if error:
        _raise_sign_in_failed(error)
    if not code:
        _raise_sign_in_failed("missing_code")

    try:
        grant = await oauth_client.exchange_code(code)
    except (OrcidClientError, httpx.HTTPError) as exc:
        _raise_sign_in_failed(type(exc).__name__)

    try:
        user = await user_service.upsert_orcid_user(
            db_session,
            orcid_id=grant.orcid_id,
            name=grant.name,
            access_token=grant.access_token,
        )
    except user_service.UserServiceError:
        _raise_sign_in_failed("invalid_orcid_id")
    if not user.is_active:
        _raise_sign_in_failed("user_inactive")

    auth_runtime.invalidate_session(request)
    set_session_user(request, user_id=int(user.id), orcid_id=user.orcid_id)
    structured_log(logger, "info", "api.auth.orcid_sign_in_succeeded", user_id=int(user.id))

    profile = await profile_service.get_profile_for_user(db_session, user_id=int(user.id))
    if profile is not None:
        target = f"/profile/{profile.username}/edit"
    else:
        target = settings.post_login_redirect_path
    return RedirectResponse(target, status_code=307)


@router.get(
    "/me",
    response_model=AuthMeEnvelope,
)
async def get_current_session(
    request: Request,
    current_user: User = Depends(get_api_current_user),
    db_session: AsyncSession = Depends(get_db_session),
):
    profile = await profile_service.get_profile_for_user(db_session, user_id=int(current_user.id))
    return success_payload(
        request,
        data={
            "authenticated": True,
            "csrf_token": ensure_csrf_token(request),
            "user": _serialize_user_payload(current_user),
            "profile_username": profile.username if profile is not None else None,
        },
    )


@router.get(
    "/csrf",
    response_model=CsrfBootstrapEnvelope,
)
async def get_csrf_bootstrap(
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
):
    current_user = await auth_runtime.get_authenticated_user(request, db_session)
    return success_payload(
        request,
        data={
            "csrf_token": ensure_csrf_token(request),
            "authenticated": current_user is not None,
        },
    )


@router.post(
    "/logout",
    response_model=MessageEnvelope,
)
async def logout(
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
):
    current_user = await auth_runtime.get_authenticated_user(request, db_session)
    auth_runtime.invalidate_session(request)
    structured_log(
        logger, "info", "api.auth.logout", user_id=int(current_user.id) if current_user is not None else None
    )
    return success_payload(
        request,
        data={
            "message": "Logged out.",
        },
    )
