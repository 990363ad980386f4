from __future__ import annotations

from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.errors import ApiException
from scholarflow.db.models import Profile, User
from scholarflow.services.domains.profiles import application as profile_service
from scholarflow.services.domains.profiles.errors import (
    ProfileAccessDeniedError,
    ProfileExistsError,
    ProfileNotFoundError,
    ProfileServiceError,
    SectionItemNotFoundError,
)
from scholarflow.services.domains.profiles.orcid_import import OrcidImportError

PROFILE_NOT_FOUND_MESSAGE = "Profile not found."


def raise_profile_not_found() -> NoReturn:
    raise ApiException(
        status_code=404,
        code="profile_not_found",
        message=PROFILE_NOT_FOUND_MESSAGE,
    )


def raise_profile_service_error(exc: ProfileServiceError) -> NoReturn:
    if isinstance(exc, ProfileNotFoundError):
        raise_profile_not_found()
    if isinstance(exc, SectionItemNotFoundError):
        raise ApiException(status_code=404, code="item_not_found", message=str(exc)) from exc
    if isinstance(exc, ProfileExistsError):
        raise ApiException(status_code=400, code="profile_exists", message=str(exc)) from exc
    if isinstance(exc, ProfileAccessDeniedError):
        raise ApiException(status_code=403, code="forbidden", message=str(exc)) from exc
    if isinstance(exc, OrcidImportError):
        raise ApiException(status_code=502, code="orcid_unavailable", message=str(exc)) from exc
    raise ApiException(status_code=400, code="invalid_profile", message=str(exc)) from exc


async def require_current_profile(db_session: AsyncSession, *, user: User) -> Profile:
    try:
        return await profile_service.require_profile_for_user(db_session, user_id=int(user.id))
    except ProfileNotFoundError:
        raise_profile_not_found()
