from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.auth.session import clear_session_user, get_session_user, set_session_user
from scholarflow.db.models import User
from scholarflow.logging_context import set_session_user_id
from scholarflow.logging_utils import structured_log
from scholarflow.security.csrf import CSRF_SESSION_KEY
from scholarflow.services.domains.users import application as user_service

logger = logging.getLogger(__name__)


def invalidate_session(request: Request) -> None:
    clear_session_user(request)
    request.session.pop(CSRF_SESSION_KEY, None)


async def get_authenticated_user(
    request: Request,
    db_session: AsyncSession,
) -> User | None:
    session_user = get_session_user(request)
    if session_user is None:
        return None

    user = await user_service.get_user_by_id(db_session, session_user.id)
    if user is None or not user.is_active:
        structured_log(logger, "info", "auth.session_invalidated", session_user_id=session_user.id)
        invalidate_session(request)
        return None

    if user.orcid_id != session_user.orcid_id:
        set_session_user(request, user_id=user.id, orcid_id=user.orcid_id)

    set_session_user_id(int(user.id))
    return user


def orcid_import_rate_limit_key(user: User) -> str:
    return f"orcid-import:{int(user.id)}"
