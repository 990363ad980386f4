from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.errors import ApiException
from scholarflow.auth import runtime as auth_runtime
from scholarflow.db.models import User
from scholarflow.db.session import get_db_session


async def get_api_current_user(
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
) -> User:
    current_user = await auth_runtime.get_authenticated_user(request, db_session)
    if current_user is None:
        raise ApiException(
            status_code=401,
            code="auth_required",
            message="Authentication required.",
        )
    return current_user


async def get_api_optional_user(
    request: Request,
    db_session: AsyncSession = Depends(get_db_session),
) -> User | None:
    return await auth_runtime.get_authenticated_user(request, db_session)
