from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.db.models import User
from scholarflow.services.domains.orcid.identifiers import format_orcid_id, is_valid_orcid_id


class UserServiceError(ValueError):
    """Raised for expected user-management validation failures."""


def validate_orcid_id(value: str) -> str:
    orcid_id = format_orcid_id((value or "").strip().upper())
    if not is_valid_orcid_id(orcid_id):
        raise UserServiceError("Enter a valid ORCID iD (0000-0000-0000-0000).")
    return orcid_id


async def get_user_by_id(db_session: AsyncSession, user_id: int) -> User | None:
    result = await db_session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_orcid_id(db_session: AsyncSession, orcid_id: str) -> User | None:
    result = await db_session.execute(select(User).where(User.orcid_id == orcid_id))
    return result.scalar_one_or_none()


async def upsert_orcid_user(
    db_session: AsyncSession,
    *,
    orcid_id: str,
    name: str,
    access_token: str,
) -> User:
    """Create the user for an ORCID iD on first sign-in, refresh it afterwards."""
    normalized_orcid_id = validate_orcid_id(orcid_id)
    user = await get_user_by_orcid_id(db_session, normalized_orcid_id)
    if user is None:
        user = User(
            orcid_id=normalized_orcid_id,
            name=name.strip(),
            orcid_access_token=access_token,
            is_active=True,
        )
        db_session.add(user)
        try:
            await db_session.commit()
        except IntegrityError:
            # A concurrent first sign-in created the row; fall through to refresh it.
            await db_session.rollback()
            user = await get_user_by_orcid_id(db_session, normalized_orcid_id)
            if user is None:
                raise
        else:
            await db_session.refresh(user)
            return user

    if name.strip():
        user.name = name.strip()
    user.orcid_access_token = access_token
    await db_session.commit()
    await db_session.refresh(user)
    return user

