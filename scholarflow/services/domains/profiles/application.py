from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.db.base import utcnow
from scholarflow.db.models import (
    Award,
    Education,
    Grant,
    Position,
    Profile,
    ProfileTemplateId,
    ProfileVisibility,
    Publication,
    SocialLink,
    User,
)
from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.orcid.identifiers import format_orcid_id, is_valid_orcid_id
from scholarflow.services.domains.profiles.errors import (
    ProfileAccessDeniedError,
    ProfileExistsError,
    ProfileNotFoundError,
    ProfileServiceError,
)
from scholarflow.services.domains.profiles.sections import publication_values, social_link_values
from scholarflow.services.domains.profiles.usernames import (
    allocate_username,
    generate_base_username,
    username_taken,
)
from scholarflow.services.domains.profiles.validators import (
    normalize_optional_text,
    validate_optional_url,
    validate_required_text,
)

logger = logging.getLogger(__name__)

BY_ID_PUBLICATION_LIMIT = 20
MAX_USERNAME_ALLOCATION_ATTEMPTS = 5
PUBLIC_VISIBILITIES = (ProfileVisibility.PUBLIC, ProfileVisibility.UNLISTED)

OPTIONAL_TEXT_FIELDS = (
    "display_name",
    "email",
    "current_position",
    "current_institution",
    "current_department",
    "location",
    "custom_domain",
)
URL_FIELDS = {
    "website": "Website",
    "profile_photo": "Profile photo",
}
UPDATABLE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "bio",
        "template",
        "visibility",
        *OPTIONAL_TEXT_FIELDS,
        *URL_FIELDS,
    }
)


@dataclass
class ProfileBundle:
    profile: Profile
    publications: list[Publication] = field(default_factory=list)
    education: list[Education] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)
    awards: list[Award] = field(default_factory=list)
    grants: list[Grant] = field(default_factory=list)
    social_links: list[SocialLink] = field(default_factory=list)


async def get_profile_for_user(db_session: AsyncSession, *, user_id: int) -> Profile | None:
    result = await db_session.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_profile_by_id(db_session: AsyncSession, profile_id: int) -> Profile | None:
    result = await db_session.execute(select(Profile).where(Profile.id == profile_id))
    return result.scalar_one_or_none()


async def require_profile_for_user(db_session: AsyncSession, *, user_id: int) -> Profile:
    profile = await get_profile_for_user(db_session, user_id=user_id)
    if profile is None:
        raise ProfileNotFoundError("Profile not found.")
    return profile


async def require_owned_profile(
    db_session: AsyncSession,
    *,
    profile_id: int,
    user_id: int,
) -> Profile:
    """Return the profile only when ``user_id`` owns it.

    A missing profile and someone else's profile are indistinguishable to the
    caller: both raise ``ProfileAccessDeniedError``.
    """
    profile = await get_profile_for_user(db_session, user_id=user_id)
    if profile is None or int(profile.id) != int(profile_id):
        raise ProfileAccessDeniedError("You do not own this profile.")
    return profile


async def load_profile_bundle(
    db_session: AsyncSession,
    profile: Profile,
    *,
    publication_limit: int | None = None,
) -> ProfileBundle:
    profile_id = int(profile.id)

    publications_query = (
        select(Publication)
        .where(Publication.profile_id == profile_id)
        .order_by(Publication.year.desc().nulls_last(), Publication.id.desc())
    )
    if publication_limit is not None:
        publications_query = publications_query.limit(publication_limit)

    async def _all(query) -> list[Any]:
        result = await db_session.execute(query)
        return list(result.scalars().all())

    return ProfileBundle(
        profile=profile,
        publications=await _all(publications_query),
        education=await _all(
            select(Education)
            .where(Education.profile_id == profile_id)
            .order_by(Education.start_year.desc(), Education.id.desc())
        ),
        positions=await _all(
            select(Position)
            .where(Position.profile_id == profile_id)
            .order_by(Position.start_year.desc(), Position.id.desc())
        ),
        awards=await _all(
            select(Award)
            .where(Award.profile_id == profile_id)
            .order_by(Award.year.desc(), Award.id.desc())
        ),
        grants=await _all(
            select(Grant)
            .where(Grant.profile_id == profile_id)
            .order_by(Grant.start_year.desc(), Grant.id.desc())
        ),
        social_links=await _all(
            select(SocialLink)
            .where(SocialLink.profile_id == profile_id)
            .order_by(SocialLink.id.asc())
        ),
    )


def _validated_orcid_id(value: str | None) -> str | None:
    normalized = normalize_optional_text(value)
    if normalized is None:
        return None
    orcid_id = format_orcid_id(normalized.upper())
    if not is_valid_orcid_id(orcid_id):
        raise ProfileServiceError("ORCID iD must look like 0000-0000-0000-0000.")
    return orcid_id


def _scalar_changes(values: dict[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for key, value in values.items():
        if key not in UPDATABLE_FIELDS:
            continue
        if key in ("first_name", "last_name"):
            label = "First name" if key == "first_name" else "Last name"
            changes[key] = validate_required_text(value, label=label)
        elif key == "bio":
            changes[key] = (value or "").strip()
        elif key in URL_FIELDS:
            changes[key] = validate_optional_url(value, label=URL_FIELDS[key])
        elif key == "template":
            changes[key] = ProfileTemplateId(value) if value is not None else ProfileTemplateId.MINIMAL
        elif key == "visibility":
            changes[key] = ProfileVisibility(value) if value is not None else ProfileVisibility.PUBLIC
        else:
            changes[key] = normalize_optional_text(value)
    return changes


async def create_profile_for_user(
    db_session: AsyncSession,
    *,
    user: User,
    values: dict[str, Any],
) -> Profile:
    """Create the caller's single profile, with optional nested records.

    ``values`` may carry ``publications`` and ``social_links`` lists; they are
    inserted in the same transaction as the profile.
    """
    user_id = int(user.id)
    if await get_profile_for_user(db_session, user_id=user_id) is not None:
        raise ProfileExistsError("Profile already exists.")

    scalar_values = _scalar_changes(values)
    for required in ("first_name", "last_name"):
        if required not in scalar_values:
            label = "First name" if required == "first_name" else "Last name"
            raise ProfileServiceError(f"{label} is required.")
    orcid_id = _validated_orcid_id(values.get("orcid_id"))
    publications = [publication_values(item) for item in values.get("publications") or []]
    work_ids = [item["orcid_work_id"] for item in publications if item["orcid_work_id"]]
    if len(work_ids) != len(set(work_ids)):
        raise ProfileServiceError("Publications must not repeat an ORCID work id.")
    social_links = [social_link_values(item) for item in values.get("social_links") or []]

    base_username = generate_base_username(scalar_values["first_name"], scalar_values["last_name"])
    now = utcnow()
    scalar_values.setdefault("template", ProfileTemplateId.MINIMAL)
    scalar_values.setdefault("visibility", ProfileVisibility.PUBLIC)

    for attempt in range(1, MAX_USERNAME_ALLOCATION_ATTEMPTS + 1):
        username = await allocate_username(db_session, base_username)
        profile = Profile(
            user_id=user_id,
            username=username,
            orcid_id=orcid_id,
            last_orcid_sync=now if orcid_id else None,
            published_at=now if scalar_values["visibility"] == ProfileVisibility.PUBLIC else None,
            **scalar_values,
        )
        db_session.add(profile)
        try:
            await db_session.flush()
            for item in publications:
                db_session.add(Publication(profile_id=profile.id, **item))
            for item in social_links:
                db_session.add(SocialLink(profile_id=profile.id, **item))
            await db_session.commit()
        except IntegrityError as exc:
            await db_session.rollback()
            if await get_profile_for_user(db_session, user_id=user_id) is not None:
                raise ProfileExistsError("Profile already exists.") from exc
            if not await username_taken(db_session, username):
                raise ProfileServiceError("Profile could not be saved.") from exc
            structured_log(
                logger, "info", "profiles.username_collision_retry",
                user_id=user_id,
                username=username,
                attempt=attempt,
            )
            continue

        await db_session.refresh(profile)
        structured_log(
            logger, "info", "profiles.created",
            user_id=user_id,
            profile_id=int(profile.id),
            username=profile.username,
            publication_count=len(publications),
        )
        return profile

    raise ProfileServiceError("Could not allocate a unique username. Please try again.")


def _apply_visibility_change(profile: Profile, visibility: ProfileVisibility) -> None:
    if visibility == ProfileVisibility.PUBLIC:
        already_published = (
            profile.visibility == ProfileVisibility.PUBLIC and profile.published_at is not None
        )
        if not already_published:
            profile.published_at = utcnow()
    else:
        profile.published_at = None
    profile.visibility = visibility


async def update_profile(
    db_session: AsyncSession,
    *,
    profile: Profile,
    values: dict[str, Any],
) -> Profile:
    """Apply a partial update; keys absent from ``values`` are left untouched."""
    changes = _scalar_changes(values)
    visibility = changes.pop("visibility", None)
    for key, value in changes.items():
        setattr(profile, key, value)
    if visibility is not None:
        _apply_visibility_change(profile, visibility)
    await db_session.commit()
    await db_session.refresh(profile)
    structured_log(
        logger, "info", "profiles.updated",
        profile_id=int(profile.id),
        fields=sorted(changes.keys() | ({"visibility"} if visibility is not None else set())),
    )
    return profile


async def delete_profile(db_session: AsyncSession, *, profile: Profile) -> None:
    profile_id = int(profile.id)
    # Child rows go with the profile through ON DELETE CASCADE.
    await db_session.execute(delete(Profile).where(Profile.id == profile_id))
    await db_session.commit()
    structured_log(logger, "info", "profiles.deleted", profile_id=profile_id)


async def get_public_profile_by_username(
    db_session: AsyncSession,
    username: str,
) -> Profile | None:
    result = await db_session.execute(
        select(Profile).where(
            Profile.username == username.strip().lower(),
            Profile.visibility.in_(PUBLIC_VISIBILITIES),
        )
    )
    return result.scalar_one_or_none()


def can_view_profile(profile: Profile, *, viewer_user_id: int | None) -> bool:
    if profile.visibility != ProfileVisibility.PRIVATE:
        return True
    return viewer_user_id is not None and int(profile.user_id) == int(viewer_user_id)


async def list_public_profiles(
    db_session: AsyncSession,
    *,
    limit: int,
    offset: int,
) -> tuple[list[Profile], int]:
    # Unlisted profiles are reachable by URL only, never listed.
    visible = Profile.visibility == ProfileVisibility.PUBLIC
    total_result = await db_session.execute(select(func.count(Profile.id)).where(visible))
    result = await db_session.execute(
        select(Profile)
        .where(visible)
        .order_by(Profile.published_at.desc().nulls_last(), Profile.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), int(total_result.scalar_one())
