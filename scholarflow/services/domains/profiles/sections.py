from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.db.models import (
    Award,
    Education,
    Grant,
    GrantRole,
    GrantStatus,
    Position,
    Profile,
    Publication,
    PublicationType,
    SocialLink,
)
from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.profiles.errors import (
    ProfileServiceError,
    SectionItemNotFoundError,
)
from scholarflow.services.domains.profiles.validators import (
    normalize_optional_text,
    normalize_string_list,
    validate_optional_url,
    validate_required_text,
    validate_year,
    validate_year_range,
)

logger = logging.getLogger(__name__)


def publication_values(values: dict[str, Any]) -> dict[str, Any]:
    publication_type = values.get("type") or PublicationType.JOURNAL_ARTICLE
    return {
        "title": validate_required_text(values.get("title"), label="Publication title"),
        "authors": normalize_string_list(values.get("authors")),
        "journal": normalize_optional_text(values.get("journal")),
        "year": validate_year(values.get("year"), label="Publication year"),
        "doi": normalize_optional_text(values.get("doi")),
        "url": validate_optional_url(values.get("url"), label="Publication URL"),
        "citation_count": values.get("citation_count"),
        "type": PublicationType(publication_type),
        "abstract": normalize_optional_text(values.get("abstract")),
        "keywords": normalize_string_list(values.get("keywords")),
        "orcid_work_id": normalize_optional_text(values.get("orcid_work_id")),
    }


def _dated_values(values: dict[str, Any]) -> dict[str, Any]:
    start_year = validate_year(values.get("start_year"), label="Start year", required=True)
    end_year = validate_year(values.get("end_year"), label="End year")
    validate_year_range(start_year, end_year)
    return {
        "start_year": start_year,
        "end_year": end_year,
        "description": normalize_optional_text(values.get("description")),
    }


def education_values(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "institution": validate_required_text(values.get("institution"), label="Institution"),
        "degree": validate_required_text(values.get("degree"), label="Degree"),
        "field": validate_required_text(values.get("field"), label="Field"),
        "current": bool(values.get("current", False)),
        **_dated_values(values),
    }


def position_values(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": validate_required_text(values.get("title"), label="Title"),
        "institution": validate_required_text(values.get("institution"), label="Institution"),
        "department": normalize_optional_text(values.get("department")),
        "current": bool(values.get("current", False)),
        **_dated_values(values),
    }


def award_values(values: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": validate_required_text(values.get("title"), label="Title"),
        "organization": validate_required_text(values.get("organization"), label="Organization"),
        "year": validate_year(values.get("year"), label="Year", required=True),
        "description": normalize_optional_text(values.get("description")),
        "amount": normalize_optional_text(values.get("amount")),
    }


def grant_values(values: dict[str, Any]) -> dict[str, Any]:
    try:
        role = GrantRole(values.get("role"))
        status = GrantStatus(values.get("status") or GrantStatus.ACTIVE)
    except ValueError as exc:
        raise ProfileServiceError("Invalid grant role or status.") from exc
    return {
        "title": validate_required_text(values.get("title"), label="Title"),
        "agency": validate_required_text(values.get("agency"), label="Agency"),
        "role": role,
        "status": status,
        "amount": normalize_optional_text(values.get("amount")),
        **_dated_values(values),
    }


def social_link_values(values: dict[str, Any]) -> dict[str, Any]:
    url = validate_optional_url(values.get("url"), label="Social link URL")
    if url is None:
        raise ProfileServiceError("Social link URL is required.")
    return {
        "platform": validate_required_text(values.get("platform"), label="Platform"),
        "url": url,
        "display_name": normalize_optional_text(values.get("display_name")),
    }


@dataclass(frozen=True)
class SectionDefinition:
    name: str
    model: type
    build_values: Callable[[dict[str, Any]], dict[str, Any]]

    def current_values(self, item: Any) -> dict[str, Any]:
        return {column.key: getattr(item, column.key) for column in self.model.__table__.columns}


SECTIONS: dict[str, SectionDefinition] = {
    definition.name: definition
    for definition in (
        SectionDefinition("publications", Publication, publication_values),
        SectionDefinition("education", Education, education_values),
        SectionDefinition("positions", Position, position_values),
        SectionDefinition("awards", Award, award_values),
        SectionDefinition("grants", Grant, grant_values),
        SectionDefinition("social-links", SocialLink, social_link_values),
    )
}


def get_section(name: str) -> SectionDefinition:
    try:
        return SECTIONS[name]
    except KeyError as exc:
        raise ProfileServiceError(f"Unknown profile section: {name}.") from exc


async def _get_owned_item(
    db_session: AsyncSession,
    *,
    section: SectionDefinition,
    profile: Profile,
    item_id: int,
) -> Any:
    model = section.model
    result = await db_session.execute(
        select(model).where(model.id == item_id, model.profile_id == profile.id)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise SectionItemNotFoundError("Item not found.")
    return item


async def _commit_item(db_session: AsyncSession, *, section: SectionDefinition) -> None:
    try:
        await db_session.commit()
    except IntegrityError as exc:
        await db_session.rollback()
        if section.model is Publication:
            raise ProfileServiceError(
                "A publication with this ORCID work id already exists on the profile."
            ) from exc
        raise ProfileServiceError("Item could not be saved.") from exc


async def add_section_item(
    db_session: AsyncSession,
    *,
    profile: Profile,
    section_name: str,
    values: dict[str, Any],
) -> Any:
    section = get_section(section_name)
    item = section.model(profile_id=int(profile.id), **section.build_values(values))
    db_session.add(item)
    await _commit_item(db_session, section=section)
    await db_session.refresh(item)
    structured_log(
        logger, "info", "profiles.section_item_added",
        profile_id=int(profile.id),
        section=section.name,
        item_id=int(item.id),
    )
    return item


async def update_section_item(
    db_session: AsyncSession,
    *,
    profile: Profile,
    section_name: str,
    item_id: int,
    values: dict[str, Any],
) -> Any:
    """Overwrite the supplied fields and revalidate the item as a whole."""
    section = get_section(section_name)
    item = await _get_owned_item(db_session, section=section, profile=profile, item_id=item_id)
    merged = {**section.current_values(item), **values}
    for key, value in section.build_values(merged).items():
        setattr(item, key, value)
    await _commit_item(db_session, section=section)
    await db_session.refresh(item)
    structured_log(
        logger, "info", "profiles.section_item_updated",
        profile_id=int(profile.id),
        section=section.name,
        item_id=int(item.id),
    )
    return item


async def delete_section_item(
    db_session: AsyncSession,
    *,
    profile: Profile,
    section_name: str,
    item_id: int,
) -> None:
    section = get_section(section_name)
    item = await _get_owned_item(db_session, section=section, profile=profile, item_id=item_id)
    await db_session.delete(item)
    await db_session.commit()
    structured_log(
        logger, "info", "profiles.section_item_deleted",
        profile_id=int(profile.id),
        section=section.name,
        item_id=item_id,
    )
