from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.db.base import utcnow
from scholarflow.db.models import Education, Position, Profile, Publication, User
from scholarflow.logging_utils import structured_log
from scholarflow.services.domains.orcid.client import OrcidApiClient
from scholarflow.services.domains.orcid.errors import OrcidClientError
from scholarflow.services.domains.orcid.types import AffiliationSummary, OrcidPublication
from scholarflow.services.domains.profiles.errors import ProfileServiceError

logger = logging.getLogger(__name__)

OrcidClientFactory = Callable[[str | None], OrcidApiClient]

SYNCED_PUBLICATION_FIELDS = ("title", "authors", "journal", "year", "doi", "url", "type")


class OrcidImportError(ProfileServiceError):
    """ORCID could not be reached or answered with an error."""


@dataclass(frozen=True)
class OrcidImportResult:
    created: int
    updated: int
    education_added: int
    positions_added: int
    last_orcid_sync: datetime

    def as_dict(self) -> dict[str, object]:
        return {
            "created": self.created,
            "updated": self.updated,
            "education_added": self.education_added,
            "positions_added": self.positions_added,
            "last_orcid_sync": self.last_orcid_sync,
        }


async def preview_orcid_works(
    *,
    user: User,
    client_factory: OrcidClientFactory,
) -> list[OrcidPublication]:
    client = client_factory(user.orcid_access_token)
    try:
        return await client.fetch_works(user.orcid_id)
    except (OrcidClientError, httpx.HTTPError) as exc:
        structured_log(
            logger, "warning", "orcid_import.preview_failed",
            user_id=int(user.id),
            error_type=type(exc).__name__,
        )
        raise OrcidImportError("ORCID is unavailable. Please try again later.") from exc


async def _fetch_affiliations(
    client: OrcidApiClient,
    orcid_id: str,
) -> tuple[list[AffiliationSummary], list[AffiliationSummary]]:
    education, employment = await asyncio.gather(
        client.fetch_education(orcid_id),
        client.fetch_employment(orcid_id),
    )
    return education, employment


async def _upsert_publications(
    db_session: AsyncSession,
    *,
    profile: Profile,
    works: list[OrcidPublication],
) -> tuple[int, int]:
    result = await db_session.execute(
        select(Publication).where(
            Publication.profile_id == profile.id,
            Publication.orcid_work_id.is_not(None),
        )
    )
    existing = {str(item.orcid_work_id): item for item in result.scalars().all()}

    created = 0
    updated = 0
    for work in works:
        current = existing.get(work.orcid_work_id)
        if current is None:
            publication = Publication(profile_id=int(profile.id), orcid_work_id=work.orcid_work_id)
            for key in SYNCED_PUBLICATION_FIELDS:
                setattr(publication, key, getattr(work, key))
            db_session.add(publication)
            existing[work.orcid_work_id] = publication
            created += 1
            continue
        for key in SYNCED_PUBLICATION_FIELDS:
            setattr(current, key, getattr(work, key))
        updated += 1
    return created, updated


def _affiliation_key(institution: str, start_year: int) -> tuple[str, int]:
    return institution.strip().lower(), int(start_year)


async def _add_missing_affiliations(
    db_session: AsyncSession,
    *,
    profile: Profile,
    model: type[Education] | type[Position],
    summaries: list[AffiliationSummary],
) -> int:
    result = await db_session.execute(
        select(model.institution, model.start_year).where(model.profile_id == profile.id)
    )
    seen = {_affiliation_key(institution, start_year) for institution, start_year in result.all()}

    added = 0
    for summary in summaries:
        key = _affiliation_key(summary.organization, summary.start_year)
        if key in seen:
            continue
        values = summary.as_education() if model is Education else summary.as_position()
        db_session.add(model(profile_id=int(profile.id), **values))
        seen.add(key)
        added += 1
    return added


async def import_orcid_record(
    db_session: AsyncSession,
    *,
    user: User,
    profile: Profile,
    client_factory: OrcidClientFactory,
    include_affiliations: bool = False,
) -> OrcidImportResult:
    """Pull the user's ORCID works (and optionally affiliations) into ``profile``.

    Publications are matched on ``orcid_work_id``: matches are refreshed, new
    works inserted, manually added publications left alone. All upstream calls
    complete before anything is written, so an ORCID failure changes nothing.
    """
    client = client_factory(user.orcid_access_token)
    try:
        works = await client.fetch_works(user.orcid_id)
        education: list[AffiliationSummary] = []
        employment: list[AffiliationSummary] = []
        if include_affiliations:
            education, employment = await _fetch_affiliations(client, user.orcid_id)
    except (OrcidClientError, httpx.HTTPError) as exc:
        structured_log(
            logger, "warning", "orcid_import.fetch_failed",
            user_id=int(user.id),
            profile_id=int(profile.id),
            error_type=type(exc).__name__,
        )
        raise OrcidImportError("ORCID is unavailable. Please try again later.") from exc

    created, updated = await _upsert_publications(db_session, profile=profile, works=works)
    education_added = 0
    positions_added = 0
    if include_affiliations:
        education_added = await _add_missing_affiliations(
            db_session, profile=profile, model=Education, summaries=education
        )
        positions_added = await _add_missing_affiliations(
            db_session, profile=profile, model=Position, summaries=employment
        )

    synced_at = utcnow()
    profile.orcid_id = user.orcid_id
    profile.last_orcid_sync = synced_at
    await db_session.commit()

    structured_log(
        logger, "info", "orcid_import.completed",
        user_id=int(user.id),
        profile_id=int(profile.id),
        created=created,
        updated=updated,
        education_added=education_added,
        positions_added=positions_added,
    )
    return OrcidImportResult(
        created=created,
        updated=updated,
        education_added=education_added,
        positions_added=positions_added,
        last_orcid_sync=synced_at,
    )
