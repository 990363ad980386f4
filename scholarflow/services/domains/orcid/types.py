from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from scholarflow.db.models import PublicationType
from scholarflow.services.domains.orcid.errors import OrcidPayloadError

DOI_RESOLVER_URL = "https://doi.org/"

ORCID_WORK_TYPE_MAPPING: dict[str, PublicationType] = {
    "journal-article": PublicationType.JOURNAL_ARTICLE,
    "book": PublicationType.BOOK,
    "book-chapter": PublicationType.BOOK_CHAPTER,
    "conference-paper": PublicationType.CONFERENCE_PAPER,
    "working-paper": PublicationType.PREPRINT,
    "preprint": PublicationType.PREPRINT,
    "report": PublicationType.OTHER,
    "manual": PublicationType.OTHER,
    "online-resource": PublicationType.OTHER,
}


def map_orcid_work_type(orcid_type: str | None) -> PublicationType:
    return ORCID_WORK_TYPE_MAPPING.get((orcid_type or "").strip().lower(), PublicationType.OTHER)


def _value(node: Any) -> str | None:
    # ORCID wraps most scalars as {"value": ...}.
    if not isinstance(node, Mapping):
        return None
    value = node.get("value")
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


def _year(date_node: Any) -> int | None:
    if not isinstance(date_node, Mapping):
        return None
    raw = _value(date_node.get("year"))
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _current_year() -> int:
    return datetime.now(timezone.utc).year


@dataclass(frozen=True)
class OrcidPublication:
    id: str
    title: str
    authors: list[str]
    journal: str | None
    year: int
    doi: str | None
    url: str | None
    type: PublicationType
    orcid_work_id: str

    @classmethod
    def from_work(cls, work: Mapping[str, Any]) -> OrcidPublication:
        put_code = work.get("put-code")
        if put_code is None:
            raise OrcidPayloadError("ORCID work is missing its put-code.")

        doi, url = _doi_and_url(work)
        if url is None:
            url = _value(work.get("url"))

        authors: list[str] = []
        contributors = (work.get("contributors") or {}).get("contributor") or []
        for contributor in contributors:
            credit_name = _value((contributor or {}).get("credit-name"))
            if credit_name:
                authors.append(credit_name)

        year = _year(work.get("publication-date"))
        return cls(
            id=f"orcid-{put_code}",
            title=_value((work.get("title") or {}).get("title")) or "Untitled",
            authors=authors,
            journal=_value(work.get("journal-title")),
            year=year if year is not None else _current_year(),
            doi=doi,
            url=url,
            type=map_orcid_work_type(work.get("type")),
            orcid_work_id=str(put_code),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "authors": list(self.authors),
            "journal": self.journal,
            "year": self.year,
            "doi": self.doi,
            "url": self.url,
            "type": self.type.value,
            "orcid_work_id": self.orcid_work_id,
        }


def _doi_and_url(work: Mapping[str, Any]) -> tuple[str | None, str | None]:
    external_ids = (work.get("external-ids") or {}).get("external-id") or []
    for external_id in external_ids:
        if not isinstance(external_id, Mapping):
            continue
        if external_id.get("external-id-type") != "doi":
            continue
        doi = str(external_id.get("external-id-value") or "").strip() or None
        if doi is None:
            continue
        url = _value(external_id.get("external-id-url")) or f"{DOI_RESOLVER_URL}{doi}"
        return doi, url
    return None, None


@dataclass(frozen=True)
class AffiliationSummary:
    """Shared fields of ORCID education and employment summaries."""

    organization: str
    role_title: str | None
    department: str | None
    start_year: int
    end_year: int | None
    put_code: str | None = None
    raw_data: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_summary(cls, summary: Mapping[str, Any]) -> AffiliationSummary | None:
        organization = str(((summary.get("organization") or {}).get("name")) or "").strip()
        start_year = _year(summary.get("start-date"))
        if not organization or start_year is None:
            return None
        end_year = _year(summary.get("end-date"))
        if end_year is not None and end_year < start_year:
            end_year = None
        put_code = summary.get("put-code")
        return cls(
            organization=organization,
            role_title=(str(summary.get("role-title") or "").strip() or None),
            department=(str(summary.get("department-name") or "").strip() or None),
            start_year=start_year,
            end_year=end_year,
            put_code=str(put_code) if put_code is not None else None,
            raw_data=dict(summary),
        )

    @property
    def current(self) -> bool:
        return self.end_year is None

    def as_education(self) -> dict[str, Any]:
        return {
            "institution": self.organization,
            "degree": self.role_title or "",
            "field": self.department or "",
            "start_year": self.start_year,
            "end_year": self.end_year,
            "current": self.current,
            "description": None,
        }

    def as_position(self) -> dict[str, Any]:
        return {
            "title": self.role_title or "",
            "institution": self.organization,
            "department": self.department,
            "start_year": self.start_year,
            "end_year": self.end_year,
            "current": self.current,
            "description": None,
        }


def affiliation_summaries(payload: Mapping[str, Any], *, kind: str) -> list[Mapping[str, Any]]:
    """Collect ``<kind>-summary`` objects from either ORCID response shape.

    Older payloads list summaries under ``<kind>-summary``; v3.0 nests them in
    ``affiliation-group[].summaries[].<kind>-summary``.
    """
    summary_key = f"{kind}-summary"
    flat = payload.get(summary_key)
    if isinstance(flat, list):
        return [item for item in flat if isinstance(item, Mapping)]

    summaries: list[Mapping[str, Any]] = []
    for group in payload.get("affiliation-group") or []:
        for entry in (group or {}).get("summaries") or []:
            summary = (entry or {}).get(summary_key)
            if isinstance(summary, Mapping):
                summaries.append(summary)
    return summaries


def transform_work(work: Mapping[str, Any]) -> OrcidPublication:
    return OrcidPublication.from_work(work)


def education_from_summary(summary: Mapping[str, Any]) -> dict[str, Any] | None:
    affiliation = AffiliationSummary.from_summary(summary)
    return affiliation.as_education() if affiliation is not None else None


def position_from_summary(summary: Mapping[str, Any]) -> dict[str, Any] | None:
    affiliation = AffiliationSummary.from_summary(summary)
    return affiliation.as_position() if affiliation is not None else None
