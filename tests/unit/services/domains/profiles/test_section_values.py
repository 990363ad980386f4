from __future__ import annotations

import pytest

from scholarflow.db.models import GrantRole, GrantStatus, Publication, PublicationType
from scholarflow.services.domains.profiles.errors import ProfileServiceError
from scholarflow.services.domains.profiles.sections import (
    SECTIONS,
    award_values,
    education_values,
    get_section,
    grant_values,
    position_values,
    publication_values,
    social_link_values,
)


def test_sections_registry_covers_every_profile_collection() -> None:
    assert set(SECTIONS) == {"publications", "education", "positions", "awards", "grants", "social-links"}
    assert get_section("awards").name == "awards"

    with pytest.raises(ProfileServiceError, match="Unknown profile section"):
        get_section("hobbies")


def test_publication_values_normalize_and_default_type() -> None:
    values = publication_values(
        {
            "title": "  Notes  ",
            "authors": ["Ada Lovelace", " "],
            "journal": "",
            "year": 1843,
            "keywords": ["engines"],
        }
    )

    assert values["title"] == "Notes"
    assert values["authors"] == ["Ada Lovelace"]
    assert values["journal"] is None
    assert values["type"] is PublicationType.JOURNAL_ARTICLE
    assert values["keywords"] == ["engines"]
    assert values["orcid_work_id"] is None


def test_publication_values_reject_missing_title_and_bad_year() -> None:
    with pytest.raises(ProfileServiceError, match="Publication title is required."):
        publication_values({"title": " "})
    with pytest.raises(ProfileServiceError, match="Publication year"):
        publication_values({"title": "Notes", "year": 1700})


def test_publication_values_require_http_url() -> None:
    assert publication_values({"title": "Notes", "url": " https://example.org/notes "})["url"] == "https://example.org/notes"
    assert publication_values({"title": "Notes", "url": ""})["url"] is None

    with pytest.raises(ProfileServiceError, match="Publication URL"):
        publication_values({"title": "Notes", "url": "javascript:alert(1)"})
    with pytest.raises(ProfileServiceError, match="Publication URL"):
        publication_values({"title": "Notes", "url": "example.org/notes"})


def test_education_values_require_start_year_and_ordered_range() -> None:
    base = {"institution": "Cambridge", "degree": "BA", "field": "Maths"}

    values = education_values({**base, "start_year": 2000, "end_year": 2003, "description": " "})
    assert values["current"] is False
    assert values["description"] is None

    with pytest.raises(ProfileServiceError, match="Start year is required."):
        education_values(base)
    with pytest.raises(ProfileServiceError, match="End year cannot be before start year."):
        education_values({**base, "start_year": 2003, "end_year": 2000})


def test_position_values_keep_optional_department() -> None:
    values = position_values(
        {"title": "Fellow", "institution": "King's", "department": " Maths ", "start_year": 1935, "current": True}
    )

    assert values["department"] == "Maths"
    assert values["current"] is True
    assert values["end_year"] is None


def test_award_values_require_year() -> None:
    with pytest.raises(ProfileServiceError, match="Year is required."):
        award_values({"title": "OBE", "organization": "Crown"})

    assert award_values({"title": "OBE", "organization": "Crown", "year": 1946, "amount": ""})["amount"] is None


def test_grant_values_parse_role_and_default_status() -> None:
    values = grant_values({"title": "ACE", "agency": "NPL", "role": "Co-PI", "start_year": 1945})

    assert values["role"] is GrantRole.CO_PI
    assert values["status"] is GrantStatus.ACTIVE

    with pytest.raises(ProfileServiceError, match="Invalid grant role or status."):
        grant_values({"title": "ACE", "agency": "NPL", "role": "Boss", "start_year": 1945})


def test_social_link_values_require_http_url() -> None:
    values = social_link_values({"platform": "github", "url": " https://github.com/ada ", "display_name": "@ada"})
    assert values == {"platform": "github", "url": "https://github.com/ada", "display_name": "@ada"}

    with pytest.raises(ProfileServiceError, match="Social link URL is required."):
        social_link_values({"platform": "github", "url": ""})
    with pytest.raises(ProfileServiceError):
        social_link_values({"platform": "github", "url": "mailto:ada@example.org"})


def test_section_current_values_round_trip_into_builder() -> None:
    section = get_section("publications")
    item = Publication(
        profile_id=1,
        title="Notes",
        authors=["Ada Lovelace"],
        year=1843,
        type=PublicationType.BOOK,
        keywords=[],
    )

    merged = {**section.current_values(item), "title": "Notes, revised"}
    values = section.build_values(merged)

    assert values["title"] == "Notes, revised"
    assert values["type"] is PublicationType.BOOK
    assert values["year"] == 1843
