from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.main import app
from tests.integration.helpers import create_profile, csrf_headers, sign_in_with_orcid


def _profile_for(orcid_id: str, **overrides) -> tuple[TestClient, dict]:
    client = TestClient(app)
    sign_in_with_orcid(client, orcid_id=orcid_id)
    return client, create_profile(client, **overrides)


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_public_profile_includes_ordered_sections_and_template(db_session: AsyncSession) -> None:
    client, profile = _profile_for(
        "0000-0002-1825-0097",
        template="research-focused",
        publications=[
            {"title": "Older", "year": 2001},
            {"title": "Undated"},
            {"title": "Newer", "year": 2019},
        ],
    )
    headers = csrf_headers(client)
    for start_year in (2005, 2015):
        response = client.post(
            "/api/v1/profile/education",
            json={
                "institution": f"University {start_year}",
                "degree": "PhD",
                "field": "Mathematics",
                "start_year": start_year,
            },
            headers=headers,
        )
        assert response.status_code == 201

    response = TestClient(app).get(f"/api/v1/public/profiles/{profile['username']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [item["title"] for item in data["publications"]] == ["Newer", "Older", "Undated"]
    assert [item["start_year"] for item in data["education"]] == [2015, 2005]
    descriptor = data["template_descriptor"]
    assert descriptor["id"] == "research-focused"
    assert descriptor["layout"] == "two-column"
    assert "grants" in descriptor["sections"]


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_public_profile_hides_private_profiles(db_session: AsyncSession) -> None:
    _, unlisted = _profile_for("0000-0002-1825-0097", visibility="unlisted")
    _, private = _profile_for("0000-0001-5109-3700", first_name="Grace", last_name="Hopper", visibility="private")
    anonymous = TestClient(app)

    assert anonymous.get(f"/api/v1/public/profiles/{unlisted['username']}").status_code == 200
    response = anonymous.get(f"/api/v1/public/profiles/{private['username']}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "profile_not_found"
    assert anonymous.get("/api/v1/public/profiles/nobody-here").status_code == 404


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_public_listing_shows_only_public_profiles_paginated(db_session: AsyncSession) -> None:
    _profile_for("0000-0002-1825-0097", first_name="Ada", last_name="Lovelace")
    _profile_for("0000-0001-5109-3700", first_name="Grace", last_name="Hopper")
    _profile_for("0000-0003-1415-9265", first_name="Alan", last_name="Turing", visibility="unlisted")
    _profile_for("0000-0002-7182-8182", first_name="Emmy", last_name="Noether", visibility="private")
    anonymous = TestClient(app)

    first_page = anonymous.get("/api/v1/public/profiles", params={"limit": 1}).json()["data"]
    assert first_page["total"] == 2
    assert first_page["limit"] == 1
    assert [item["username"] for item in first_page["profiles"]] == ["grace-hopper"]

    second_page = anonymous.get("/api/v1/public/profiles", params={"limit": 1, "offset": 1}).json()["data"]
    assert [item["username"] for item in second_page["profiles"]] == ["ada-lovelace"]
    assert "email" not in second_page["profiles"][0]


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_public_listing_validates_pagination(db_session: AsyncSession) -> None:
    anonymous = TestClient(app)

    assert anonymous.get("/api/v1/public/profiles", params={"limit": 0}).status_code == 422
    assert anonymous.get("/api/v1/public/profiles", params={"limit": 101}).status_code == 422
    assert anonymous.get("/api/v1/public/profiles", params={"offset": -1}).status_code == 422


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_templates_catalog_lists_all_layouts(db_session: AsyncSession) -> None:
    response = TestClient(app).get("/api/v1/templates")

    assert response.status_code == 200
    templates = response.json()["data"]["templates"]
    assert [item["id"] for item in templates] == [
        "minimal",
        "research-focused",
        "teaching-oriented",
        "industry-hybrid",
    ]
