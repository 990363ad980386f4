from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.main import app
from tests.integration.helpers import create_profile, csrf_headers, sign_in_with_orcid

SECTION_PAYLOADS = {
    "publications": {"title": "On Computable Numbers", "year": 1936, "type": "journal-article"},
    "education": {"institution": "Cambridge", "degree": "BA", "field": "Mathematics", "start_year": 1931, "end_year": 1934},
    "positions": {"title": "Fellow", "institution": "King's College", "start_year": 1935, "current": False},
    "awards": {"title": "OBE", "organization": "Crown", "year": 1946},
    "grants": {"title": "ACE", "agency": "NPL", "role": "PI", "start_year": 1945, "status": "Completed"},
    "social-links": {"platform": "website", "url": "https://turing.example.org"},
}


def _client_with_profile(orcid_id: str = "0000-0003-1415-9265") -> TestClient:
    client = TestClient(app)
    sign_in_with_orcid(client, orcid_id=orcid_id)
    create_profile(client, first_name="Alan", last_name="Turing")
    return client


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
@pytest.mark.parametrize("section", sorted(SECTION_PAYLOADS))
async def test_section_item_lifecycle(db_session: AsyncSession, section: str) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)

    created = client.post(f"/api/v1/profile/{section}", json=SECTION_PAYLOADS[section], headers=headers)
    assert created.status_code == 201, created.text
    item = created.json()["data"]
    assert isinstance(item["id"], int)

    collection_key = section.replace("-", "_")
    profile = client.get("/api/v1/profile").json()["data"]["profile"]
    assert [entry["id"] for entry in profile[collection_key]] == [item["id"]]

    deleted = client.delete(f"/api/v1/profile/{section}/{item['id']}", headers=headers)
    assert deleted.status_code == 200
    profile = client.get("/api/v1/profile").json()["data"]["profile"]
    assert profile[collection_key] == []


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_section_update_overwrites_supplied_fields(db_session: AsyncSession) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)
    item = client.post("/api/v1/profile/positions", json=SECTION_PAYLOADS["positions"], headers=headers).json()["data"]

    response = client.put(
        f"/api/v1/profile/positions/{item['id']}",
        json={
            "title": "Reader",
            "institution": "Manchester",
            "start_year": 1948,
            "current": True,
        },
        headers=headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["id"] == item["id"]
    assert updated["title"] == "Reader"
    assert updated["institution"] == "Manchester"
    assert updated["current"] is True


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("section", "changes"),
    [
        ("positions", {"end_year": 1950}),
        ("awards", {"amount": "$5"}),
        ("social-links", {"display_name": "me"}),
    ],
)
async def test_section_update_accepts_partial_body(
    db_session: AsyncSession,
    section: str,
    changes: dict,
) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)
    item = client.post(f"/api/v1/profile/{section}", json=SECTION_PAYLOADS[section], headers=headers).json()["data"]

    response = client.put(f"/api/v1/profile/{section}/{item['id']}", json=changes, headers=headers)

    assert response.status_code == 200, response.text
    assert response.json()["data"] == {**item, **changes}


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_section_partial_update_is_revalidated_against_stored_values(
    db_session: AsyncSession,
) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)
    item = client.post("/api/v1/profile/positions", json=SECTION_PAYLOADS["positions"], headers=headers).json()["data"]

    inverted = client.put(f"/api/v1/profile/positions/{item['id']}", json={"end_year": 1930}, headers=headers)
    cleared = client.put(f"/api/v1/profile/positions/{item['id']}", json={"title": None}, headers=headers)
    unknown = client.put(f"/api/v1/profile/positions/{item['id']}", json={"salary": 1}, headers=headers)

    assert inverted.status_code == 400
    assert inverted.json()["error"]["code"] == "invalid_profile"
    assert cleared.status_code == 400
    assert unknown.status_code == 422
    assert unknown.json()["error"]["code"] == "validation_error"


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_duplicate_orcid_work_id_is_rejected(db_session: AsyncSession) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)
    first = client.post(
        "/api/v1/profile/publications",
        json={**SECTION_PAYLOADS["publications"], "orcid_work_id": "11"},
        headers=headers,
    )
    other = client.post(
        "/api/v1/profile/publications",
        json={"title": "Computing Machinery and Intelligence", "orcid_work_id": "12"},
        headers=headers,
    ).json()["data"]

    duplicate = client.post(
        "/api/v1/profile/publications",
        json={"title": "Copy", "orcid_work_id": "11"},
        headers=headers,
    )
    renumbered = client.put(
        f"/api/v1/profile/publications/{other['id']}",
        json={"orcid_work_id": "11"},
        headers=headers,
    )

    assert first.status_code == 201
    assert duplicate.status_code == 400
    assert duplicate.json()["error"]["code"] == "invalid_profile"
    assert renumbered.status_code == 400
    assert renumbered.json()["error"]["code"] == "invalid_profile"
    publications = client.get("/api/v1/profile").json()["data"]["profile"]["publications"]
    assert sorted(entry["orcid_work_id"] for entry in publications) == ["11", "12"]


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_section_rejects_inverted_year_range(db_session: AsyncSession) -> None:
    client = _client_with_profile()
    headers = csrf_headers(client)

    response = client.post(
        "/api/v1/profile/education",
        json={**SECTION_PAYLOADS["education"], "start_year": 1934, "end_year": 1931},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_profile"

    out_of_range = client.post(
        "/api/v1/profile/awards",
        json={**SECTION_PAYLOADS["awards"], "year": 1850},
        headers=headers,
    )
    assert out_of_range.status_code == 400


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_section_items_are_scoped_to_owner(db_session: AsyncSession) -> None:
    owner = _client_with_profile("0000-0003-1415-9265")
    item = owner.post(
        "/api/v1/profile/awards",
        json=SECTION_PAYLOADS["awards"],
        headers=csrf_headers(owner),
    ).json()["data"]
    intruder = _client_with_profile("0000-0002-1825-0097")
    headers = csrf_headers(intruder)

    update = intruder.put(f"/api/v1/profile/awards/{item['id']}", json=SECTION_PAYLOADS["awards"], headers=headers)
    delete = intruder.delete(f"/api/v1/profile/awards/{item['id']}", headers=headers)

    assert update.status_code == 404
    assert update.json()["error"]["code"] == "item_not_found"
    assert delete.status_code == 404
    result = await db_session.execute(text("SELECT count(*) FROM awards"))
    assert result.scalar_one() == 1


@pytest.mark.integration
@pytest.mark.db
@pytest.mark.asyncio
async def test_section_without_profile_returns_profile_not_found(db_session: AsyncSession) -> None:
    client = TestClient(app)
    sign_in_with_orcid(client, orcid_id="0000-0003-1415-9265")

    response = client.post(
        "/api/v1/profile/awards",
        json=SECTION_PAYLOADS["awards"],
        headers=csrf_headers(client),
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "profile_not_found"
