from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.testclient import TestClient

from scholarflow.api.errors import ApiException, register_api_exception_handlers
from scholarflow.api.responses import success_payload
from scholarflow.http.middleware import RequestLoggingMiddleware


def _errors_app() -> FastAPI:
    test_app = FastAPI()
    register_api_exception_handlers(test_app)
    test_app.add_middleware(RequestLoggingMiddleware, log_requests=False)

    @test_app.get("/api/v1/ok")
    async def ok(request: Request) -> dict:
        return success_payload(request, data={"value": 1})

    @test_app.get("/api/v1/limited")
    async def limited() -> None:
        raise ApiException(
            status_code=429,
            code="rate_limited",
            message="Too many ORCID imports.",
            details={"retry_after_seconds": 30},
            headers={"Retry-After": "30"},
        )

    @test_app.get("/api/v1/missing")
    async def missing() -> None:
        raise HTTPException(status_code=404, detail="nothing here")

    @test_app.get("/api/v1/paged")
    async def paged(limit: int = Query(ge=1, le=100)) -> dict:
        return {"limit": limit}

    @test_app.get("/api/v1/boom")
    async def boom() -> None:
        raise RuntimeError("unexpected")

    @test_app.get("/plain")
    async def plain() -> None:
        raise HTTPException(status_code=404, detail="plain miss")

    return test_app


def test_success_payload_carries_request_id() -> None:
    client = TestClient(_errors_app())

    response = client.get("/api/v1/ok", headers={"X-Request-ID": "rid-1"})

    assert response.json() == {"data": {"value": 1}, "meta": {"request_id": "rid-1"}}


def test_api_exception_renders_envelope_and_headers() -> None:
    client = TestClient(_errors_app())

    response = client.get("/api/v1/limited")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    error = response.json()["error"]
    assert error == {
        "code": "rate_limited",
        "message": "Too many ORCID imports.",
        "details": {"retry_after_seconds": 30},
    }


def test_http_exception_maps_status_to_error_code() -> None:
    client = TestClient(_errors_app())

    response = client.get("/api/v1/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"
    assert response.json()["error"]["message"] == "nothing here"


def test_validation_errors_use_validation_error_code() -> None:
    client = TestClient(_errors_app())

    response = client.get("/api/v1/paged", params={"limit": 0})

    assert response.status_code == 422
    payload = response.json()
    assert payload["error"]["code"] == "validation_error"
    assert payload["error"]["details"]


def test_unexpected_exception_returns_internal_error() -> None:
    client = TestClient(_errors_app(), raise_server_exceptions=False)

    response = client.get("/api/v1/boom")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "internal_error"
    assert "unexpected" not in response.text


def test_non_api_paths_keep_default_error_shape() -> None:
    client = TestClient(_errors_app())

    response = client.get("/plain")

    assert response.status_code == 404
    assert response.json() == {"detail": "plain miss"}
