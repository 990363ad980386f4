from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, HTTPException
from starlette.middleware.sessions import SessionMiddleware

from scholarflow.api.errors import register_api_exception_handlers
from scholarflow.api.router import router as api_router
from scholarflow.db.session import check_database
from scholarflow.db.session import close_engine
from scholarflow.http.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    parse_skip_paths,
)
from scholarflow.logging_config import configure_logging, parse_redact_fields
from scholarflow.logging_utils import structured_log
from scholarflow.security.csrf import CSRFMiddleware
from scholarflow.settings import settings

logger = logging.getLogger(__name__)

PUBLIC_PATH_PREFIXES = ("/api/v1/public/", "/api/v1/templates")

configure_logging(
    level=settings.log_level,
    log_format=settings.log_format,
    redact_fields=parse_redact_fields(settings.log_redact_fields),
    include_uvicorn_access=settings.log_uvicorn_access,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    structured_log(
        logger, "info", "app.startup",
        log_format=settings.log_format,
        orcid_sign_in_configured=bool(settings.orcid_client_id and settings.orcid_client_secret),
        public_base_url=settings.public_base_url,
    )
    yield
    await close_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
register_api_exception_handlers(app)
app.add_middleware(CSRFMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    same_site="lax",
    https_only=settings.session_cookie_secure,
)
app.add_middleware(
    RequestLoggingMiddleware,
    log_requests=settings.log_requests,
    skip_paths=parse_skip_paths(settings.log_request_skip_paths),
)
app.add_middleware(
    SecurityHeadersMiddleware,
    enabled=settings.security_headers_enabled,
    x_content_type_options=settings.security_x_content_type_options,
    x_frame_options=settings.security_x_frame_options,
    referrer_policy=settings.security_referrer_policy,
    permissions_policy=settings.security_permissions_policy,
    cross_origin_opener_policy=settings.security_cross_origin_opener_policy,
    cross_origin_resource_policy=settings.security_cross_origin_resource_policy,
    content_security_policy_enabled=settings.security_csp_enabled,
    content_security_policy=settings.security_csp_policy,
    content_security_policy_docs=settings.security_csp_docs_policy,
    content_security_policy_report_only=settings.security_csp_report_only,
    strict_transport_security_enabled=settings.security_strict_transport_security_enabled,
    strict_transport_security_max_age=settings.security_strict_transport_security_max_age,
    strict_transport_security_include_subdomains=(
        settings.security_strict_transport_security_include_subdomains
    ),
    strict_transport_security_preload=settings.security_strict_transport_security_preload,
    public_path_prefixes=PUBLIC_PATH_PREFIXES,
)
app.include_router(api_router)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    if await check_database():
        return {"status": "ok"}
    raise HTTPException(status_code=500, detail="database unavailable")
