from __future__ import annotations

from secrets import token_urlsafe
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from scholarflow.logging_context import set_request_id, set_session_user_id
from scholarflow.logging_utils import structured_log
from scholarflow.settings import (
    DEFAULT_SECURITY_CSP_DOCS_POLICY,
    DEFAULT_SECURITY_CSP_POLICY,
    DEFAULT_SECURITY_PERMISSIONS_POLICY,
)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_INCOMING_REQUEST_ID_LENGTH = 128

logger = logging.getLogger(__name__)


def _incoming_request_id(request: Request) -> str | None:
    value = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if not value or len(value) > MAX_INCOMING_REQUEST_ID_LENGTH:
        return None
    return value


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        log_requests: bool = True,
        skip_paths: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self._log_requests = log_requests
        self._skip_paths = tuple(path for path in skip_paths if path)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _incoming_request_id(request) or token_urlsafe(12)
        request.state.request_id = request_id
        set_request_id(request_id)

        start = time.perf_counter()
        should_log = self._log_requests and not self._is_skipped_path(request.url.path)
        if should_log:
            structured_log(
                logger, "debug", "request.started",
                method=request.method,
                path=request.url.path,
            )

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception(
                "request.failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": duration_ms,
                },
            )
            raise
        else:
            duration_ms = int((time.perf_counter() - start) * 1000)
            response.headers[REQUEST_ID_HEADER] = request_id
            if should_log:
                structured_log(
                    logger, "info", "request.completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                )
            return response
        finally:
            set_request_id(None)
            set_session_user_id(None)

    def _is_skipped_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._skip_paths)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        *,
        enabled: bool = True,
        x_content_type_options: str = "nosniff",
        x_frame_options: str = "DENY",
        referrer_policy: str = "strict-origin-when-cross-origin",
        permissions_policy: str = DEFAULT_SECURITY_PERMISSIONS_POLICY,
        cross_origin_opener_policy: str = "same-origin",
        cross_origin_resource_policy: str = "same-origin",
        content_security_policy_enabled: bool = True,
        content_security_policy: str = DEFAULT_SECURITY_CSP_POLICY,
        content_security_policy_docs: str = DEFAULT_SECURITY_CSP_DOCS_POLICY,
        content_security_policy_report_only: bool = False,
        strict_transport_security_enabled: bool = False,
        strict_transport_security_max_age: int = 31_536_000,
        strict_transport_security_include_subdomains: bool = True,
        strict_transport_security_preload: bool = False,
        public_path_prefixes: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self._enabled = enabled
        self._public_path_prefixes = tuple(prefix for prefix in public_path_prefixes if prefix)
        self._static_headers = {
            "X-Content-Type-Options": x_content_type_options.strip(),
            "X-Frame-Options": x_frame_options.strip(),
            "Referrer-Policy": referrer_policy.strip(),
            "Permissions-Policy": permissions_policy.strip(),
            "Cross-Origin-Opener-Policy": cross_origin_opener_policy.strip(),
            "Cross-Origin-Resource-Policy": cross_origin_resource_policy.strip(),
        }
        self._csp_enabled = content_security_policy_enabled
        self._csp_policy = content_security_policy.strip()
        self._csp_docs_policy = content_security_policy_docs.strip()
        self._csp_header = (
            "Content-Security-Policy-Report-Only"
            if content_security_policy_report_only
            else "Content-Security-Policy"
        )
        self._hsts_value = _strict_transport_security_value(
            enabled=strict_transport_security_enabled,
            max_age=strict_transport_security_max_age,
            include_subdomains=strict_transport_security_include_subdomains,
            preload=strict_transport_security_preload,
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        if not self._enabled:
            return response

        path = request.url.path
        if self._is_public_path(path):
            # Public profile data is read from other origins, custom domains included.
            response.headers.setdefault("Cross-Origin-Resource-Policy", "cross-origin")
        elif path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")

        for header_name, header_value in self._static_headers.items():
            if header_value:
                response.headers.setdefault(header_name, header_value)

        csp_policy = self._csp_policy_for_path(path)
        if self._csp_enabled and csp_policy:
            response.headers.setdefault(self._csp_header, csp_policy)

        if self._hsts_value:
            response.headers.setdefault("Strict-Transport-Security", self._hsts_value)

        return response

    def _is_public_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._public_path_prefixes)

    def _csp_policy_for_path(self, path: str) -> str:
        if path.startswith("/docs") or path.startswith("/redoc"):
            return self._csp_docs_policy or self._csp_policy
        return self._csp_policy


def _strict_transport_security_value(
    *,
    enabled: bool,
    max_age: int,
    include_subdomains: bool,
    preload: bool,
) -> str:
    if not enabled:
        return ""
    directives = [f"max-age={max(0, max_age)}"]
    if include_subdomains:
        directives.append("includeSubDomains")
    if preload:
        directives.append("preload")
    return "; ".join(directives)


def parse_skip_paths(raw_value: str) -> tuple[str, ...]:
    parts = [part.strip() for part in raw_value.split(",")]
    return tuple(part for part in parts if part)
