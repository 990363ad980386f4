from dataclasses import dataclass
import os

DEFAULT_SECURITY_PERMISSIONS_POLICY = (
    "accelerometer=(), autoplay=(), camera=(), display-capture=(), "
    "geolocation=(), gyroscope=(), microphone=(), payment=(), usb=()"
)
DEFAULT_SECURITY_CSP_POLICY = (
    "default-src 'self'; "
    "base-uri 'self'; "
    "form-action 'self'; "
    "frame-ancestors 'none'; "
    "img-src 'self' data: https:; "
    "script-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "font-src 'self' data:; "
    "connect-src 'self'; "
    "object-src 'none'"
)
DEFAULT_SECURITY_CSP_DOCS_POLICY = (
    "default-src 'self'; "
    "img-src 'self' data: https:; "
    "script-src 'self' 'unsafe-inline'; "
    "style-src 'self' 'unsafe-inline'; "
    "font-src 'self' data:; "
    "connect-src 'self' https:; "
    "object-src 'none'; "
    "frame-ancestors 'none'"
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip() or default


@dataclass(frozen=True)
class Settings:
    app_name: str = os.getenv("APP_NAME", "scholarflow")
    public_base_url: str = _env_str("PUBLIC_BASE_URL", "http://localhost:8000")
    database_url: str = os.getenv(
        "DATABASE_URL",
        "postgresql+asyncpg://scholarflow:scholarflow@db:5432/scholarflow",
    )
    database_pool_mode: str = _env_str("DATABASE_POOL_MODE", "auto")
    database_pool_size: int = _env_int("DATABASE_POOL_SIZE", 5)
    database_pool_max_overflow: int = _env_int("DATABASE_POOL_MAX_OVERFLOW", 10)
    database_pool_timeout_seconds: int = _env_int("DATABASE_POOL_TIMEOUT_SECONDS", 30)
    session_secret_key: str = os.getenv("SESSION_SECRET_KEY", "dev-insecure-session-key")
    session_cookie_secure: bool = _env_bool("SESSION_COOKIE_SECURE", False)
    security_headers_enabled: bool = _env_bool("SECURITY_HEADERS_ENABLED", True)
    security_x_content_type_options: str = _env_str("SECURITY_X_CONTENT_TYPE_OPTIONS", "nosniff")
    security_x_frame_options: str = _env_str("SECURITY_X_FRAME_OPTIONS", "DENY")
    security_referrer_policy: str = _env_str("SECURITY_REFERRER_POLICY", "strict-origin-when-cross-origin")
    security_permissions_policy: str = _env_str(
        "SECURITY_PERMISSIONS_POLICY",
        DEFAULT_SECURITY_PERMISSIONS_POLICY,
    )
    security_cross_origin_opener_policy: str = _env_str(
        "SECURITY_CROSS_ORIGIN_OPENER_POLICY",
        "same-origin",
    )
    security_cross_origin_resource_policy: str = _env_str(
        "SECURITY_CROSS_ORIGIN_RESOURCE_POLICY",
        "same-origin",
    )
    security_csp_enabled: bool = _env_bool("SECURITY_CSP_ENABLED", True)
    security_csp_policy: str = _env_str("SECURITY_CSP_POLICY", DEFAULT_SECURITY_CSP_POLICY)
    security_csp_docs_policy: str = _env_str("SECURITY_CSP_DOCS_POLICY", DEFAULT_SECURITY_CSP_DOCS_POLICY)
    security_csp_report_only: bool = _env_bool("SECURITY_CSP_REPORT_ONLY", False)
    security_strict_transport_security_enabled: bool = _env_bool(
        "SECURITY_STRICT_TRANSPORT_SECURITY_ENABLED",
        False,
    )
    security_strict_transport_security_max_age: int = _env_int(
        "SECURITY_STRICT_TRANSPORT_SECURITY_MAX_AGE",
        31_536_000,
    )
    security_strict_transport_security_include_subdomains: bool = _env_bool(
        "SECURITY_STRICT_TRANSPORT_SECURITY_INCLUDE_SUBDOMAINS",
        True,
    )
    security_strict_transport_security_preload: bool = _env_bool(
        "SECURITY_STRICT_TRANSPORT_SECURITY_PRELOAD",
        False,
    )
    log_level: str = _env_str("LOG_LEVEL", "INFO")
    log_format: str = _env_str("LOG_FORMAT", "console")
    log_requests: bool = _env_bool("LOG_REQUESTS", True)
    log_uvicorn_access: bool = _env_bool("LOG_UVICORN_ACCESS", False)
    log_request_skip_paths: str = _env_str("LOG_REQUEST_SKIP_PATHS", "/healthz")
    log_redact_fields: str = os.getenv("LOG_REDACT_FIELDS", "")
    orcid_client_id: str = _env_str("ORCID_CLIENT_ID", "")
    orcid_client_secret: str = _env_str("ORCID_CLIENT_SECRET", "")
    orcid_redirect_uri: str = _env_str(
        "ORCID_REDIRECT_URI",
        "http://localhost:8000/api/v1/auth/orcid/callback",
    )
    orcid_oauth_base_url: str = _env_str("ORCID_OAUTH_BASE_URL", "https://orcid.org")
    orcid_oauth_scope: str = _env_str("ORCID_OAUTH_SCOPE", "/authenticate /read-limited")
    orcid_api_base_url: str = _env_str("ORCID_API_BASE_URL", "https://pub.orcid.org/v3.0")
    orcid_timeout_seconds: float = _env_float("ORCID_TIMEOUT_SECONDS", 10.0)
    orcid_import_rate_limit_attempts: int = _env_int("ORCID_IMPORT_RATE_LIMIT_ATTEMPTS", 5)
    orcid_import_rate_limit_window_seconds: int = _env_int(
        "ORCID_IMPORT_RATE_LIMIT_WINDOW_SECONDS",
        300,
    )
    post_login_redirect_path: str = _env_str("POST_LOGIN_REDIRECT_PATH", "/profile/create")


settings = Settings()
