from __future__ import annotations

from functools import lru_cache

from scholarflow.auth.rate_limit import SlidingWindowRateLimiter
from scholarflow.services.domains.orcid.oauth import OrcidOAuthClient
from scholarflow.settings import settings


@lru_cache
def get_orcid_oauth_client() -> OrcidOAuthClient:
    return OrcidOAuthClient()


@lru_cache
def get_orcid_import_rate_limiter() -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        max_attempts=settings.orcid_import_rate_limit_attempts,
        window_seconds=settings.orcid_import_rate_limit_window_seconds,
    )
