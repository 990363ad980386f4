from __future__ import annotations

import re
import unicodedata

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.db.models import Profile

FALLBACK_USERNAME = "profile"
MAX_USERNAME_BASE_LENGTH = 100

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]+")
_REPEATED_HYPHEN_RE = re.compile(r"-{2,}")


def generate_base_username(first_name: str, last_name: str) -> str:
    """Build the URL slug ``first-last`` used as a profile's public address.

    Whitespace becomes a hyphen, accents fold to ASCII and anything outside
    ``[a-z0-9-]`` is dropped, so "José  María" / "O'Brien" gives
    ``jose-maria-obrien``.
    """
    raw = f"{(first_name or '').strip()}-{(last_name or '').strip()}".lower()
    folded = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    slug = _WHITESPACE_RE.sub("-", folded)
    slug = _DISALLOWED_RE.sub("", slug)
    slug = _REPEATED_HYPHEN_RE.sub("-", slug).strip("-")
    slug = slug[:MAX_USERNAME_BASE_LENGTH].rstrip("-")
    return slug or FALLBACK_USERNAME


async def username_taken(db_session: AsyncSession, username: str) -> bool:
    result = await db_session.execute(select(Profile.id).where(Profile.username == username))
    return result.scalar_one_or_none() is not None


async def allocate_username(db_session: AsyncSession, base: str) -> str:
    """Return ``base`` or the first free ``base-N`` (N = 1, 2, ...)."""
    candidate = base
    counter = 1
    while await username_taken(db_session, candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
