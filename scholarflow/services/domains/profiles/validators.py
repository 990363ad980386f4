from __future__ import annotations

from urllib.parse import urlparse

from scholarflow.services.domains.profiles.errors import ProfileServiceError

ALLOWED_URL_SCHEMES = {"http", "https"}


def normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def validate_required_text(value: str | None, *, label: str) -> str:
    normalized = normalize_optional_text(value)
    if normalized is None:
        raise ProfileServiceError(f"{label} is required.")
    return normalized


def validate_optional_url(value: str | None, *, label: str) -> str | None:
    normalized = normalize_optional_text(value)
    if normalized is None:
        return None
    parsed = urlparse(normalized)
    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES or not parsed.netloc:
        raise ProfileServiceError(f"{label} must be an absolute http(s) URL.")
    return normalized


def validate_year_range(start_year: int | None, end_year: int | None) -> None:
    if start_year is None or end_year is None:
        return
    if end_year < start_year:
        raise ProfileServiceError("End year cannot be before start year.")


def normalize_string_list(values: list[str] | None) -> list[str]:
    return [item.strip() for item in values or [] if item and item.strip()]


MIN_YEAR = 1900
MAX_YEAR = 2100


def validate_year(value: int | None, *, label: str, required: bool = False) -> int | None:
    if value is None:
        if required:
            raise ProfileServiceError(f"{label} is required.")
        return None
    year = int(value)
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ProfileServiceError(f"{label} must be between {MIN_YEAR} and {MAX_YEAR}.")
    return year
