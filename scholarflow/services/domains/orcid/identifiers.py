from __future__ import annotations

import re

ORCID_ID_PATTERN = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$")


def is_valid_orcid_id(value: str) -> bool:
    return bool(ORCID_ID_PATTERN.fullmatch(value or ""))


def format_orcid_id(value: str) -> str:
    """Re-hyphenate a 16 character ORCID iD; anything else is returned untouched."""
    cleaned = (value or "").replace("-", "")
    if len(cleaned) == 16:
        return f"{cleaned[0:4]}-{cleaned[4:8]}-{cleaned[8:12]}-{cleaned[12:16]}"
    return value
