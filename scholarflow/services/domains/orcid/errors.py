from __future__ import annotations


class OrcidClientError(Exception):
    """ORCID request could not be completed."""


class OrcidApiError(OrcidClientError):
    """ORCID answered with a non-success status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"ORCID API error: {status_code}")
        self.status_code = status_code


class OrcidResponseError(OrcidClientError):
    """ORCID answered with a body that is not JSON."""


class OrcidPayloadError(ValueError):
    """ORCID payload is missing a field the mapping depends on."""
