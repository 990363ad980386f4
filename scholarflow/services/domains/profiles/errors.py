from __future__ import annotations


class ProfileServiceError(ValueError):
    """Raised for expected profile validation failures."""


class ProfileNotFoundError(ProfileServiceError):
    """The profile (or a profile-owned item) does not exist for this caller."""


class ProfileExistsError(ProfileServiceError):
    """The user already owns a profile."""


class ProfileAccessDeniedError(ProfileServiceError):
    """The caller does not own the profile."""


class SectionItemNotFoundError(ProfileServiceError):
    """The section item does not exist on the caller's profile."""
