from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from scholarflow.api.schemas.common import ApiMeta
from scholarflow.api.schemas.sections import (
    AwardData,
    EducationData,
    GrantData,
    PositionData,
    PublicationData,
    PublicationInput,
    SocialLinkData,
    SocialLinkInput,
)
from scholarflow.api.schemas.templates import TemplateData
from scholarflow.db.models import ProfileTemplateId, ProfileVisibility


class ProfileData(BaseModel):
    id: int
    username: str
    first_name: str
    last_name: str
    display_name: str | None
    email: str | None
    bio: str
    profile_photo: str | None
    current_position: str | None
    current_institution: str | None
    current_department: str | None
    location: str | None
    orcid_id: str | None
    last_orcid_sync: datetime | None
    website: str | None
    template: ProfileTemplateId
    visibility: ProfileVisibility
    custom_domain: str | None
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None

    model_config = ConfigDict(extra="forbid")


class ProfileDetailData(ProfileData):
    publications: list[PublicationData]
    education: list[EducationData]
    positions: list[PositionData]
    awards: list[AwardData]
    grants: list[GrantData]
    social_links: list[SocialLinkData]


class CurrentProfileData(BaseModel):
    profile: ProfileDetailData | None

    model_config = ConfigDict(extra="forbid")


class CurrentProfileEnvelope(BaseModel):
    data: CurrentProfileData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class ProfileDetailEnvelope(BaseModel):
    data: ProfileDetailData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class ProfileEnvelope(BaseModel):
    data: ProfileData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class PublicProfileData(ProfileDetailData):
    template_descriptor: TemplateData


class PublicProfileEnvelope(BaseModel):
    data: PublicProfileData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class PublicProfileSummaryData(BaseModel):
    username: str
    first_name: str
    last_name: str
    display_name: str | None
    profile_photo: str | None
    current_position: str | None
    current_institution: str | None
    template: ProfileTemplateId
    published_at: datetime | None

    model_config = ConfigDict(extra="forbid")


class PublicProfilesListData(BaseModel):
    profiles: list[PublicProfileSummaryData]
    total: int
    limit: int
    offset: int

    model_config = ConfigDict(extra="forbid")


class PublicProfilesListEnvelope(BaseModel):
    data: PublicProfilesListData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    email: str | None = None
    bio: str | None = None
    profile_photo: str | None = None
    current_position: str | None = None
    current_institution: str | None = None
    current_department: str | None = None
    location: str | None = None
    website: str | None = None
    template: ProfileTemplateId | None = None
    visibility: ProfileVisibility | None = None
    custom_domain: str | None = None

    model_config = ConfigDict(extra="forbid")


class ProfileCreateRequest(ProfileUpdateRequest):
    first_name: str
    last_name: str
    orcid_id: str | None = None
    template: ProfileTemplateId = ProfileTemplateId.MINIMAL
    visibility: ProfileVisibility = ProfileVisibility.PUBLIC
    publications: list[PublicationInput] = Field(default_factory=list)
    social_links: list[SocialLinkInput] = Field(default_factory=list)
