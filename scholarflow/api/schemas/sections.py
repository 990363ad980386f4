from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from scholarflow.api.schemas.common import ApiMeta
from scholarflow.db.models import GrantRole, GrantStatus, PublicationType


class PublicationData(BaseModel):
    id: int
    title: str
    authors: list[str]
    journal: str | None
    year: int | None
    doi: str | None
    url: str | None
    citation_count: int | None
    type: PublicationType
    abstract: str | None
    keywords: list[str]
    orcid_work_id: str | None

    model_config = ConfigDict(extra="forbid")


class EducationData(BaseModel):
    id: int
    institution: str
    degree: str
    field: str
    start_year: int
    end_year: int | None
    current: bool
    description: str | None

    model_config = ConfigDict(extra="forbid")


class PositionData(BaseModel):
    id: int
    title: str
    institution: str
    department: str | None
    start_year: int
    end_year: int | None
    current: bool
    description: str | None

    model_config = ConfigDict(extra="forbid")


class AwardData(BaseModel):
    id: int
    title: str
    organization: str
    year: int
    description: str | None
    amount: str | None

    model_config = ConfigDict(extra="forbid")


class GrantData(BaseModel):
    id: int
    title: str
    agency: str
    role: GrantRole
    start_year: int
    end_year: int | None
    amount: str | None
    status: GrantStatus
    description: str | None

    model_config = ConfigDict(extra="forbid")


class SocialLinkData(BaseModel):
    id: int
    platform: str
    url: str
    display_name: str | None

    model_config = ConfigDict(extra="forbid")


class PublicationInput(BaseModel):
    title: str
    authors: list[str] = Field(default_factory=list)
    journal: str | None = None
    year: int | None = None
    doi: str | None = None
    url: str | None = None
    citation_count: int | None = Field(default=None, ge=0)
    type: PublicationType = PublicationType.JOURNAL_ARTICLE
    abstract: str | None = None
    keywords: list[str] = Field(default_factory=list)
    orcid_work_id: str | None = None

    model_config = ConfigDict(extra="forbid")


class EducationInput(BaseModel):
    institution: str
    degree: str
    field: str
    start_year: int
    end_year: int | None = None
    current: bool = False
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class PositionInput(BaseModel):
    title: str
    institution: str
    department: str | None = None
    start_year: int
    end_year: int | None = None
    current: bool = False
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class AwardInput(BaseModel):
    title: str
    organization: str
    year: int
    description: str | None = None
    amount: str | None = None

    model_config = ConfigDict(extra="forbid")


class GrantInput(BaseModel):
    title: str
    agency: str
    role: GrantRole
    start_year: int
    end_year: int | None = None
    amount: str | None = None
    status: GrantStatus = GrantStatus.ACTIVE
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class SocialLinkInput(BaseModel):
    platform: str
    url: str
    display_name: str | None = None

    model_config = ConfigDict(extra="forbid")


# Update bodies are partial: only the fields present overwrite the stored item,
# and the merged result is revalidated by the service.
class PublicationUpdate(BaseModel):
    title: str | None = None
    authors: list[str] | None = None
    journal: str | None = None
    year: int | None = None
    doi: str | None = None
    url: str | None = None
    citation_count: int | None = Field(default=None, ge=0)
    type: PublicationType | None = None
    abstract: str | None = None
    keywords: list[str] | None = None
    orcid_work_id: str | None = None

    model_config = ConfigDict(extra="forbid")


class EducationUpdate(BaseModel):
    institution: str | None = None
    degree: str | None = None
    field: str | None = None
    start_year: int | None = None
    end_year: int | None = None
    current: bool | None = None
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class PositionUpdate(BaseModel):
    title: str | None = None
    institution: str | None = None
    department: str | None = None
    start_year: int | None = None
    end_year: int | None = None
    current: bool | None = None
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class AwardUpdate(BaseModel):
    title: str | None = None
    organization: str | None = None
    year: int | None = None
    description: str | None = None
    amount: str | None = None

    model_config = ConfigDict(extra="forbid")


class GrantUpdate(BaseModel):
    title: str | None = None
    agency: str | None = None
    role: GrantRole | None = None
    start_year: int | None = None
    end_year: int | None = None
    amount: str | None = None
    status: GrantStatus | None = None
    description: str | None = None

    model_config = ConfigDict(extra="forbid")


class SocialLinkUpdate(BaseModel):
    platform: str | None = None
    url: str | None = None
    display_name: str | None = None

    model_config = ConfigDict(extra="forbid")


class SectionItemEnvelope(BaseModel):
    data: PublicationData | EducationData | PositionData | AwardData | GrantData | SocialLinkData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
