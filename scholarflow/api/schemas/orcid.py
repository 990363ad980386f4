from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from scholarflow.api.schemas.common import ApiMeta
from scholarflow.db.models import PublicationType


class OrcidWorkData(BaseModel):
    id: str
    title: str
    authors: list[str]
    journal: str | None
    year: int
    doi: str | None
    url: str | None
    type: PublicationType
    orcid_work_id: str

    model_config = ConfigDict(extra="forbid")


class OrcidWorksData(BaseModel):
    orcid_id: str
    works: list[OrcidWorkData]

    model_config = ConfigDict(extra="forbid")


class OrcidWorksEnvelope(BaseModel):
    data: OrcidWorksData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class OrcidImportRequest(BaseModel):
    include_affiliations: bool = False

    model_config = ConfigDict(extra="forbid")


class OrcidImportData(BaseModel):
    created: int
    updated: int
    education_added: int
    positions_added: int
    last_orcid_sync: datetime

    model_config = ConfigDict(extra="forbid")


class OrcidImportEnvelope(BaseModel):
    data: OrcidImportData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
