from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from scholarflow.api.schemas.common import ApiMeta


class TemplateData(BaseModel):
    id: str
    name: str
    description: str
    preview: str
    sections: list[str]
    color_scheme: str
    layout: str

    model_config = ConfigDict(extra="forbid")


class TemplatesListData(BaseModel):
    templates: list[TemplateData]

    model_config = ConfigDict(extra="forbid")


class TemplatesListEnvelope(BaseModel):
    data: TemplatesListData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
