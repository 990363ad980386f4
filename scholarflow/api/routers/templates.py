from __future__ import annotations

from fastapi import APIRouter, Request

from scholarflow.api.responses import success_payload
from scholarflow.api.schemas.templates import TemplatesListEnvelope
from scholarflow.services.domains.templates import catalog as template_catalog

router = APIRouter(prefix="/templates", tags=["api-templates"])


@router.get(
    "",
    response_model=TemplatesListEnvelope,
)
async def list_templates(request: Request):
    return success_payload(
        request,
        data={"templates": [template.as_dict() for template in template_catalog.list_templates()]},
    )
