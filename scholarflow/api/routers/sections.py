# Route signatures are built per section at import time, so annotations must
# stay evaluated (no ``from __future__ import annotations`` here).
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from scholarflow.api.deps import get_api_current_user
from scholarflow.api.responses import success_payload
from scholarflow.api.routers.profile_helpers import (
    raise_profile_service_error,
    require_current_profile,
)
from scholarflow.api.routers.profile_serializers import serialize_section_item
from scholarflow.api.schemas.common import MessageEnvelope
from scholarflow.api.schemas.sections import (
    AwardInput,
    AwardUpdate,
    EducationInput,
    EducationUpdate,
    GrantInput,
    GrantUpdate,
    PositionInput,
    PositionUpdate,
    PublicationInput,
    PublicationUpdate,
    SectionItemEnvelope,
    SocialLinkInput,
    SocialLinkUpdate,
)
from scholarflow.db.models import User
from scholarflow.db.session import get_db_session
from scholarflow.services.domains.profiles import sections as section_service
from scholarflow.services.domains.profiles.errors import ProfileServiceError

router = APIRouter(prefix="/profile", tags=["api-profile-sections"])

SECTION_SCHEMAS: dict[str, tuple[type[BaseModel], type[BaseModel]]] = {
    "publications": (PublicationInput, PublicationUpdate),
    "education": (EducationInput, EducationUpdate),
    "positions": (PositionInput, PositionUpdate),
    "awards": (AwardInput, AwardUpdate),
    "grants": (GrantInput, GrantUpdate),
    "social-links": (SocialLinkInput, SocialLinkUpdate),
}


def _register_section_routes(
    section_name: str,
    input_model: type[BaseModel],
    update_model: type[BaseModel],
) -> None:
    route_suffix = section_name.replace("-", "_")

    async def add_item(
        payload: input_model,
        request: Request,
        current_user: User = Depends(get_api_current_user),
        db_session: AsyncSession = Depends(get_db_session),
    ):
        profile = await require_current_profile(db_session, user=current_user)
        try:
            item = await section_service.add_section_item(
                db_session,
                profile=profile,
                section_name=section_name,
                values=payload.model_dump(mode="json"),
            )
        except ProfileServiceError as exc:
            raise_profile_service_error(exc)
        return success_payload(request, data=serialize_section_item(item))

    async def update_item(
        item_id: int,
        payload: update_model,
        request: Request,
        current_user: User = Depends(get_api_current_user),
        db_session: AsyncSession = Depends(get_db_session),
    ):
        profile = await require_current_profile(db_session, user=current_user)
        try:
            item = await section_service.update_section_item(
                db_session,
                profile=profile,
                section_name=section_name,
                item_id=item_id,
                values=payload.model_dump(mode="json", exclude_unset=True),
            )
        except ProfileServiceError as exc:
            raise_profile_service_error(exc)
        return success_payload(request, data=serialize_section_item(item))

    async def delete_item(
        item_id: int,
        request: Request,
        current_user: User = Depends(get_api_current_user),
        db_session: AsyncSession = Depends(get_db_session),
    ):
        profile = await require_current_profile(db_session, user=current_user)
        try:
            await section_service.delete_section_item(
                db_session,
                profile=profile,
                section_name=section_name,
                item_id=item_id,
            )
        except ProfileServiceError as exc:
            raise_profile_service_error(exc)
        return success_payload(request, data={"message": "Item deleted."})

    router.add_api_route(
        f"/{section_name}",
        add_item,
        methods=["POST"],
        status_code=201,
        response_model=SectionItemEnvelope,
        name=f"add_{route_suffix}_item",
    )
    router.add_api_route(
        f"/{section_name}/{{item_id}}",
        update_item,
        methods=["PUT"],
        response_model=SectionItemEnvelope,
        name=f"update_{route_suffix}_item",
    )
    router.add_api_route(
        f"/{section_name}/{{item_id}}",
        delete_item,
        methods=["DELETE"],
        response_model=MessageEnvelope,
        name=f"delete_{route_suffix}_item",
    )


for _section_name, (_input_model, _update_model) in SECTION_SCHEMAS.items():
    _register_section_routes(_section_name, _input_model, _update_model)
