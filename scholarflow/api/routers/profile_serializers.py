from __future__ import annotations

from typing import Any

from scholarflow.db.models import Award, Education, Grant, Position, Profile, Publication, SocialLink
from scholarflow.services.domains.profiles.application import ProfileBundle
from scholarflow.services.domains.templates import catalog as template_catalog

PROFILE_FIELDS = (
    "username",
    "first_name",
    "last_name",
    "display_name",
    "email",
    "bio",
    "profile_photo",
    "current_position",
    "current_institution",
    "current_department",
    "location",
    "orcid_id",
    "last_orcid_sync",
    "website",
    "custom_domain",
    "created_at",
    "updated_at",
    "published_at",
)
PUBLIC_SUMMARY_FIELDS = (
    "username",
    "first_name",
    "last_name",
    "display_name",
    "profile_photo",
    "current_position",
    "current_institution",
    "published_at",
)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _item_payload(item: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": int(item.id)}
    for column in item.__table__.columns:
        if column.key in {"id", "profile_id", "created_at", "updated_at"}:
            continue
        payload[column.key] = _enum_value(getattr(item, column.key))
    return payload


def serialize_publication(item: Publication) -> dict[str, Any]:
    payload = _item_payload(item)
    payload["authors"] = list(item.authors or [])
    payload["keywords"] = list(item.keywords or [])
    return payload


def serialize_section_item(item: Education | Position | Award | Grant | SocialLink | Publication) -> dict[str, Any]:
    if isinstance(item, Publication):
        return serialize_publication(item)
    return _item_payload(item)


def serialize_profile(profile: Profile) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": int(profile.id)}
    for key in PROFILE_FIELDS:
        payload[key] = getattr(profile, key)
    payload["template"] = _enum_value(profile.template)
    payload["visibility"] = _enum_value(profile.visibility)
    return payload


def serialize_profile_bundle(bundle: ProfileBundle) -> dict[str, Any]:
    payload = serialize_profile(bundle.profile)
    payload["publications"] = [serialize_publication(item) for item in bundle.publications]
    payload["education"] = [_item_payload(item) for item in bundle.education]
    payload["positions"] = [_item_payload(item) for item in bundle.positions]
    payload["awards"] = [_item_payload(item) for item in bundle.awards]
    payload["grants"] = [_item_payload(item) for item in bundle.grants]
    payload["social_links"] = [_item_payload(item) for item in bundle.social_links]
    return payload


def serialize_public_profile(bundle: ProfileBundle) -> dict[str, Any]:
    payload = serialize_profile_bundle(bundle)
    payload["template_descriptor"] = template_catalog.resolve_template(
        bundle.profile.template
    ).as_dict()
    return payload


def serialize_public_summary(profile: Profile) -> dict[str, Any]:
    payload = {key: getattr(profile, key) for key in PUBLIC_SUMMARY_FIELDS}
    payload["template"] = _enum_value(profile.template)
    return payload
