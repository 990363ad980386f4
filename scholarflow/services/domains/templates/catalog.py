from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from scholarflow.db.models import ProfileTemplateId

SECTION_ABOUT = "about"
SECTION_PUBLICATIONS = "publications"
SECTION_EDUCATION = "education"
SECTION_POSITIONS = "positions"
SECTION_AWARDS = "awards"
SECTION_GRANTS = "grants"
SECTION_CONTACT = "contact"


@dataclass(frozen=True)
class ProfileTemplate:
    id: ProfileTemplateId
    name: str
    description: str
    preview: str
    sections: tuple[str, ...]
    color_scheme: str
    layout: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "preview": self.preview,
            "sections": list(self.sections),
            "color_scheme": self.color_scheme,
            "layout": self.layout,
        }


TEMPLATES: dict[ProfileTemplateId, ProfileTemplate] = {
    ProfileTemplateId.MINIMAL: ProfileTemplate(
        id=ProfileTemplateId.MINIMAL,
        name="Minimal",
        description="A clean single page with your bio, publications and contact details.",
        preview="/templates/minimal.png",
        sections=(SECTION_ABOUT, SECTION_PUBLICATIONS, SECTION_CONTACT),
        color_scheme="warm-beige",
        layout="single-column",
    ),
    ProfileTemplateId.RESEARCH_FOCUSED: ProfileTemplate(
        id=ProfileTemplateId.RESEARCH_FOCUSED,
        name="Research Focused",
        description="Puts publications and funding first, with a sidebar for appointments.",
        preview="/templates/research-focused.png",
        sections=(
            SECTION_ABOUT,
            SECTION_PUBLICATIONS,
            SECTION_GRANTS,
            SECTION_EDUCATION,
            SECTION_POSITIONS,
            SECTION_AWARDS,
        ),
        color_scheme="sage-green",
        layout="two-column",
    ),
    ProfileTemplateId.TEACHING_ORIENTED: ProfileTemplate(
        id=ProfileTemplateId.TEACHING_ORIENTED,
        name="Teaching Oriented",
        description="Highlights appointments, education and recognition ahead of research output.",
        preview="/templates/teaching-oriented.png",
        sections=(
            SECTION_ABOUT,
            SECTION_POSITIONS,
            SECTION_EDUCATION,
            SECTION_AWARDS,
            SECTION_PUBLICATIONS,
        ),
        color_scheme="academic-blue",
        layout="two-column",
    ),
    ProfileTemplateId.INDUSTRY_HYBRID: ProfileTemplate(
        id=ProfileTemplateId.INDUSTRY_HYBRID,
        name="Industry Hybrid",
        description="A dark, résumé-style layout for researchers working across academia and industry.",
        preview="/templates/industry-hybrid.png",
        sections=(
            SECTION_ABOUT,
            SECTION_POSITIONS,
            SECTION_PUBLICATIONS,
            SECTION_EDUCATION,
            SECTION_AWARDS,
            SECTION_GRANTS,
        ),
        color_scheme="charcoal",
        layout="sidebar",
    ),
}


def list_templates() -> list[ProfileTemplate]:
    return list(TEMPLATES.values())


def resolve_template(template_id: str | ProfileTemplateId | None) -> ProfileTemplate:
    """Unknown or missing ids render with the minimal template."""
    try:
        key = ProfileTemplateId(str(template_id or "").strip().lower())
    except ValueError:
        return TEMPLATES[ProfileTemplateId.MINIMAL]
    return TEMPLATES[key]
