from __future__ import annotations

from fastapi import APIRouter

from scholarflow.api.routers import auth, orcid, profiles, public, sections, templates

router = APIRouter(prefix="/api/v1")
router.include_router(auth.router)
router.include_router(profiles.router)
router.include_router(orcid.router)
router.include_router(sections.router)
router.include_router(public.router)
router.include_router(templates.router)
