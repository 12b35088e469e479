"""Main API router: aggregates all endpoint modules."""

from fastapi import APIRouter

from copy_forge.api.integrations import router as integrations_router
from copy_forge.api.landing_pages import router as landing_pages_router
from copy_forge.api.maintenance import router as maintenance_router
from copy_forge.api.projects import router as projects_router
from copy_forge.api.templates import router as templates_router

api_router = APIRouter()

api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(landing_pages_router, prefix="/landing-pages", tags=["landing-pages"])
api_router.include_router(templates_router, prefix="/templates", tags=["templates"])
api_router.include_router(integrations_router, prefix="/integrations", tags=["integrations"])
api_router.include_router(maintenance_router, prefix="/maintenance", tags=["maintenance"])
