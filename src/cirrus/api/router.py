"""Master API router."""

from fastapi import APIRouter

from cirrus.api.routes import apps, health

api_router = APIRouter()
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(apps.router)
