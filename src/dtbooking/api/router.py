"""Master API router mounted at /api/v1."""

from fastapi import APIRouter
from dtbooking.api.routes import admin, health, jobs

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(jobs.router)
api_router.include_router(admin.router)
