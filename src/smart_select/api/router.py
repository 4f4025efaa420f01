"""Main API router aggregating all endpoint routers.

This module provides the central router that includes all API endpoints
organized by domain.
"""

from fastapi import APIRouter

from smart_select.api.endpoints import analyze, health, selection

# Create main API router with version prefix
api_router = APIRouter(prefix="/api/v1")

# Include endpoint routers
api_router.include_router(health.router)
api_router.include_router(analyze.router, tags=["Analyze"])
api_router.include_router(selection.router, tags=["Selection"])
