"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from udyoga_setu.api.routes.auth_routes import router as auth_router
from udyoga_setu.api.routes.company_routes import router as company_router
from udyoga_setu.api.routes.job_routes import router as job_router
from udyoga_setu.api.routes.application_routes import router as application_router
from udyoga_setu.api.routes.upload_routes import router as upload_router, page_router
from udyoga_setu.api.routes.kiosk_routes import router as kiosk_router
from udyoga_setu.api.routes.moderation_routes import router as moderation_router
from udyoga_setu.api.routes.realtime_routes import router as realtime_router
from udyoga_setu.api.routes.storage_routes import router as storage_router

# Main API router (mounted under /api)
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(company_router)
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(upload_router)
api_router.include_router(kiosk_router)
api_router.include_router(moderation_router)
api_router.include_router(realtime_router)
api_router.include_router(storage_router)

__all__ = ["api_router", "page_router"]
