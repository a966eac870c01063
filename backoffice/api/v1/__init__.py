"""
API v1 Router

Admin endpoints are prefixed with /admin, session endpoints with /auth.
"""

from fastapi import APIRouter

from backoffice import __version__
from . import admin, auth

router = APIRouter()

router.include_router(admin.router, prefix="/admin", tags=["Admin"])
router.include_router(auth.router, prefix="/auth", tags=["Auth"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": __version__,
        "endpoints": [
            "/admin/users",
            "/admin/orgs",
            "/admin/invitations",
            "/admin/stats/unique-logins",
            "/auth/logout",
        ],
    }
