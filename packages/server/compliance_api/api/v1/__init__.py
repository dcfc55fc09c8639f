"""
API v1 Router
"""

from fastapi import APIRouter

from .organizations import router as orgs_router

router = APIRouter()

router.include_router(orgs_router)


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/switch",
            "/orgs/current",
        ],
    }
