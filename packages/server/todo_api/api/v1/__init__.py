"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{orgId}.
"""

from fastapi import APIRouter

from . import todos, users
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])

# Organization routes (non-org-scoped: list, create)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: details, members)
router.include_router(orgs_scoped_router, prefix="/orgs/{orgId}", tags=["Organizations"])

router.include_router(todos.router, prefix="/orgs/{orgId}/todos", tags=["Todos"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/users",
            "/orgs",
            "/orgs/{orgId}/members",
            "/orgs/{orgId}/todos",
        ],
    }
