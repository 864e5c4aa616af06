"""
API v1 Router

All org-scoped endpoints are prefixed with /orgs/{eid}.
"""

from fastapi import APIRouter
from . import members, requests, resources, roles
from .organizations import router_global as orgs_global_router
from .organizations import router_scoped as orgs_scoped_router

router = APIRouter()

# Organization routes (non-org-scoped: search, create)
router.include_router(orgs_global_router)

# Organization routes (org-scoped: view)
router.include_router(orgs_scoped_router, prefix="/orgs/{eid}", tags=["Organizations"])

router.include_router(roles.router, prefix="/orgs/{eid}/roles", tags=["Roles"])
router.include_router(members.router, prefix="/orgs/{eid}/members", tags=["Members"])
router.include_router(resources.router, prefix="/orgs/{eid}", tags=["Resources"])
router.include_router(requests.router, prefix="/orgs/{eid}/requests", tags=["Requests"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/search",
            "/orgs/{eid}/view",
            "/orgs/{eid}/roles",
            "/orgs/{eid}/members",
            "/orgs/{eid}/folders",
            "/orgs/{eid}/databases",
            "/orgs/{eid}/resources/{id}/access",
            "/orgs/{eid}/requests",
        ],
    }
