"""
Organization API endpoints.

GET    /api/v1/orgs/search?q=     — Search orgs by name or eid
POST   /api/v1/orgs               — Create a new org
GET    /api/v1/orgs/{eid}/view    — The caller's derived view of an org
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_identity
from app.core.store import DocumentStore, get_store
from app.services import organizations as org_service
from app.services import views as view_service
from nexusguard_shared.schemas.organizations import (
    Organization,
    OrgCreateRequest,
    OrgSearchResponse,
)
from nexusguard_shared.schemas.views import DerivedView

# ---------------------------------------------------------------------------
# Non-org-scoped routes
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/orgs/search", response_model=OrgSearchResponse, tags=["Organizations"])
async def search_orgs(
    q: str = Query("", max_length=100),
    store: DocumentStore = Depends(get_store),
):
    """Find orgs to join. Short queries return nothing."""
    items = await org_service.search_orgs(store, q)
    return OrgSearchResponse(data=items)


@router_global.post("/orgs", response_model=Organization, status_code=201, tags=["Organizations"])
async def create_org(
    body: OrgCreateRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Provision an org. The creator becomes its administrator."""
    return await org_service.create_org(store, body, identity)


# ---------------------------------------------------------------------------
# Org-scoped routes (eid in path)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("/view", response_model=DerivedView, tags=["Organizations"])
async def get_view(
    eid: str,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Everything the caller may see in this org, recomputed on every call."""
    return await view_service.get_view(store, eid, identity)
