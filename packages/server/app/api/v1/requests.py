"""
Join request API endpoints.

POST   /api/v1/orgs/{eid}/requests                       — Ask to join (any identity)
GET    /api/v1/orgs/{eid}/requests                       — Pending queue (Admin only)
POST   /api/v1/orgs/{eid}/requests/{request_id}/approve   — Approve with a role (Admin only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import get_identity
from app.core.store import DocumentStore, get_store
from app.services import requests as request_service
from nexusguard_shared.schemas.organizations import Membership
from nexusguard_shared.schemas.requests import (
    ApproveRequest,
    JoinRequest,
    JoinRequestCreate,
    JoinRequestListResponse,
)

router = APIRouter()


class ApprovalResponse(BaseModel):
    request: JoinRequest
    membership: Membership


@router.post("", response_model=JoinRequest, status_code=202, tags=["Requests"])
async def submit_request(
    eid: str,
    body: JoinRequestCreate,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Resubmitting while pending refreshes the existing request."""
    return await request_service.submit_request(store, eid, identity, body.display_name)


@router.get("", response_model=JoinRequestListResponse, tags=["Requests"])
async def list_pending(
    eid: str,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    items = await request_service.list_pending_requests(store, eid, identity)
    return JoinRequestListResponse(data=items)


@router.post("/{request_id}/approve", response_model=ApprovalResponse, tags=["Requests"])
async def approve_request(
    eid: str,
    request_id: str,
    body: ApproveRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    request, membership = await request_service.approve_request(
        store, eid, identity, request_id, body.role_name
    )
    return ApprovalResponse(request=request, membership=membership)
