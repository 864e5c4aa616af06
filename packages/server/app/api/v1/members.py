"""
Membership API endpoints.

POST   /api/v1/orgs/{eid}/members   — Add an identity directly (Admin only)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import get_identity
from app.core.store import DocumentStore, get_store
from app.services import members as member_service
from nexusguard_shared.schemas.organizations import MemberAddRequest, Membership

router = APIRouter()


@router.post("", response_model=Membership, status_code=201, tags=["Members"])
async def add_member(
    eid: str,
    body: MemberAddRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Privileges are copied from the role as it stands now."""
    return await member_service.add_member(store, eid, identity, body)
