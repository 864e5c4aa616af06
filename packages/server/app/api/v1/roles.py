"""
Role table API endpoints (Admin only).

POST   /api/v1/orgs/{eid}/roles                     — Create a role
PUT    /api/v1/orgs/{eid}/roles/{name}/privileges   — Replace a role's privileges
POST   /api/v1/orgs/{eid}/roles/{name}/toggle       — Flip one privilege
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import get_identity
from app.core.store import DocumentStore, get_store
from app.services import roles as role_service
from nexusguard_shared.schemas.organizations import (
    PrivilegeToggleRequest,
    Role,
    RoleCreateRequest,
    RolePrivilegesUpdate,
)

router = APIRouter()


@router.post("", response_model=Role, status_code=201, tags=["Roles"])
async def create_role(
    eid: str,
    body: RoleCreateRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    return await role_service.create_role(store, eid, identity, body.name, body.privileges)


@router.put("/{name}/privileges", response_model=Role, tags=["Roles"])
async def set_role_privileges(
    eid: str,
    name: str,
    body: RolePrivilegesUpdate,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    """Full replacement. Existing members keep the privileges they were given."""
    return await role_service.set_role_privileges(store, eid, identity, name, body.privileges)


@router.post("/{name}/toggle", response_model=Role, tags=["Roles"])
async def toggle_privilege(
    eid: str,
    name: str,
    body: PrivilegeToggleRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    return await role_service.toggle_role_privilege(store, eid, identity, name, body.privilege)
