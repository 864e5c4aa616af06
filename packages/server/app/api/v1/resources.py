"""
Resource registry API endpoints.

GET    /api/v1/orgs/{eid}/folders                  — Folders visible to the caller
POST   /api/v1/orgs/{eid}/folders                  — Add a folder (Admin only)
POST   /api/v1/orgs/{eid}/databases                — Add a database (Admin only)
GET    /api/v1/orgs/{eid}/resources/{id}/access    — Access decision for one resource
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import get_identity
from app.core.store import DocumentStore, get_store
from app.services import resources as resource_service
from nexusguard_shared.schemas.organizations import (
    AccessDecision,
    Database,
    DatabaseCreateRequest,
    Folder,
    FolderCreateRequest,
)

router = APIRouter()


@router.get("/folders", response_model=list[Folder], tags=["Resources"])
async def list_folders(
    eid: str,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    return await resource_service.list_visible_folders(store, eid, identity)


@router.post("/folders", response_model=Folder, status_code=201, tags=["Resources"])
async def add_folder(
    eid: str,
    body: FolderCreateRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    return await resource_service.add_folder(store, eid, identity, body)


@router.post("/databases", response_model=Database, status_code=201, tags=["Resources"])
async def add_database(
    eid: str,
    body: DatabaseCreateRequest,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    return await resource_service.add_database(store, eid, identity, body)


@router.get("/resources/{resource_id}/access", response_model=AccessDecision, tags=["Resources"])
async def check_access(
    eid: str,
    resource_id: str,
    identity: str = Depends(get_identity),
    store: DocumentStore = Depends(get_store),
):
    allowed = await resource_service.check_access(store, eid, identity, resource_id)
    return AccessDecision(resource_id=resource_id, allowed=allowed)
