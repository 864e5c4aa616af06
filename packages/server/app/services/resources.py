"""
Resource service: folder and database provisioning, visibility listing and
single-resource access checks.
"""

from __future__ import annotations

import structlog

from app.access.engine import can_access
from app.access.members import require_administrator
from app.access.resources import build_database, build_folder, find_resource, visible_folders
from app.core.errors import UnknownTarget
from app.core.metrics import metrics
from app.core.store import ORGANIZATIONS, ArrayUnion, DocumentStore
from app.services.organizations import get_org, read_org
from nexusguard_shared.schemas.organizations import (
    Database,
    DatabaseCreateRequest,
    Folder,
    FolderCreateRequest,
)

log = structlog.get_logger()


async def add_folder(
    store: DocumentStore, eid: str, actor_id: str, req: FolderCreateRequest
) -> Folder:
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        folder = build_folder(org, req.name, req.allowed_roles, req.is_public)
        txn.update(
            ORGANIZATIONS,
            eid,
            {("infrastructure", "folders"): ArrayUnion(folder.model_dump(mode="json"))},
        )

    log.info(
        "folder.added",
        eid=eid,
        folder_id=folder.id,
        allowed_roles=folder.allowed_roles,
        is_public=folder.is_public,
    )
    metrics.inc("folders_added_total", eid=eid)
    return folder


async def add_database(
    store: DocumentStore, eid: str, actor_id: str, req: DatabaseCreateRequest
) -> Database:
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        database = build_database(org, req.name, req.engine_type)
        txn.update(
            ORGANIZATIONS,
            eid,
            {("infrastructure", "databases"): ArrayUnion(database.model_dump(mode="json"))},
        )

    log.info("database.added", eid=eid, database_id=database.id, engine=database.engine_type)
    metrics.inc("databases_added_total", eid=eid)
    return database


async def list_visible_folders(
    store: DocumentStore, eid: str, identity_id: str
) -> list[Folder]:
    org = await get_org(store, eid)
    return visible_folders(org, identity_id)


async def check_access(
    store: DocumentStore, eid: str, identity_id: str, resource_id: str
) -> bool:
    org = await get_org(store, eid)
    resource = find_resource(org, resource_id)
    if resource is None:
        raise UnknownTarget(
            f"No resource '{resource_id}' in organization '{eid}'",
            eid=eid,
            resource_id=resource_id,
        )
    return can_access(org, identity_id, resource)
