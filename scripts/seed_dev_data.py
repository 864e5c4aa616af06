#!/usr/bin/env python3
"""Seed a development store with the bootstrap org and a demo org with a pending request.

Usage:
    NG_STORE_BACKEND=sqlite python scripts/seed_dev_data.py

Uses NG_SQLITE_PATH (or ./data/nexusguard.db).
"""

import asyncio

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.core.store import create_store
from app.services import organizations as org_service
from app.services import requests as request_service
from app.services import resources as resource_service
from app.services import roles as role_service
from nexusguard_shared.schemas.common import Privilege
from nexusguard_shared.schemas.organizations import FolderCreateRequest, OrgCreateRequest

# Deterministic identities for reproducibility
ADMIN_ID = "dev-admin-0001"
REQUESTER_ID = "dev-requester-0002"


async def seed():
    settings = get_settings()
    configure_logging(settings.log_level, "text")
    store = create_store(settings)
    await store.open()
    try:
        await org_service.ensure_bootstrap_org(store, settings)

        org = await org_service.create_org(
            store, OrgCreateRequest(name="Acme Robotics"), ADMIN_ID, settings=settings
        )
        await role_service.create_role(
            store, org.eid, ADMIN_ID, "Standard User", [Privilege.READ]
        )
        await role_service.create_role(
            store, org.eid, ADMIN_ID, "Operator", [Privilege.READ, Privilege.EXECUTE]
        )
        await resource_service.add_folder(
            store,
            org.eid,
            ADMIN_ID,
            FolderCreateRequest(name="Runbooks", allowed_roles=["Operator"]),
        )
        await resource_service.add_folder(
            store,
            org.eid,
            ADMIN_ID,
            FolderCreateRequest(name="Handbook", is_public=True),
        )
        await request_service.submit_request(store, org.eid, REQUESTER_ID, "Dev Requester")

        print(f"Seeded {org.name} as {org.eid} (admin: {ADMIN_ID})")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(seed())
