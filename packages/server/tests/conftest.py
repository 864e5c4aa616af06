"""
Shared fixtures: document stores, a provisioned org, and snapshot builders.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.core.store import MemoryDocumentStore, SqliteDocumentStore
from app.services import organizations as org_service
from app.services import roles as role_service
from nexusguard_shared.schemas.common import PRIVILEGE_CATALOG, Privilege
from nexusguard_shared.schemas.organizations import (
    Membership,
    Organization,
    OrgCreateRequest,
    Role,
)

CREATOR = "u1"
SCENARIO_EID = "NX-1234-A"
T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
async def store():
    s = MemoryDocumentStore()
    await s.open()
    yield s
    await s.close()


@pytest.fixture(params=["memory", "sqlite"])
async def any_store(request, tmp_path):
    if request.param == "sqlite":
        s = SqliteDocumentStore(str(tmp_path / "docs.db"))
    else:
        s = MemoryDocumentStore()
    await s.open()
    yield s
    await s.close()


async def provision(store, eid: str = SCENARIO_EID, creator: str = CREATOR) -> Organization:
    """Create an org with a fixed eid plus the two non-admin roles most tests use."""
    org = await org_service.create_org(
        store,
        OrgCreateRequest(name="Nexus Test Node"),
        creator,
        eid_factory=lambda prefix: eid,
    )
    await role_service.create_role(store, eid, creator, "Standard User", [Privilege.READ])
    await role_service.create_role(
        store, eid, creator, "Manager", [Privilege.READ, Privilege.WRITE, Privilege.BILLING]
    )
    return org


@pytest.fixture
async def org(store) -> Organization:
    await provision(store)
    return await org_service.get_org(store, SCENARIO_EID)


@pytest.fixture
async def provisioned_store(any_store):
    await provision(any_store)
    return any_store


def snapshot(**overrides) -> Organization:
    """In-memory org snapshot for the pure access functions."""
    catalog = list(PRIVILEGE_CATALOG)
    data = {
        "eid": SCENARIO_EID,
        "name": "Snapshot Org",
        "creator_id": CREATOR,
        "roles": {
            "Owner": Role(name="Owner", privileges=catalog, is_administrative=True),
            "Standard User": Role(name="Standard User", privileges=[Privilege.READ]),
            "Auditor": Role(name="Auditor", privileges=[Privilege.BILLING]),
        },
        "members": {
            CREATOR: Membership(
                identity_id=CREATOR,
                display_name="Sovereign Admin",
                role_name="Owner",
                privileges=catalog,
                joined_at=T0,
            ),
            "m1": Membership(
                identity_id="m1",
                display_name="Member One",
                role_name="Standard User",
                privileges=[Privilege.READ],
                joined_at=T0 + timedelta(minutes=1),
            ),
        },
    }
    data.update(overrides)
    return Organization(**data)
