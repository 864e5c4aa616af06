"""
Role service: role table mutations.

Each write targets a narrow field path (roles.<name> or
roles.<name>.privileges) so edits to different roles never overwrite
each other.
"""

from __future__ import annotations

import structlog

from app.access.members import require_administrator
from app.access.roles import build_role, get_role, replace_privileges, toggled_privileges
from app.core.metrics import metrics
from app.core.store import ORGANIZATIONS, DocumentStore
from app.services.organizations import read_org
from nexusguard_shared.schemas.common import Privilege
from nexusguard_shared.schemas.organizations import Role

log = structlog.get_logger()


async def create_role(
    store: DocumentStore,
    eid: str,
    actor_id: str,
    name: str,
    privileges: list[Privilege],
) -> Role:
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        role = build_role(org, name, privileges)
        txn.update(ORGANIZATIONS, eid, {("roles", role.name): role.model_dump(mode="json")})

    log.info(
        "role.created",
        eid=eid,
        role=role.name,
        privileges=[p.value for p in role.privileges],
        actor=actor_id,
    )
    metrics.inc("roles_created_total", eid=eid)
    return role


async def set_role_privileges(
    store: DocumentStore,
    eid: str,
    actor_id: str,
    name: str,
    privileges: list[Privilege],
) -> Role:
    """Replace the role's privilege set. Existing memberships keep their snapshot."""
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        role = replace_privileges(org, name, privileges)
        txn.update(
            ORGANIZATIONS,
            eid,
            {("roles", name, "privileges"): [p.value for p in role.privileges]},
        )

    log.info(
        "role.privileges_set",
        eid=eid,
        role=name,
        privileges=[p.value for p in role.privileges],
        actor=actor_id,
    )
    metrics.inc("role_edits_total", eid=eid)
    return role


async def toggle_role_privilege(
    store: DocumentStore,
    eid: str,
    actor_id: str,
    name: str,
    privilege: Privilege,
) -> Role:
    """Flip one privilege and write the resulting full set."""
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        privs = toggled_privileges(get_role(org, name), privilege)
        role = replace_privileges(org, name, privs)
        txn.update(
            ORGANIZATIONS,
            eid,
            {("roles", name, "privileges"): [p.value for p in role.privileges]},
        )

    log.info("role.privilege_toggled", eid=eid, role=name, privilege=Privilege(privilege).value)
    metrics.inc("role_edits_total", eid=eid)
    return role
