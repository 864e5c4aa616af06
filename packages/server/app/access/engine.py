"""
Authorization engine.

Stateless composition of the role table, membership registry and resource
registry. Every answer is computed from the snapshot passed in; nothing is
cached between calls.
"""

from __future__ import annotations

from typing import Iterable

from app.access.members import (
    effective_privileges,
    get_membership,
    is_administrator,
    members_in_join_order,
)
from app.access.resources import folder_visible, visible_folders
from app.access.workflow import pending_requests_for
from app.core.metrics import metrics
from nexusguard_shared.schemas.organizations import Database, Folder, Organization
from nexusguard_shared.schemas.requests import JoinRequest
from nexusguard_shared.schemas.views import DerivedView


def can_access(org: Organization, identity_id: str, resource: Folder | Database) -> bool:
    """Folders follow the visibility rule; databases are administrator-only."""
    if isinstance(resource, Folder):
        allowed = folder_visible(org, identity_id, resource)
    elif isinstance(resource, Database):
        allowed = is_administrator(org, identity_id)
    else:
        raise TypeError(f"Unsupported resource type: {type(resource).__name__}")
    metrics.inc("access_checks_total", eid=org.eid)
    if not allowed:
        metrics.inc("access_denied_total", eid=org.eid)
    return allowed


def derive_view(
    org: Organization, requests: Iterable[JoinRequest], identity_id: str
) -> DerivedView:
    """Rebuild everything one identity sees from the latest snapshots."""
    admin = is_administrator(org, identity_id)
    member = get_membership(org, identity_id)
    role_name = member.role_name if member else None
    if role_name is None and admin:
        role_name = next((r.name for r in org.roles.values() if r.is_administrative), None)

    return DerivedView(
        eid=org.eid,
        org_name=org.name,
        identity_id=identity_id,
        is_administrator=admin,
        role_name=role_name,
        effective_privileges=effective_privileges(org, identity_id),
        visible_folders=visible_folders(org, identity_id),
        databases=list(org.infrastructure.databases) if admin else [],
        members=members_in_join_order(org) if admin else [],
        pending_requests=pending_requests_for(requests, org.eid) if admin else [],
    )
