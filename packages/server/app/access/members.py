"""Membership registry: pure operations over an Organization snapshot."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from app.access.roles import get_role
from app.core.errors import AccessDenied, DuplicateMember
from nexusguard_shared.schemas.common import (
    DEFAULT_PRIVILEGES,
    PRIVILEGE_CATALOG,
    Privilege,
    normalize_privileges,
)
from nexusguard_shared.schemas.organizations import Membership, Organization


def assignment_snapshot(org: Organization, role_name: str) -> list[Privilege]:
    """
    Copy-on-assignment: the role's privileges as of this instant.

    The returned list is detached from the role table; later edits to the
    role do not reach memberships built from it.
    """
    return list(get_role(org, role_name).privileges)


def build_membership(
    org: Organization,
    identity_id: str,
    display_name: str,
    role_name: str,
    privileges: Optional[Iterable[Privilege | str]] = None,
    *,
    now: Optional[datetime] = None,
) -> Membership:
    # Role must exist even when privileges are supplied explicitly
    get_role(org, role_name)
    if identity_id in org.members:
        raise DuplicateMember(
            f"Identity '{identity_id}' is already a member", eid=org.eid, identity=identity_id
        )
    privs = (
        normalize_privileges(privileges)
        if privileges is not None
        else assignment_snapshot(org, role_name)
    )
    return Membership(
        identity_id=identity_id,
        display_name=display_name,
        role_name=role_name,
        privileges=privs,
        joined_at=now or datetime.now(timezone.utc),
    )


def get_membership(org: Organization, identity_id: str) -> Optional[Membership]:
    return org.members.get(identity_id)


def is_administrator(org: Organization, identity_id: str) -> bool:
    if identity_id == org.creator_id:
        return True
    member = org.members.get(identity_id)
    if member is None:
        return False
    role = org.roles.get(member.role_name)
    return bool(role and role.is_administrative)


def require_administrator(org: Organization, identity_id: str) -> None:
    if not is_administrator(org, identity_id):
        raise AccessDenied(
            "Administrator privileges required", eid=org.eid, identity=identity_id
        )


def effective_privileges(org: Organization, identity_id: str) -> list[Privilege]:
    """Full catalog for administrators, the stored snapshot for members, READ otherwise."""
    if is_administrator(org, identity_id):
        return list(PRIVILEGE_CATALOG)
    member = org.members.get(identity_id)
    if member is None:
        return normalize_privileges(DEFAULT_PRIVILEGES)
    return list(member.privileges)


def members_in_join_order(org: Organization) -> list[Membership]:
    return sorted(org.members.values(), key=lambda m: m.joined_at)
