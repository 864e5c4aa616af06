"""
Role table: pure operations over an Organization snapshot.

Builders validate against the snapshot and return the value to be written;
they never mutate the snapshot themselves.
"""

from __future__ import annotations

from typing import Iterable

from app.core.errors import DuplicateRole, EmptyDefinition, UnknownRole
from nexusguard_shared.schemas.common import Privilege, normalize_privileges
from nexusguard_shared.schemas.organizations import Organization, Role


def get_role(org: Organization, name: str) -> Role:
    role = org.roles.get(name)
    if role is None:
        raise UnknownRole(f"Role '{name}' is not defined", eid=org.eid, role=name)
    return role


def build_role(
    org: Organization,
    name: str,
    privileges: Iterable[Privilege | str],
    *,
    administrative: bool = False,
) -> Role:
    """Validate a new role against the table."""
    name = name.strip()
    if not name:
        raise EmptyDefinition("Role name must not be blank", eid=org.eid)
    if name in org.roles:
        raise DuplicateRole(f"Role '{name}' already exists", eid=org.eid, role=name)
    privs = normalize_privileges(privileges)
    if not privs:
        raise EmptyDefinition(
            f"Role '{name}' must grant at least one privilege", eid=org.eid, role=name
        )
    return Role(name=name, privileges=privs, is_administrative=administrative)


def replace_privileges(
    org: Organization, name: str, privileges: Iterable[Privilege | str]
) -> Role:
    """Full replacement of a role's privilege set (not a delta)."""
    role = get_role(org, name)
    return role.model_copy(update={"privileges": normalize_privileges(privileges)})


def toggled_privileges(role: Role, privilege: Privilege | str) -> list[Privilege]:
    """The set a matrix toggle should write: add if absent, remove if present."""
    privilege = Privilege(privilege)
    current = set(role.privileges)
    if privilege in current:
        current.discard(privilege)
    else:
        current.add(privilege)
    return normalize_privileges(current)


def live_role_grants(org: Organization, role_names: Iterable[str]) -> set[Privilege]:
    """
    Union of privileges the named roles grant right now.

    Compute-on-read: reflects the current role table, unlike the
    assignment snapshot held on each membership. Unknown names grant nothing.
    """
    granted: set[Privilege] = set()
    for name in role_names:
        role = org.roles.get(name)
        if role is not None:
            granted.update(role.privileges)
    return granted
