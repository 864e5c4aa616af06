"""Resource registry: folders and databases of one organization."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from app.access.members import effective_privileges, is_administrator
from app.access.roles import get_role, live_role_grants
from app.core.errors import EmptyDefinition
from app.core.ids import generate_resource_id
from nexusguard_shared.schemas.common import Privilege
from nexusguard_shared.schemas.organizations import Database, Folder, Organization

FOLDER_ID_PREFIX = "fol"
DATABASE_ID_PREFIX = "db"


def _taken_ids(org: Organization) -> set[str]:
    infra = org.infrastructure
    return {f.id for f in infra.folders} | {d.id for d in infra.databases}


def build_folder(
    org: Organization,
    name: str,
    allowed_roles: Iterable[str] = (),
    is_public: bool = False,
    *,
    now: Optional[datetime] = None,
) -> Folder:
    name = name.strip()
    if not name:
        raise EmptyDefinition("Folder name must not be blank", eid=org.eid)
    roles: list[str] = []
    for role_name in allowed_roles:
        get_role(org, role_name)
        if role_name not in roles:
            roles.append(role_name)
    return Folder(
        id=generate_resource_id(FOLDER_ID_PREFIX, _taken_ids(org)),
        name=name,
        allowed_roles=roles,
        is_public=is_public,
        created_at=now or datetime.now(timezone.utc),
    )


def build_database(
    org: Organization,
    name: str,
    engine_type: str = "PostgreSQL",
    *,
    now: Optional[datetime] = None,
) -> Database:
    name = name.strip()
    if not name:
        raise EmptyDefinition("Database name must not be blank", eid=org.eid)
    return Database(
        id=generate_resource_id(DATABASE_ID_PREFIX, _taken_ids(org)),
        name=name,
        engine_type=engine_type,
        created_at=now or datetime.now(timezone.utc),
    )


def folder_visible(org: Organization, identity_id: str, folder: Folder) -> bool:
    """
    Live gating: allowed roles are resolved against the current role table
    on every call, so role edits change visibility without re-provisioning.
    """
    if folder.is_public:
        return True
    if is_administrator(org, identity_id):
        return True
    privs = set(effective_privileges(org, identity_id))
    if Privilege.ADMIN in privs:
        return True
    return bool(privs & live_role_grants(org, folder.allowed_roles))


def visible_folders(org: Organization, identity_id: str) -> list[Folder]:
    return [f for f in org.infrastructure.folders if folder_visible(org, identity_id, f)]


def find_resource(org: Organization, resource_id: str) -> Optional[Folder | Database]:
    for folder in org.infrastructure.folders:
        if folder.id == resource_id:
            return folder
    for database in org.infrastructure.databases:
        if database.id == resource_id:
            return database
    return None
