from enum import Enum
from typing import Iterable


class Privilege(str, Enum):
    ADMIN = "ADMIN"
    READ = "READ"
    WRITE = "WRITE"
    EXECUTE = "EXECUTE"
    BILLING = "BILLING"
    NETWORK = "NETWORK"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    DATABASE_MANAGE = "DATABASE_MANAGE"


# Fixed catalog, in display order
PRIVILEGE_CATALOG: tuple[Privilege, ...] = tuple(Privilege)

# Granted to identities with no membership in a partially-synced org
DEFAULT_PRIVILEGES: frozenset[Privilege] = frozenset({Privilege.READ})


def normalize_privileges(privileges: Iterable[Privilege | str]) -> list[Privilege]:
    """Deduplicate and order privileges by catalog position."""
    wanted = {Privilege(p) for p in privileges}
    return [p for p in PRIVILEGE_CATALOG if p in wanted]


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"

# Valid join request transitions; APPROVED is terminal
REQUEST_TRANSITIONS: dict[RequestStatus, list[RequestStatus]] = {
    RequestStatus.PENDING: [RequestStatus.APPROVED],
    RequestStatus.APPROVED: [],
}

class ResourceKind(str, Enum):
    FOLDER = "folder"
    DATABASE = "database"
