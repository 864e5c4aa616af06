"""
Organization document schemas.

Covers: the organization document as stored (role table, membership
registry, resource registry), plus the request/response bodies used by
the org, role, member and resource endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .common import Privilege, normalize_privileges


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Stored document
# ---------------------------------------------------------------------------

class Role(BaseModel):
    name: str
    privileges: list[Privilege] = Field(default_factory=list)
    is_administrative: bool = Field(
        default=False,
        description="Members holding this role bypass privilege checks",
    )

    @field_validator("privileges")
    @classmethod
    def _catalog_order(cls, value: list[Privilege]) -> list[Privilege]:
        return normalize_privileges(value)


class Membership(BaseModel):
    identity_id: str
    display_name: str
    role_name: str
    privileges: list[Privilege] = Field(
        default_factory=list,
        description="Copy of the role's privileges taken at assignment time",
    )
    joined_at: datetime = Field(default_factory=_utcnow)

    @field_validator("privileges")
    @classmethod
    def _catalog_order(cls, value: list[Privilege]) -> list[Privilege]:
        return normalize_privileges(value)


class Folder(BaseModel):
    id: str
    name: str
    allowed_roles: list[str] = Field(default_factory=list)
    is_public: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class Database(BaseModel):
    id: str
    name: str
    engine_type: str = "PostgreSQL"
    status: str = "Healthy"
    traffic_metric: str = "0 iops"
    created_at: datetime = Field(default_factory=_utcnow)


class Infrastructure(BaseModel):
    folders: list[Folder] = Field(default_factory=list)
    databases: list[Database] = Field(default_factory=list)


class Organization(BaseModel):
    """The single document stored per eid."""

    eid: str
    name: str
    creator_id: str
    roles: dict[str, Role] = Field(default_factory=dict)
    members: dict[str, Membership] = Field(default_factory=dict)
    infrastructure: Infrastructure = Field(default_factory=Infrastructure)
    is_populated: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    display_name: Optional[str] = Field(
        None, max_length=200, description="Creator's display name inside the org"
    )


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=60)
    privileges: list[Privilege] = Field(default_factory=list)


class RolePrivilegesUpdate(BaseModel):
    privileges: list[Privilege] = Field(default_factory=list)


class PrivilegeToggleRequest(BaseModel):
    privilege: Privilege


class MemberAddRequest(BaseModel):
    identity_id: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=200)
    role_name: str = Field(..., min_length=1)


class FolderCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    allowed_roles: list[str] = Field(default_factory=list)
    is_public: bool = False


class DatabaseCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    engine_type: str = Field(default="PostgreSQL", min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgSearchItem(BaseModel):
    eid: str
    name: str
    is_populated: bool = False


class OrgSearchResponse(BaseModel):
    data: list[OrgSearchItem]


class AccessDecision(BaseModel):
    resource_id: str
    allowed: bool
