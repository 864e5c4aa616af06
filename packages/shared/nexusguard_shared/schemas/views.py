"""Derived per-identity view of one organization."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .common import Privilege
from .organizations import Database, Folder, Membership
from .requests import JoinRequest


class DerivedView(BaseModel):
    eid: str
    org_name: str
    identity_id: str
    is_administrator: bool
    role_name: Optional[str] = None
    effective_privileges: list[Privilege]
    visible_folders: list[Folder] = Field(default_factory=list)
    # Administrator-only sections are left empty for members
    databases: list[Database] = Field(default_factory=list)
    members: list[Membership] = Field(default_factory=list)
    pending_requests: list[JoinRequest] = Field(default_factory=list)

    @computed_field
    @property
    def pending_count(self) -> int:
        return len(self.pending_requests)
