"""Join request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from .common import RequestStatus


class JoinRequest(BaseModel):
    """Stored join request. The id is derived from (target_eid, requester_id)."""
    id: str
    target_eid: str
    requester_id: str
    display_name: str
    status: RequestStatus = RequestStatus.PENDING
    submitted_at: datetime
    approved_role: Optional[str] = None
    approved_at: Optional[datetime] = None


class JoinRequestCreate(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=200)


class ApproveRequest(BaseModel):
    role_name: str = Field(min_length=1)


class JoinRequestListResponse(BaseModel):
    data: List[JoinRequest]
