"""
Join request state machine.

PENDING -> APPROVED, nothing else. There is no rejection or expiry:
a request nobody approves stays in the queue indefinitely.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from app.core.errors import RequestNotPending
from app.core.ids import request_id
from nexusguard_shared.schemas.common import REQUEST_TRANSITIONS, RequestStatus
from nexusguard_shared.schemas.requests import JoinRequest


def default_display_name(requester_id: str) -> str:
    return f"Node_{requester_id[:4]}"


def new_request(
    target_eid: str,
    requester_id: str,
    display_name: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> JoinRequest:
    return JoinRequest(
        id=request_id(target_eid, requester_id),
        target_eid=target_eid,
        requester_id=requester_id,
        display_name=display_name or default_display_name(requester_id),
        status=RequestStatus.PENDING,
        submitted_at=now or datetime.now(timezone.utc),
    )


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in REQUEST_TRANSITIONS.get(current, [])


def approved(
    request: JoinRequest, role_name: str, *, now: Optional[datetime] = None
) -> JoinRequest:
    """Return the request moved to APPROVED; only valid from PENDING."""
    if not can_transition(request.status, RequestStatus.APPROVED):
        raise RequestNotPending(
            f"Request '{request.id}' is {request.status.value}, not PENDING",
            request_id=request.id,
        )
    return request.model_copy(
        update={
            "status": RequestStatus.APPROVED,
            "approved_role": role_name,
            "approved_at": now or datetime.now(timezone.utc),
        }
    )


def pending_requests_for(requests: Iterable[JoinRequest], eid: str) -> list[JoinRequest]:
    """Pending requests targeting ``eid``, oldest first."""
    pending = [
        r for r in requests
        if r.target_eid == eid and r.status == RequestStatus.PENDING
    ]
    return sorted(pending, key=lambda r: r.submitted_at)
