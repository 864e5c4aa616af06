"""
Join request service.

Requests live in their own collection, keyed by "{eid}_{requester_id}", so
resubmission overwrites instead of duplicating. Approval writes the new
membership and the status flip in one store transaction.
"""

from __future__ import annotations

from typing import Optional

import structlog

from app.access.members import build_membership, require_administrator
from app.access.workflow import approved, new_request, pending_requests_for
from app.core.config import Settings
from app.core.errors import DuplicateMember, UnknownRequest
from app.core.ids import request_id as make_request_id
from app.core.metrics import metrics
from app.core.store import ORGANIZATIONS, REQUESTS, DocumentStore
from app.services.organizations import read_org, resolve_target
from nexusguard_shared.schemas.common import RequestStatus
from nexusguard_shared.schemas.organizations import Membership
from nexusguard_shared.schemas.requests import JoinRequest

log = structlog.get_logger()


async def list_requests(store: DocumentStore) -> list[JoinRequest]:
    return [JoinRequest.model_validate(doc) for doc in await store.list(REQUESTS)]


async def submit_request(
    store: DocumentStore,
    eid: str,
    requester_id: str,
    display_name: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
) -> JoinRequest:
    """Write (or refresh) the PENDING request for (eid, requester)."""
    # Seeds the bootstrap org on first use
    await resolve_target(store, eid, settings)

    rid = make_request_id(eid, requester_id)
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        if requester_id in org.members:
            raise DuplicateMember(
                f"Identity '{requester_id}' is already a member of '{eid}'",
                eid=eid,
                identity=requester_id,
            )
        existing = await txn.get(REQUESTS, rid)
        if existing is not None:
            previous = JoinRequest.model_validate(existing)
            if previous.status != RequestStatus.PENDING:
                raise DuplicateMember(
                    f"Request '{rid}' was already approved",
                    eid=eid,
                    identity=requester_id,
                )
            display_name = display_name or previous.display_name
        request = new_request(eid, requester_id, display_name)
        txn.set(REQUESTS, rid, request.model_dump(mode="json"))

    log.info(
        "request.submitted",
        eid=eid,
        request_id=rid,
        requester=requester_id,
        resubmission=existing is not None,
    )
    metrics.inc("requests_submitted_total", eid=eid)
    return request


async def approve_request(
    store: DocumentStore,
    eid: str,
    actor_id: str,
    request_id: str,
    role_name: str,
) -> tuple[JoinRequest, Membership]:
    """
    Approve a pending request with the given role.

    Every check runs before anything is buffered; the membership write and
    the status flip then commit together or not at all.
    """
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)

        doc = await txn.get(REQUESTS, request_id)
        if doc is None:
            raise UnknownRequest(f"No join request '{request_id}'", request_id=request_id)
        request = JoinRequest.model_validate(doc)
        if request.target_eid != eid:
            raise UnknownRequest(
                f"Request '{request_id}' does not target '{eid}'", request_id=request_id
            )

        updated = approved(request, role_name)
        membership = build_membership(
            org, request.requester_id, request.display_name, role_name
        )

        txn.update(
            ORGANIZATIONS,
            eid,
            {("members", membership.identity_id): membership.model_dump(mode="json")},
        )
        txn.update(
            REQUESTS,
            request_id,
            {
                "status": updated.status.value,
                "approved_role": updated.approved_role,
                "approved_at": updated.approved_at.isoformat(),
            },
        )

    log.info(
        "request.approved",
        eid=eid,
        request_id=request_id,
        requester=request.requester_id,
        role=role_name,
        actor=actor_id,
    )
    metrics.inc("requests_approved_total", eid=eid)
    return updated, membership


async def list_pending_requests(
    store: DocumentStore, eid: str, actor_id: str
) -> list[JoinRequest]:
    """Administrator queue for one org, oldest first."""
    org = await read_org(store, eid)
    require_administrator(org, actor_id)
    pending = pending_requests_for(await list_requests(store), eid)
    metrics.set_gauge("pending_requests", len(pending), eid=eid)
    return pending
