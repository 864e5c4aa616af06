"""Membership service: direct provisioning by an administrator."""

from __future__ import annotations

import structlog

from app.access.members import build_membership, require_administrator
from app.access.workflow import approved
from app.core.ids import request_id
from app.core.metrics import metrics
from app.core.store import ORGANIZATIONS, REQUESTS, DocumentStore
from app.services.organizations import read_org
from nexusguard_shared.schemas.common import RequestStatus
from nexusguard_shared.schemas.organizations import MemberAddRequest, Membership
from nexusguard_shared.schemas.requests import JoinRequest

log = structlog.get_logger()


async def add_member(
    store: DocumentStore,
    eid: str,
    actor_id: str,
    req: MemberAddRequest,
) -> Membership:
    """
    Add an identity with the role's current privileges.

    A PENDING join request from the same identity is approved in the same
    transaction, so a member never has a request left in the queue.
    """
    rid = request_id(eid, req.identity_id)
    settled = None
    async with store.transaction() as txn:
        org = await read_org(txn, eid)
        require_administrator(org, actor_id)
        membership = build_membership(org, req.identity_id, req.display_name, req.role_name)

        doc = await txn.get(REQUESTS, rid)
        if doc is not None:
            pending = JoinRequest.model_validate(doc)
            if pending.status == RequestStatus.PENDING:
                settled = approved(pending, membership.role_name, now=membership.joined_at)

        txn.update(
            ORGANIZATIONS,
            eid,
            {("members", membership.identity_id): membership.model_dump(mode="json")},
        )
        if settled is not None:
            txn.update(
                REQUESTS,
                rid,
                {
                    "status": settled.status.value,
                    "approved_role": settled.approved_role,
                    "approved_at": settled.approved_at.isoformat(),
                },
            )

    log.info(
        "member.added",
        eid=eid,
        identity=membership.identity_id,
        role=membership.role_name,
        actor=actor_id,
        settled_request=rid if settled is not None else None,
    )
    metrics.inc("members_added_total", eid=eid)
    if settled is not None:
        metrics.inc("requests_approved_total", eid=eid)
    return membership
