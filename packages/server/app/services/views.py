"""Derived view service: one fetch of both snapshots, then the pure reducer."""

from __future__ import annotations

from app.access.engine import derive_view
from app.core.store import DocumentStore
from app.services.organizations import get_org
from app.services.requests import list_requests
from nexusguard_shared.schemas.views import DerivedView


async def get_view(store: DocumentStore, eid: str, identity_id: str) -> DerivedView:
    org = await get_org(store, eid)
    requests = await list_requests(store)
    return derive_view(org, requests, identity_id)
