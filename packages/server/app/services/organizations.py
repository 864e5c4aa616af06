"""
Organization service: provisioning, lookup, search and the bootstrap fixture.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional, Protocol

import structlog
import yaml

from app.core.config import Settings, get_settings
from app.core.errors import StoreUnavailable, UnknownTarget
from app.core.ids import generate_eid
from app.core.metrics import metrics
from app.core.store import ORGANIZATIONS, DocumentExists, DocumentStore
from nexusguard_shared.schemas.common import PRIVILEGE_CATALOG
from nexusguard_shared.schemas.organizations import (
    Membership,
    Organization,
    OrgCreateRequest,
    OrgSearchItem,
    Role,
)

log = structlog.get_logger()


class _Reader(Protocol):
    async def get(self, collection: str, key: str) -> dict | None: ...


async def read_org(reader: _Reader, eid: str) -> Organization:
    """Load an org from a store or an open transaction; raises UnknownTarget."""
    doc = await reader.get(ORGANIZATIONS, eid)
    if doc is None:
        raise UnknownTarget(f"No organization with eid '{eid}'", eid=eid)
    return Organization.model_validate(doc)


async def get_org(store: DocumentStore, eid: str) -> Organization:
    return await read_org(store, eid)


async def create_org(
    store: DocumentStore,
    req: OrgCreateRequest,
    creator_id: str,
    *,
    settings: Optional[Settings] = None,
    eid_factory: Optional[Callable[[str], str]] = None,
) -> Organization:
    """Create an org; the creator gets the administrative owner role with the full catalog."""
    settings = settings or get_settings()
    draw = eid_factory or generate_eid
    catalog = list(PRIVILEGE_CATALOG)
    owner = Role(name=settings.owner_role_name, privileges=catalog, is_administrative=True)

    for attempt in range(1, settings.eid_max_attempts + 1):
        eid = draw(settings.eid_prefix)
        if eid == settings.bootstrap_eid:
            continue
        org = Organization(
            eid=eid,
            name=req.name.strip(),
            creator_id=creator_id,
            roles={owner.name: owner},
            members={
                creator_id: Membership(
                    identity_id=creator_id,
                    display_name=req.display_name or settings.creator_display_name,
                    role_name=owner.name,
                    privileges=catalog,
                )
            },
        )
        try:
            await store.create(ORGANIZATIONS, eid, org.model_dump(mode="json"))
        except DocumentExists:
            log.warning("org.eid_collision", eid=eid, attempt=attempt)
            metrics.inc("eid_collisions_total")
            continue
        log.info("org.created", eid=eid, creator=creator_id, attempts=attempt)
        metrics.inc("orgs_created_total")
        return org

    log.error("org.eid_exhausted", attempts=settings.eid_max_attempts)
    raise StoreUnavailable(
        "Could not allocate a unique eid", attempts=settings.eid_max_attempts
    )


# ---------------------------------------------------------------------------
# Bootstrap fixture
# ---------------------------------------------------------------------------

@lru_cache
def _parse_fixture(path: str) -> Organization:
    fixture = Path(path)
    if not fixture.exists():
        raise FileNotFoundError(f"Bootstrap fixture not found: {fixture}")
    with open(fixture) as f:
        raw = yaml.safe_load(f) or {}
    return Organization.model_validate(raw)


def load_bootstrap_fixture(path: str) -> Organization:
    """Parse and validate the well-known bootstrap org from YAML."""
    return _parse_fixture(path).model_copy(deep=True)


async def ensure_bootstrap_org(
    store: DocumentStore, settings: Optional[Settings] = None
) -> Organization:
    """Seed the bootstrap org into the store if it is not there yet."""
    settings = settings or get_settings()
    doc = await store.get(ORGANIZATIONS, settings.bootstrap_eid)
    if doc is not None:
        return Organization.model_validate(doc)

    org = load_bootstrap_fixture(settings.bootstrap_fixture)
    try:
        await store.create(ORGANIZATIONS, org.eid, org.model_dump(mode="json"))
        log.info("org.bootstrap_seeded", eid=org.eid)
    except DocumentExists:
        # Seeded concurrently; the stored copy wins
        return await get_org(store, org.eid)
    return org


async def resolve_target(
    store: DocumentStore, eid: str, settings: Optional[Settings] = None
) -> Organization:
    """Look up a join target; the bootstrap eid always resolves."""
    settings = settings or get_settings()
    if eid == settings.bootstrap_eid:
        return await ensure_bootstrap_org(store, settings)
    return await get_org(store, eid)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def _matches(query: str, name: str, eid: str) -> bool:
    return query in name.lower() or query in eid.lower()


async def search_orgs(
    store: DocumentStore, query: str, settings: Optional[Settings] = None
) -> list[OrgSearchItem]:
    """Case-insensitive substring search on name or eid."""
    settings = settings or get_settings()
    q = query.strip().lower()
    if len(q) < settings.search_min_chars:
        return []

    found = [
        OrgSearchItem(eid=doc["eid"], name=doc["name"], is_populated=doc.get("is_populated", False))
        for doc in await store.list(ORGANIZATIONS)
        if _matches(q, doc.get("name", ""), doc.get("eid", ""))
    ]
    if not any(item.eid == settings.bootstrap_eid for item in found):
        bootstrap = load_bootstrap_fixture(settings.bootstrap_fixture)
        if _matches(q, bootstrap.name, bootstrap.eid):
            found.append(
                OrgSearchItem(eid=bootstrap.eid, name=bootstrap.name, is_populated=True)
            )
    return found
