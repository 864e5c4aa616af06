"""
Snapshot sync for one identity's view of one organization.

Subscribes to the organizations and requests collections and, on every
change event, re-reads both snapshots and re-runs the pure view reducer.
There is no diffing; each recomputation starts from full snapshots.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Coroutine

import structlog

from app.access.engine import derive_view
from app.core.errors import AccessModelError, UnknownTarget
from app.core.store import ORGANIZATIONS, REQUESTS, ChangeEvent, DocumentStore, Subscription
from nexusguard_shared.schemas.organizations import Organization
from nexusguard_shared.schemas.requests import JoinRequest
from nexusguard_shared.schemas.views import DerivedView

log = structlog.get_logger()

ViewHandler = Callable[[DerivedView], Coroutine[Any, Any, None]]


class SnapshotSync:
    """Keeps a DerivedView current for (eid, identity_id)."""

    def __init__(self, store: DocumentStore, eid: str, identity_id: str):
        self._store = store
        self._eid = eid
        self._identity_id = identity_id
        self._handlers: list[ViewHandler] = []
        self._subscription: Subscription | None = None
        self._task: asyncio.Task | None = None
        self._view: DerivedView | None = None
        self._recompute_count = 0

    @property
    def view(self) -> DerivedView | None:
        return self._view

    @property
    def recompute_count(self) -> int:
        return self._recompute_count

    def on_view(self, handler: ViewHandler) -> None:
        """Register a handler called with every recomputed view."""
        self._handlers.append(handler)

    async def start(self) -> DerivedView:
        """Subscribe, compute the initial view, then follow changes."""
        self._subscription = self._store.subscribe(ORGANIZATIONS, REQUESTS)
        view = await self.refresh()
        self._task = asyncio.create_task(self._follow_loop())
        return view

    async def stop(self) -> None:
        task, self._task = self._task, None
        try:
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception:
                    log.exception("sync.follow_failed", eid=self._eid, identity=self._identity_id)
        finally:
            if self._subscription:
                self._subscription.close()
                self._subscription = None
        log.info("sync.stopped", eid=self._eid, identity=self._identity_id)

    async def refresh(self) -> DerivedView:
        """Re-read both snapshots and recompute."""
        org_doc = await self._store.get(ORGANIZATIONS, self._eid)
        if org_doc is None:
            raise UnknownTarget(f"No organization with eid '{self._eid}'", eid=self._eid)
        org = Organization.model_validate(org_doc)
        requests = [JoinRequest.model_validate(d) for d in await self._store.list(REQUESTS)]

        view = derive_view(org, requests, self._identity_id)
        self._view = view
        self._recompute_count += 1
        for handler in self._handlers:
            try:
                await handler(view)
            except Exception:
                log.exception(
                    "sync.handler_error",
                    eid=self._eid,
                    identity=self._identity_id,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
        return view

    def _relevant(self, event: ChangeEvent) -> bool:
        if event.collection == ORGANIZATIONS:
            return event.key == self._eid
        return event.key.startswith(f"{self._eid}_")

    async def _follow_loop(self) -> None:
        subscription = self._subscription
        if subscription is None:
            raise RuntimeError("SnapshotSync not started")
        async for event in subscription:
            if not self._relevant(event):
                continue
            # Collapse a burst of events into one recomputation
            while subscription.pending():
                await subscription.get()
            try:
                await self.refresh()
            except AccessModelError as exc:
                log.warning("sync.refresh_failed", eid=self._eid, code=exc.code, error=exc.message)
            except Exception:
                log.exception("sync.refresh_error", eid=self._eid, identity=self._identity_id)
