"""Per-session tenant resolution state machine.

A ``TenantResolver`` turns a slug (or custom domain) into a ``Resolved``
tenant or a typed ``Failed`` state. Lookups run as asyncio tasks; every task
is tagged with the target it was issued for plus an issue number, and only the
most recently issued lookup may commit its outcome. Older lookups that finish
later are discarded, which is the only cancellation mechanism.

Failures are never retried automatically: callers decide when to ``refresh``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.modules.tenancy.constants import NOT_FOUND_REASON
from src.modules.tenancy.directory import DirectoryTransportError, TenantDirectoryClient
from src.modules.tenancy.schemas import (
    UNRESOLVED,
    Failed,
    FailureKind,
    ResolutionState,
    Resolved,
    Resolving,
    TenantIdentity,
    TenantLookup,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _LookupTag:
    sequence: int
    lookup: TenantLookup


class TenantResolver:
    def __init__(self, directory: TenantDirectoryClient) -> None:
        self._directory = directory
        self._state: ResolutionState = UNRESOLVED
        self._target: TenantLookup | None = None
        self._issued = 0
        self._current_tag: _LookupTag | None = None
        self._task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ResolutionState:
        return self._state

    @property
    def target(self) -> TenantLookup | None:
        return self._target

    @property
    def slug(self) -> str | None:
        return self._target.slug if self._target else None

    @property
    def tenant(self) -> TenantIdentity | None:
        """The resolved tenant, or None in every other state."""
        if isinstance(self._state, Resolved):
            return self._state.tenant
        return None

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Resolving)

    def set_slug(self, slug: str) -> asyncio.Task[None] | None:
        """Point the session at ``slug``.

        Returns the lookup task, or None when the slug is unchanged and no
        lookup was issued. Must be called from within a running event loop.
        """
        return self._set_target(TenantLookup(slug=slug))

    def set_domain(self, domain: str) -> asyncio.Task[None] | None:
        """Point the session at a tenant's custom domain."""
        return self._set_target(TenantLookup(domain=domain))

    async def refresh(self) -> None:
        """Re-issue the lookup for the current target and wait for it.

        A no-op when no target has been set.
        """
        if self._target is None:
            return
        await self._issue(self._target)

    async def wait(self) -> ResolutionState:
        """Wait until the most recently issued lookup has settled."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)
        return self._state

    async def resolve_slug(self, slug: str) -> ResolutionState:
        self.set_slug(slug)
        return await self.wait()

    async def resolve_domain(self, domain: str) -> ResolutionState:
        self.set_domain(domain)
        return await self.wait()

    def teardown(self) -> None:
        """End of session: forget the target and any in-flight outcome."""
        self._target = None
        self._current_tag = None
        self._task = None
        self._transition(UNRESOLVED)

    async def aclose(self) -> None:
        self.teardown()
        for task in list(self._in_flight):
            task.cancel()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    # ------------------------------------------------------------------

    def _set_target(self, lookup: TenantLookup) -> asyncio.Task[None] | None:
        if lookup == self._target:
            return None
        self._target = lookup
        return self._issue(lookup)

    def _issue(self, lookup: TenantLookup) -> asyncio.Task[None]:
        self._issued += 1
        tag = _LookupTag(sequence=self._issued, lookup=lookup)
        self._current_tag = tag
        self._transition(Resolving(lookup))

        task = asyncio.get_running_loop().create_task(
            self._run(tag), name=f"tenant-lookup-{tag.sequence}"
        )
        self._task = task
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _run(self, tag: _LookupTag) -> None:
        try:
            tenant = await self._directory.lookup(tag.lookup)
        except DirectoryTransportError as exc:
            outcome: ResolutionState = Failed(exc.message, FailureKind.TRANSPORT)
        except Exception as exc:
            # Any lookup failure must leave Resolving, or the session is stuck
            logger.exception("Unexpected error resolving %s", tag.lookup.describe())
            outcome = Failed(str(exc) or exc.__class__.__name__, FailureKind.TRANSPORT)
        else:
            if tenant is None or not tenant.is_active:
                outcome = Failed(NOT_FOUND_REASON, FailureKind.NOT_FOUND)
            else:
                outcome = Resolved(tenant)

        if tag != self._current_tag:
            logger.info(
                "Discarding superseded tenant lookup #%d (%s)",
                tag.sequence,
                tag.lookup.describe(),
            )
            return

        if isinstance(outcome, Failed):
            logger.warning(
                "Tenant resolution failed for %s: %s (%s)",
                tag.lookup.describe(),
                outcome.reason,
                outcome.kind.value,
            )
        self._transition(outcome)

    def _transition(self, new_state: ResolutionState) -> None:
        logger.debug(
            "Tenant resolution %s -> %s",
            self._state.status.value,
            new_state.status.value,
        )
        self._state = new_state
