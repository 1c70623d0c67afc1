"""Application-level tenant filter for data queries.

Developer sessions bypass row-level security in the database so they can
administer any tenant. While such a session views a tenant, this guard is what
keeps its reads and writes inside that tenant, so every tenant-bound query is
built through ``scoped_select`` with an explicit ``TenantScope``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from sqlalchemy import Select, select

from src.database.base import TenantBoundMixin
from src.exceptions import CallerContractError
from src.modules.tenancy.schemas import ResolutionState, Resolved

logger = logging.getLogger(__name__)

Q = TypeVar("Q", bound="TenantScopable")


class TenantScopable(Protocol):
    def restrict_to_tenant(self: Q, tenant_id: str) -> Q: ...


def scope(query: Q, tenant_id: str | None) -> Q:
    """Restrict ``query`` to ``tenant_id``; return it unchanged when no id is given.

    The id is not validated here. It must come from a ``Resolved`` state.
    """
    if tenant_id:
        return query.restrict_to_tenant(tenant_id)
    return query


class TenantScopedSelect:
    """Immutable wrapper around a ``Select`` over one tenant-bound model."""

    def __init__(self, model: type[TenantBoundMixin], statement: Select | None = None) -> None:
        if not (isinstance(model, type) and issubclass(model, TenantBoundMixin)):
            raise CallerContractError(f"{model!r} is not a tenant-bound model")
        self.model = model
        self.statement = statement if statement is not None else select(model)

    def restrict_to_tenant(self, tenant_id: str) -> TenantScopedSelect:
        return TenantScopedSelect(
            self.model, self.statement.where(self.model.tenant_id == tenant_id)
        )

    def where(self, *criteria: Any) -> TenantScopedSelect:
        return TenantScopedSelect(self.model, self.statement.where(*criteria))

    def order_by(self, *clauses: Any) -> TenantScopedSelect:
        return TenantScopedSelect(self.model, self.statement.order_by(*clauses))

    def limit(self, limit: int) -> TenantScopedSelect:
        return TenantScopedSelect(self.model, self.statement.limit(limit))


@dataclass(frozen=True)
class TenantScope:
    """Which tenants a data call may touch.

    Build one with ``for_tenant``, ``from_state`` or, for cross-tenant
    administration, ``all_tenants`` with a stated reason.
    """

    tenant_id: str | None
    all_tenants_reason: str | None = None

    @classmethod
    def for_tenant(cls, tenant_id: str) -> TenantScope:
        if not tenant_id:
            raise CallerContractError("Tenant scope requires a tenant id")
        return cls(tenant_id=tenant_id)

    @classmethod
    def all_tenants(cls, reason: str) -> TenantScope:
        if not reason or not reason.strip():
            raise CallerContractError("All-tenants scope requires a reason")
        return cls(tenant_id=None, all_tenants_reason=reason.strip())

    @classmethod
    def from_state(cls, state: ResolutionState) -> TenantScope:
        if not isinstance(state, Resolved):
            raise CallerContractError(
                f"Tenant-scoped access requires a resolved tenant (state: {state.status.value})"
            )
        return cls.for_tenant(state.tenant.id)

    @property
    def is_all_tenants(self) -> bool:
        return self.tenant_id is None


def scoped_select(model: type[TenantBoundMixin], tenant_scope: TenantScope) -> TenantScopedSelect:
    """Single entry point for tenant-bound reads."""
    if not isinstance(tenant_scope, TenantScope):
        raise CallerContractError("Tenant-bound queries require an explicit TenantScope")
    query = TenantScopedSelect(model)
    if tenant_scope.is_all_tenants:
        logger.info(
            "All-tenants query on %s: %s",
            model.__name__,
            tenant_scope.all_tenants_reason,
        )
    return scope(query, tenant_scope.tenant_id)
