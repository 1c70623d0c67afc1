"""Run data access inside a tenant-scoped transaction."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.tenant import set_rls_bypass, set_tenant_context
from src.exceptions import ForbiddenException
from src.modules.tenancy.access import AccessPrincipal, Role
from src.modules.tenancy.query_guard import TenantScope

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _authorize_scope(principal: AccessPrincipal, tenant_scope: TenantScope) -> None:
    if principal.role == Role.DEVELOPER:
        return
    if tenant_scope.is_all_tenants:
        raise ForbiddenException("Only developers may query across tenants")
    if principal.tenant_id != tenant_scope.tenant_id:
        raise ForbiddenException("You are not a member of this tenant")


async def with_tenant_scope(
    session: AsyncSession,
    tenant_scope: TenantScope,
    principal: AccessPrincipal,
    callback: Callable[[AsyncSession], Awaitable[T]],
) -> T:
    """Execute ``callback`` with the session variables RLS policies read.

    Tenant members get plain tenant context. Developers get the RLS bypass on
    top, so the queries built inside ``callback`` must be constructed with
    ``scoped_select`` using the same ``tenant_scope``. The bypass is reset
    whatever the callback's outcome.
    """
    _authorize_scope(principal, tenant_scope)

    if tenant_scope.tenant_id is not None:
        await set_tenant_context(
            session,
            tenant_id=tenant_scope.tenant_id,
            user_id=principal.user_id,
            role=principal.role.value,
        )

    if principal.role != Role.DEVELOPER:
        return await callback(session)

    await set_rls_bypass(session, enable=True)
    if tenant_scope.is_all_tenants:
        logger.info(
            "RLS bypass for developer=%s across all tenants: %s",
            principal.user_id,
            tenant_scope.all_tenants_reason,
        )
    else:
        logger.info(
            "RLS bypass for developer=%s viewing tenant=%s",
            principal.user_id,
            tenant_scope.tenant_id,
        )
    try:
        return await callback(session)
    finally:
        await set_rls_bypass(session, enable=False)
