"""Tests for with_tenant_scope: RLS session variables and authorization."""

from unittest.mock import AsyncMock

import pytest

from src.exceptions import ForbiddenException
from src.modules.tenancy.access import AccessPrincipal, Role
from src.modules.tenancy.query_guard import TenantScope
from src.modules.tenancy.service import with_tenant_scope

TENANT_A = "11111111-1111-1111-1111-111111111111"
TENANT_B = "22222222-2222-2222-2222-222222222222"


def _executed(db: AsyncMock) -> list[tuple[str, dict]]:
    """Flatten session.execute calls into (sql, params) pairs."""
    calls = []
    for call in db.execute.await_args_list:
        statement = str(call.args[0])
        params = call.args[1] if len(call.args) > 1 else {}
        calls.append((statement, params))
    return calls


@pytest.mark.asyncio
async def test_member_gets_tenant_context_without_bypass():
    db = AsyncMock()
    principal = AccessPrincipal(role=Role.MANAGER, tenant_id=TENANT_A, user_id="u-1")
    callback = AsyncMock(return_value=["row"])

    result = await with_tenant_scope(db, TenantScope.for_tenant(TENANT_A), principal, callback)

    assert result == ["row"]
    callback.assert_awaited_once_with(db)
    executed = _executed(db)
    assert any("app.current_tenant_id" in sql and params == {"tenant_id": TENANT_A} for sql, params in executed)
    assert not any(params == {"val": "true"} for _, params in executed)


@pytest.mark.asyncio
async def test_member_cannot_scope_to_other_tenant():
    db = AsyncMock()
    principal = AccessPrincipal(role=Role.ADMIN, tenant_id=TENANT_A)
    callback = AsyncMock()

    with pytest.raises(ForbiddenException):
        await with_tenant_scope(db, TenantScope.for_tenant(TENANT_B), principal, callback)

    callback.assert_not_awaited()
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_member_cannot_use_all_tenants_scope():
    principal = AccessPrincipal(role=Role.ADMIN, tenant_id=TENANT_A)
    with pytest.raises(ForbiddenException):
        await with_tenant_scope(
            AsyncMock(), TenantScope.all_tenants("report"), principal, AsyncMock()
        )


@pytest.mark.asyncio
async def test_developer_bypass_is_enabled_then_reset():
    db = AsyncMock()
    principal = AccessPrincipal(role=Role.DEVELOPER, user_id="dev-1")

    await with_tenant_scope(db, TenantScope.for_tenant(TENANT_B), principal, AsyncMock())

    bypass_values = [params["val"] for _, params in _executed(db) if "val" in params]
    assert bypass_values == ["true", "false"]


@pytest.mark.asyncio
async def test_developer_bypass_is_reset_when_callback_fails():
    db = AsyncMock()
    principal = AccessPrincipal(role=Role.DEVELOPER, user_id="dev-1")
    callback = AsyncMock(side_effect=RuntimeError("boom"))

    with pytest.raises(RuntimeError):
        await with_tenant_scope(db, TenantScope.for_tenant(TENANT_B), principal, callback)

    bypass_values = [params["val"] for _, params in _executed(db) if "val" in params]
    assert bypass_values[-1] == "false"


@pytest.mark.asyncio
async def test_developer_all_tenants_sets_no_tenant_context():
    db = AsyncMock()
    principal = AccessPrincipal(role=Role.DEVELOPER, user_id="dev-1")

    await with_tenant_scope(db, TenantScope.all_tenants("cross-tenant audit"), principal, AsyncMock())

    assert not any("app.current_tenant_id" in sql for sql, _ in _executed(db))
