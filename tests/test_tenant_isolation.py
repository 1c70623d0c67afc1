"""Tests for tenant isolation via PostgreSQL session variables (RLS)."""

import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.tenant import set_rls_bypass, set_tenant_context
from src.modules.tenancy.access import AccessPrincipal, Role
from src.modules.tenancy.query_guard import TenantScope
from src.modules.tenancy.service import with_tenant_scope


async def _setting(session: AsyncSession, name: str) -> str | None:
    result = await session.execute(text(f"SELECT current_setting('{name}', true)"))
    return result.scalar()


@pytest.mark.asyncio
async def test_tenant_context_sets_session_variables(async_session: AsyncSession) -> None:
    """Verify that set_tenant_context correctly sets PostgreSQL session variables."""
    tenant_id = str(uuid.uuid4())
    user_id = str(uuid.uuid4())

    await set_tenant_context(async_session, tenant_id=tenant_id, user_id=user_id, role="manager")

    assert await _setting(async_session, "app.current_tenant_id") == tenant_id
    assert await _setting(async_session, "app.current_user_id") == user_id
    assert await _setting(async_session, "app.current_role") == "manager"
    assert await _setting(async_session, "app.rls_bypass") == "false"


@pytest.mark.asyncio
async def test_rls_bypass_toggles(async_session: AsyncSession) -> None:
    await set_tenant_context(async_session, tenant_id=str(uuid.uuid4()))

    await set_rls_bypass(async_session, enable=True)
    assert await _setting(async_session, "app.rls_bypass") == "true"

    await set_rls_bypass(async_session, enable=False)
    assert await _setting(async_session, "app.rls_bypass") == "false"


@pytest.mark.asyncio
async def test_developer_scope_bypasses_inside_callback_only(async_session: AsyncSession) -> None:
    tenant_id = str(uuid.uuid4())
    developer = AccessPrincipal(role=Role.DEVELOPER, user_id=str(uuid.uuid4()))

    async def read_settings(session: AsyncSession) -> tuple[str | None, str | None]:
        return (
            await _setting(session, "app.current_tenant_id"),
            await _setting(session, "app.rls_bypass"),
        )

    inside = await with_tenant_scope(
        async_session, TenantScope.for_tenant(tenant_id), developer, read_settings
    )

    assert inside == (tenant_id, "true")
    assert await _setting(async_session, "app.rls_bypass") == "false"


@pytest.mark.asyncio
async def test_missing_context_reads_empty(async_session: AsyncSession) -> None:
    """Unset session variables read as empty, which the RLS policies treat as no access."""
    value = await _setting(async_session, "app.current_tenant_id")
    assert value is None or value == ""
