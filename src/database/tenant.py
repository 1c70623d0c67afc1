from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# PostgreSQL session variable names read by the RLS policies
SESSION_VAR_TENANT_ID = "app.current_tenant_id"
SESSION_VAR_USER_ID = "app.current_user_id"
SESSION_VAR_ROLE = "app.current_role"
SESSION_VAR_RLS_BYPASS = "app.rls_bypass"


async def set_tenant_context(
    session: AsyncSession,
    tenant_id: str,
    user_id: str | None = None,
    role: str | None = None,
) -> None:
    """Set PostgreSQL session variables for RLS tenant isolation.

    Uses SET LOCAL semantics so variables are scoped to the current transaction.
    """
    await session.execute(
        text(f"SELECT set_config('{SESSION_VAR_TENANT_ID}', :tenant_id, true)"),
        {"tenant_id": str(tenant_id)},
    )
    if user_id:
        await session.execute(
            text(f"SELECT set_config('{SESSION_VAR_USER_ID}', :user_id, true)"),
            {"user_id": str(user_id)},
        )
    if role:
        await session.execute(
            text(f"SELECT set_config('{SESSION_VAR_ROLE}', :role, true)"),
            {"role": role},
        )
    await session.execute(
        text(f"SELECT set_config('{SESSION_VAR_RLS_BYPASS}', 'false', true)")
    )


async def set_rls_bypass(session: AsyncSession, *, enable: bool = True) -> None:
    """Enable or disable the developer RLS bypass for the current transaction."""
    await session.execute(
        text(f"SELECT set_config('{SESSION_VAR_RLS_BYPASS}', :val, true)"),
        {"val": "true" if enable else "false"},
    )
