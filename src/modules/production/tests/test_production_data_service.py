"""Unit tests for ProductionDataService."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from src.models.enums import HolidayTeam
from src.modules.production.service import ProductionDataService
from src.modules.tenancy.query_guard import TenantScope

TENANT_A = "11111111-1111-1111-1111-111111111111"


def _mock_db_returning(rows):
    db = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    db.execute.return_value = result
    return db


def _executed_sql(db) -> tuple[str, dict]:
    compiled = db.execute.await_args.args[0].compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


@pytest.mark.asyncio
async def test_list_workstations_is_tenant_filtered():
    rows = [MagicMock(id=uuid.uuid4(), name="CNC")]
    db = _mock_db_returning(rows)

    result = await ProductionDataService(db).list_workstations(TenantScope.for_tenant(TENANT_A))

    assert result == rows
    sql, params = _executed_sql(db)
    assert "workstations.tenant_id" in sql
    assert "ORDER BY workstations.name" in sql
    assert TENANT_A in params.values()


@pytest.mark.asyncio
async def test_list_holidays_filters_team_within_tenant():
    db = _mock_db_returning([])

    await ProductionDataService(db).list_holidays(
        TenantScope.for_tenant(TENANT_A), team=HolidayTeam.INSTALLATION
    )

    sql, params = _executed_sql(db)
    assert "holidays.tenant_id" in sql
    assert "holidays.team" in sql
    assert TENANT_A in params.values()


@pytest.mark.asyncio
async def test_all_tenants_scope_lists_without_tenant_filter():
    db = _mock_db_returning([])

    await ProductionDataService(db).list_holidays(TenantScope.all_tenants("planning overview"))

    sql, _ = _executed_sql(db)
    assert "tenant_id =" not in sql
