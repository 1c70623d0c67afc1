"""Tenant-scoped production data endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import HolidayTeam
from src.modules.production.schemas import HolidayResponse, WorkstationResponse
from src.modules.production.service import ProductionDataService
from src.modules.tenancy.access import AccessPrincipal
from src.modules.tenancy.dependencies import require_access, require_language, require_tenant_scope
from src.modules.tenancy.query_guard import TenantScope
from src.modules.tenancy.service import with_tenant_scope

router = APIRouter(
    prefix="/{tenant}/{lang}",
    tags=["production"],
    dependencies=[Depends(require_language)],
)


@router.get("/holidays", response_model=list[HolidayResponse])
async def list_holidays(
    team: HolidayTeam | None = Query(None),
    principal: AccessPrincipal = Depends(require_access("holidays")),
    tenant_scope: TenantScope = Depends(require_tenant_scope),
    db: AsyncSession = Depends(get_db),
):
    """List the tenant's production and installation holidays."""
    return await with_tenant_scope(
        db,
        tenant_scope,
        principal,
        lambda session: ProductionDataService(session).list_holidays(tenant_scope, team),
    )


@router.get("/workstations", response_model=list[WorkstationResponse])
async def list_workstations(
    principal: AccessPrincipal = Depends(require_access("workstations")),
    tenant_scope: TenantScope = Depends(require_tenant_scope),
    db: AsyncSession = Depends(get_db),
):
    return await with_tenant_scope(
        db,
        tenant_scope,
        principal,
        lambda session: ProductionDataService(session).list_workstations(tenant_scope),
    )
