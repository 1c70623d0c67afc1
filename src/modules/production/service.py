"""Reads of tenant-bound production data, always through the query guard."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import HolidayTeam
from src.models.holiday import Holiday
from src.models.workstation import Workstation
from src.modules.tenancy.query_guard import TenantScope, scoped_select

logger = logging.getLogger(__name__)


class ProductionDataService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_holidays(
        self, tenant_scope: TenantScope, team: HolidayTeam | None = None
    ) -> list[Holiday]:
        """List holidays of the scoped tenant, optionally for one team."""
        query = scoped_select(Holiday, tenant_scope).order_by(Holiday.date)
        if team is not None:
            query = query.where(Holiday.team == team)
        result = await self.db.execute(query.statement)
        return list(result.scalars().all())

    async def list_workstations(self, tenant_scope: TenantScope) -> list[Workstation]:
        query = scoped_select(Workstation, tenant_scope).order_by(Workstation.name)
        result = await self.db.execute(query.statement)
        return list(result.scalars().all())
