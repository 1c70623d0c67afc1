from __future__ import annotations

import datetime

from sqlalchemy import Date, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TenantBoundMixin, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import HolidayTeam


class Holiday(UUIDPrimaryKeyMixin, TenantBoundMixin, TimestampMixin, Base):
    __tablename__ = "holidays"

    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    team: Mapped[HolidayTeam] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "date", "team", name="uq_holidays_tenant_date_team"),
        Index("ix_holidays_tenant_date", "tenant_id", "date"),
    )
