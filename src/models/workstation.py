from __future__ import annotations

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TenantBoundMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Workstation(UUIDPrimaryKeyMixin, TenantBoundMixin, TimestampMixin, Base):
    __tablename__ = "workstations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    active_workers: Mapped[int] = mapped_column(Integer, server_default="0", nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_workstations_tenant_name"),
    )
