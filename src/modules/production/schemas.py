"""Pydantic v2 schemas for tenant-scoped production data."""

import datetime
import uuid

from pydantic import BaseModel, ConfigDict

from src.models.enums import HolidayTeam


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    date: datetime.date
    team: HolidayTeam


class WorkstationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    active_workers: int = 0
