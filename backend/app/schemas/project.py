import uuid
from datetime import date, datetime
from pydantic import BaseModel, field_validator

from app.models import ScheduleDirection


class ProjectCreate(BaseModel):
    """Schema for creating a new project."""
    name: str
    description: str | None = None
    is_template: bool = False
    anchor_date: date | None = None
    schedule_from: ScheduleDirection = ScheduleDirection.START
    deadline: date | None = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""
    name: str | None = None
    description: str | None = None
    anchor_date: date | None = None
    schedule_from: ScheduleDirection | None = None
    deadline: date | None = None

    @field_validator("name", "schedule_from")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ProjectRead(BaseModel):
    """Schema for reading a project with its last computed schedule."""
    id: uuid.UUID
    name: str
    description: str | None
    is_template: bool
    anchor_date: date | None
    schedule_from: ScheduleDirection
    deadline: date | None
    calculated_start_date: date | None
    calculated_end_date: date | None
    is_at_risk: bool
    risk_reason: str | None
    scheduled_at: datetime | None
    calc_version_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TemplateInstantiate(BaseModel):
    """Schema for creating a project from a template."""
    template_id: uuid.UUID
    name: str
    description: str | None = None
    anchor_date: date
    schedule_from: ScheduleDirection = ScheduleDirection.START
    deadline: date | None = None
    require_schedule: bool | None = None  # None = use server setting
