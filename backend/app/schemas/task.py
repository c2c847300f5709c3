import uuid
from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: str
    description: str | None = None
    duration_days: int = Field(default=1, ge=1)
    order: int = 0
    project_id: uuid.UUID


class TaskUpdate(BaseModel):
    """Schema for updating a task. Dates are owned by the scheduler."""
    title: str | None = None
    description: str | None = None
    duration_days: int | None = Field(default=None, ge=1)
    order: int | None = None

    @field_validator("title", "duration_days", "order")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class TaskRead(BaseModel):
    """Schema for reading a task with its scheduled dates."""
    id: uuid.UUID
    title: str
    description: str | None
    duration_days: int
    order: int
    start_date: date | None
    due_date: date | None
    project_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
