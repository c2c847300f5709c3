import uuid
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from app.models.task import Task


class ScheduleDirection(str, Enum):
    """Which end of the project the anchor date pins."""

    START = "start"  # Anchor is the desired project start; forward pass
    END = "end"  # Anchor is the required project end; backward pass


class Project(SQLModel, table=True):
    """
    Project model - groups tasks and stores the last computed schedule.

    Key fields:
    - anchor_date / schedule_from: the scheduling anchor
    - deadline: committed target end date, used for forward-mode risk
    - calculated_*, is_at_risk, risk_reason: written by the scheduler
    - calc_version_id: changes on every schedule-affecting edit
    """

    __tablename__ = "projects"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)
    is_template: bool = Field(default=False, index=True)

    anchor_date: date | None = Field(default=None)
    schedule_from: ScheduleDirection = Field(default=ScheduleDirection.START)
    deadline: date | None = Field(default=None)

    calculated_start_date: date | None = Field(default=None)
    calculated_end_date: date | None = Field(default=None)
    is_at_risk: bool = Field(default=False)
    risk_reason: str | None = Field(default=None)
    scheduled_at: datetime | None = Field(default=None)
    calc_version_id: uuid.UUID = Field(default_factory=uuid.uuid4)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tasks: list["Task"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"passive_deletes": True},
    )
