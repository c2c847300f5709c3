import uuid
from datetime import date
from pydantic import BaseModel

from app.models import ScheduleDirection
from app.services.scheduler import ProjectSchedule


class ScheduleRequest(BaseModel):
    """
    Schema for running the scheduler on a project.

    Either half of the anchor left empty is taken from the project.
    """
    anchor_date: date | None = None
    schedule_from: ScheduleDirection | None = None
    persist: bool = True


class TaskScheduleRead(BaseModel):
    """Computed dates for one task."""
    task_id: uuid.UUID
    start_date: date
    end_date: date


class ScheduleRead(BaseModel):
    """Schema for a computed project schedule."""
    project_id: uuid.UUID
    direction: ScheduleDirection
    project_start: date
    project_end: date
    is_at_risk: bool
    risk_reason: str | None
    persisted: bool
    tasks: list[TaskScheduleRead]

    @classmethod
    def from_result(
        cls,
        project_id: uuid.UUID,
        result: ProjectSchedule,
        persisted: bool,
    ) -> "ScheduleRead":
        return cls(
            project_id=project_id,
            direction=result.direction,
            project_start=result.project_start,
            project_end=result.project_end,
            is_at_risk=result.is_at_risk,
            risk_reason=result.risk_reason,
            persisted=persisted,
            tasks=[
                TaskScheduleRead(task_id=task_id, start_date=s.start_date, end_date=s.end_date)
                for task_id, s in sorted(
                    result.task_schedules.items(),
                    key=lambda item: (item[1].start_date, str(item[0])),
                )
            ],
        )
