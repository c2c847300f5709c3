from app.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectRead,
    TemplateInstantiate,
)
from app.schemas.task import TaskCreate, TaskUpdate, TaskRead
from app.schemas.dependency import DependencyCreate, DependencyRead
from app.schemas.schedule import ScheduleRequest, ScheduleRead, TaskScheduleRead

__all__ = [
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectRead",
    "TemplateInstantiate",
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "DependencyCreate",
    "DependencyRead",
    "ScheduleRequest",
    "ScheduleRead",
    "TaskScheduleRead",
]
