from app.models.project import Project, ScheduleDirection
from app.models.task import Task
from app.models.dependency import Dependency, DependencyType

__all__ = [
    "Project",
    "ScheduleDirection",
    "Task",
    "Dependency",
    "DependencyType",
]
