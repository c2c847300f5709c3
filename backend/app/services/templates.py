"""
Project creation from templates.

A template is an ordinary project flagged is_template. Instantiating it
copies its tasks and dependencies into a fresh project and schedules the
copy from a user-chosen anchor.
"""

import uuid
from collections.abc import Callable
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.config import get_settings
from app.exceptions import (
    CircularDependencyError,
    InvalidInputError,
    NotATemplateError,
    NotFoundError,
)
from app.logging_config import get_logger
from app.models import Project, Task, Dependency
from app.services.recalc import fetch_project_snapshot, schedule_project
from app.services.scheduler import ProjectSchedule, ScheduleAnchor

logger = get_logger(__name__)


async def instantiate_template(
    session: AsyncSession,
    template_id: uuid.UUID,
    name: str,
    anchor: ScheduleAnchor,
    *,
    description: str | None = None,
    deadline: date | None = None,
    require_schedule: bool | None = None,
    clock: Callable[[], date] = date.today,
) -> tuple[Project, ProjectSchedule | None]:
    """
    Copy a template's tasks and dependencies into a new project and schedule it.

    Args:
        session: Database session
        template_id: The template project to copy
        name: Name of the new project
        anchor: Start or end date the new project is pinned to
        deadline: Committed end date, checked in forward mode
        require_schedule: When True, a scheduling failure is raised and the
            caller's transaction should roll back; when False it is logged
            and the project keeps its tasks without dates. Defaults to
            settings.strict_template_scheduling.

    Returns:
        Tuple of (new project, schedule or None when scheduling failed)
    """
    if require_schedule is None:
        require_schedule = get_settings().strict_template_scheduling

    template = await session.get(Project, template_id)
    if template is None:
        raise NotFoundError("Template", str(template_id))
    if not template.is_template:
        raise NotATemplateError(str(template_id))

    project = Project(
        name=name,
        description=description if description is not None else template.description,
        anchor_date=anchor.date,
        schedule_from=anchor.direction,
        deadline=deadline,
    )
    session.add(project)
    await session.flush()

    template_tasks, template_deps = await fetch_project_snapshot(session, template_id)

    # Template task ID -> new project task ID
    id_map: dict[uuid.UUID, uuid.UUID] = {}
    for template_task in template_tasks:
        task = Task(
            title=template_task.title,
            description=template_task.description,
            duration_days=template_task.duration_days,
            order=template_task.order,
            project_id=project.id,
        )
        session.add(task)
        id_map[template_task.id] = task.id

    copied_deps = 0
    for dep in template_deps:
        predecessor_id = id_map.get(dep.predecessor_id)
        if predecessor_id is None:
            logger.warning(
                f"Template {template_id}: skipping dependency on task "
                f"{dep.predecessor_id} outside the template"
            )
            continue
        session.add(Dependency(
            predecessor_id=predecessor_id,
            successor_id=id_map[dep.successor_id],
            type=dep.type,
            lag_days=dep.lag_days,
        ))
        copied_deps += 1

    await session.flush()

    logger.info(
        f"Copied template {template_id} into project {project.id}: "
        f"{len(id_map)} tasks, {copied_deps} dependencies"
    )

    try:
        result = await schedule_project(session, project.id, clock=clock)
    except (CircularDependencyError, InvalidInputError) as exc:
        if require_schedule:
            raise
        logger.warning(
            f"Project {project.id} created without dates; scheduling failed: {exc.message}"
        )
        return project, None

    return project, result


async def list_templates(session: AsyncSession) -> list[Project]:
    """Return all template projects ordered by name."""
    result = await session.execute(
        select(Project).where(Project.is_template == True).order_by(Project.name)  # noqa: E712
    )
    return list(result.scalars().all())
