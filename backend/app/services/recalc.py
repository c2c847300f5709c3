"""
Schedule recalculation service.

Bridges stored projects and the in-memory scheduler:
- Reads a consistent snapshot of a project's tasks and dependencies
- Runs a full forward or backward pass from the project's anchor
- Writes per-task dates and the project envelope back in the same session

A failed computation writes nothing, so previously stored dates survive.
"""

import uuid
from collections.abc import Callable
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.database import get_session_context
from app.exceptions import CadenceException, InvalidInputError, NotFoundError
from app.logging_config import get_logger
from app.models import Project, Task, Dependency
from app.services.scheduler import (
    ProjectSchedule,
    ScheduleAnchor,
    ScheduleTask,
    TaskDependency,
    compute_project_schedule,
)

logger = get_logger(__name__)


async def reschedule_project(ctx: dict, project_id: str, version_id: str) -> str:
    """
    ARQ job: recompute and store the full schedule of a project.

    Args:
        ctx: ARQ context
        project_id: The project whose tasks or dependencies changed
        version_id: The project's calc_version_id when the job was queued

    Returns:
        Status message
    """
    async with get_session_context() as session:
        return await reschedule_if_current(session, uuid.UUID(project_id), version_id)


async def reschedule_if_current(
    session: AsyncSession,
    project_id: uuid.UUID,
    version_id: str,
    clock: Callable[[], date] = date.today,
) -> str:
    """Run a queued re-schedule unless a newer edit has superseded it."""
    project = await session.get(Project, project_id)
    if project is None:
        return f"Project {project_id} not found - may have been deleted"

    if str(project.calc_version_id) != version_id:
        return f"Stale job: version mismatch (expected {version_id}, got {project.calc_version_id})"

    if project.anchor_date is None:
        return "Project has no schedule anchor"

    try:
        result = await schedule_project(session, project_id, clock=clock)
    except CadenceException as exc:
        logger.warning(f"Re-schedule of project {project_id} failed: {exc.message}")
        return f"Error: {exc.message}"

    return f"Scheduled {len(result.task_schedules)} tasks"


async def fetch_project_snapshot(
    session: AsyncSession,
    project_id: uuid.UUID,
) -> tuple[list[Task], list[Dependency]]:
    """
    Fetch all tasks of a project and every dependency pointing into them.

    Dependencies whose predecessor lies outside the project are kept here;
    the scheduler drops them as dangling references.
    """
    tasks_result = await session.execute(
        select(Task).where(Task.project_id == project_id).order_by(Task.order)
    )
    tasks = list(tasks_result.scalars().all())
    if not tasks:
        return [], []

    task_ids = [t.id for t in tasks]
    deps_result = await session.execute(
        select(Dependency).where(Dependency.successor_id.in_(task_ids))
    )
    dependencies = list(deps_result.scalars().all())

    return tasks, dependencies


def to_schedule_tasks(
    tasks: list[Task],
    dependencies: list[Dependency],
) -> list[ScheduleTask]:
    """Convert stored rows into scheduler input, keeping dependency order stable."""
    incoming: dict[uuid.UUID, list[TaskDependency]] = {t.id: [] for t in tasks}
    for dep in sorted(dependencies, key=lambda d: (d.created_at, str(d.predecessor_id))):
        incoming[dep.successor_id].append(
            TaskDependency(
                predecessor_id=dep.predecessor_id,
                type=dep.type,
                lag_days=dep.lag_days,
            )
        )

    return [
        ScheduleTask(id=t.id, duration=t.duration_days, dependencies=incoming[t.id])
        for t in tasks
    ]


async def schedule_project(
    session: AsyncSession,
    project_id: uuid.UUID,
    anchor: ScheduleAnchor | None = None,
    *,
    persist: bool = True,
    clock: Callable[[], date] = date.today,
) -> ProjectSchedule:
    """
    Compute the schedule of a stored project and optionally persist it.

    Args:
        session: Database session
        project_id: The project to schedule
        anchor: Overrides (and, when persisting, replaces) the stored anchor
        persist: Write task dates and the envelope back to the database
        clock: Returns today's date for backward-mode risk evaluation
    """
    project = await session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", str(project_id))

    if anchor is None:
        if project.anchor_date is None:
            raise InvalidInputError(f"Project {project_id} has no schedule anchor")
        anchor = ScheduleAnchor(date=project.anchor_date, direction=project.schedule_from)

    tasks, dependencies = await fetch_project_snapshot(session, project_id)

    result = compute_project_schedule(
        to_schedule_tasks(tasks, dependencies),
        anchor,
        target_end_date=project.deadline,
        clock=clock,
    )

    if persist:
        await apply_schedule(session, project, tasks, anchor, result)

    return result


async def apply_schedule(
    session: AsyncSession,
    project: Project,
    tasks: list[Task],
    anchor: ScheduleAnchor,
    result: ProjectSchedule,
) -> None:
    """Write a computed schedule onto the loaded project and task rows."""
    now = datetime.utcnow()

    for task in tasks:
        dates = result.task_schedules[task.id]
        if task.start_date != dates.start_date or task.due_date != dates.end_date:
            task.start_date = dates.start_date
            task.due_date = dates.end_date
            task.updated_at = now
            session.add(task)

    project.anchor_date = anchor.date
    project.schedule_from = result.direction
    project.calculated_start_date = result.project_start
    project.calculated_end_date = result.project_end
    project.is_at_risk = result.is_at_risk
    project.risk_reason = result.risk_reason
    project.scheduled_at = now
    project.updated_at = now
    session.add(project)

    await session.flush()

    if result.is_at_risk:
        logger.warning(f"Project {project.id} at risk: {result.risk_reason}")
