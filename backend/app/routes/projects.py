"""
Project routes for the Cadence API.
"""

import uuid
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.database import get_session
from app.models import Project, Task, Dependency
from app.schemas import (
    ProjectCreate,
    ProjectUpdate,
    ProjectRead,
    ScheduleRequest,
    ScheduleRead,
    TemplateInstantiate,
)
from app.services.recalc import schedule_project
from app.services.scheduler import ScheduleAnchor
from app.services.templates import instantiate_template, list_templates
from app.worker import request_reschedule
from app.exceptions import InvalidInputError, NotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Project fields whose change moves dates
SCHEDULE_FIELDS = {"anchor_date", "schedule_from", "deadline"}


async def get_project_or_404(session: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", str(project_id))
    return project


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    session: AsyncSession = Depends(get_session),
) -> Project:
    """Create a new project (or template)."""
    project = Project(**project_in.model_dump())
    session.add(project)
    await session.flush()
    await session.refresh(project)

    logger.info(f"Created project: id={project.id} name='{project.name}' template={project.is_template}")

    return project


@router.get("/", response_model=list[ProjectRead])
async def list_projects(
    session: AsyncSession = Depends(get_session),
) -> list[Project]:
    """List all non-template projects."""
    result = await session.execute(
        select(Project).where(Project.is_template == False)  # noqa: E712
    )
    projects = list(result.scalars().all())

    logger.debug(f"Listed {len(projects)} projects")

    return projects


@router.get("/templates", response_model=list[ProjectRead])
async def get_templates(
    session: AsyncSession = Depends(get_session),
) -> list[Project]:
    """List all template projects."""
    return await list_templates(session)


@router.post(
    "/from-template",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_project_from_template(
    body: TemplateInstantiate,
    session: AsyncSession = Depends(get_session),
) -> Project:
    """
    Create a project by copying a template, then schedule it from the anchor.

    When scheduling fails and require_schedule is off, the project is still
    created; its calculated dates stay empty.
    """
    project, _ = await instantiate_template(
        session,
        body.template_id,
        body.name,
        ScheduleAnchor(date=body.anchor_date, direction=body.schedule_from),
        description=body.description,
        deadline=body.deadline,
        require_schedule=body.require_schedule,
    )
    await session.refresh(project)
    return project


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Project:
    """Get a project by ID."""
    return await get_project_or_404(session, project_id)


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    project_in: ProjectUpdate,
    session: AsyncSession = Depends(get_session),
) -> Project:
    """
    Update a project.

    Changing the anchor, direction or deadline queues a full re-schedule.
    """
    project = await get_project_or_404(session, project_id)

    update_data = project_in.model_dump(exclude_unset=True)

    logger.info(f"Updating project {project_id}: {update_data}")

    for field, value in update_data.items():
        setattr(project, field, value)

    project.updated_at = datetime.utcnow()
    await session.flush()

    if SCHEDULE_FIELDS & update_data.keys():
        await request_reschedule(session, project_id)

    await session.refresh(project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete a project with all its tasks and dependencies."""
    project = await get_project_or_404(session, project_id)

    logger.info(f"Deleting project {project_id}: '{project.name}'")

    task_ids = select(Task.id).where(Task.project_id == project_id)
    await session.execute(
        delete(Dependency).where(
            Dependency.predecessor_id.in_(task_ids) | Dependency.successor_id.in_(task_ids)
        )
    )
    await session.execute(delete(Task).where(Task.project_id == project_id))
    await session.delete(project)


@router.post("/{project_id}/schedule", response_model=ScheduleRead)
async def run_schedule(
    project_id: uuid.UUID,
    body: ScheduleRequest,
    session: AsyncSession = Depends(get_session),
) -> ScheduleRead:
    """
    Compute the project's schedule synchronously.

    An anchor date or direction in the body overrides the stored one (and
    replaces it when persisting); the missing half comes from the project.
    With persist=false the result is returned without touching stored dates.
    """
    anchor = None
    if body.anchor_date is not None or body.schedule_from is not None:
        project = await get_project_or_404(session, project_id)
        anchor_date = body.anchor_date or project.anchor_date
        if anchor_date is None:
            raise InvalidInputError(f"Project {project_id} has no schedule anchor")
        anchor = ScheduleAnchor(
            date=anchor_date,
            direction=body.schedule_from or project.schedule_from,
        )

    result = await schedule_project(session, project_id, anchor, persist=body.persist)

    return ScheduleRead.from_result(project_id, result, persisted=body.persist)
