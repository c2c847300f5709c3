"""
Task routes for the Cadence API.

Start and due dates are written by the scheduler only. Creating, resizing
or deleting a task queues a full re-schedule of its project.
"""

import uuid
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.database import get_session
from app.models import Task, Project, Dependency
from app.schemas import TaskCreate, TaskUpdate, TaskRead
from app.worker import request_reschedule
from app.exceptions import NotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Task fields whose change moves dates
SCHEDULE_FIELDS = {"duration_days"}


async def get_task_or_404(session: AsyncSession, task_id: uuid.UUID) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task", str(task_id))
    return task


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    session: AsyncSession = Depends(get_session),
) -> Task:
    """Create a task; it is dated by the project's next schedule run."""
    if await session.get(Project, task_in.project_id) is None:
        raise NotFoundError("Project", str(task_in.project_id))

    task = Task(**task_in.model_dump())
    session.add(task)
    await session.flush()

    logger.info(
        f"Created task: id={task.id} title='{task.title}' "
        f"duration={task.duration_days}d project={task.project_id}"
    )

    await request_reschedule(session, task.project_id)
    await session.refresh(task)
    return task


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    project_id: uuid.UUID | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[Task]:
    """List tasks in display order, optionally for one project."""
    query = select(Task).order_by(Task.order, Task.created_at)
    if project_id:
        query = query.where(Task.project_id == project_id)

    tasks = list((await session.execute(query)).scalars().all())
    logger.debug(f"Listed {len(tasks)} tasks (project={project_id})")
    return tasks


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Task:
    return await get_task_or_404(session, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    session: AsyncSession = Depends(get_session),
) -> Task:
    """
    Update a task.

    Only a duration change queues a re-schedule; renames and reorders do not
    move dates.
    """
    task = await get_task_or_404(session, task_id)
    changes = task_in.model_dump(exclude_unset=True)
    logger.info(f"Updating task {task_id}: {changes}")

    for field, value in changes.items():
        setattr(task, field, value)
    task.updated_at = datetime.utcnow()
    await session.flush()

    if SCHEDULE_FIELDS & changes.keys():
        await request_reschedule(session, task.project_id)

    await session.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete a task together with every edge that touches it."""
    task = await get_task_or_404(session, task_id)
    project_id = task.project_id

    removed = await session.execute(
        delete(Dependency).where(
            (Dependency.predecessor_id == task_id) | (Dependency.successor_id == task_id)
        )
    )
    await session.delete(task)
    await session.flush()

    logger.info(f"Deleted task {task_id} '{task.title}' and {removed.rowcount} dependencies")

    await request_reschedule(session, project_id)
