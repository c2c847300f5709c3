"""
Dependency routes for the Cadence API.

Every accepted edge keeps the project graph acyclic and queues a
re-schedule of the project it belongs to.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.database import get_session
from app.models import Task, Dependency
from app.schemas import DependencyCreate, DependencyRead
from app.services.graph import find_cycle_with_edge
from app.worker import request_reschedule
from app.exceptions import (
    NotFoundError,
    CircularDependencyError,
    DuplicateDependencyError,
    SelfDependencyError,
    CrossProjectDependencyError,
)
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def load_endpoints(session: AsyncSession, dep_in: DependencyCreate) -> tuple[Task, Task]:
    """Fetch both ends of a proposed edge and check they share a project."""
    result = await session.execute(
        select(Task).where(Task.id.in_([dep_in.predecessor_id, dep_in.successor_id]))
    )
    found = {task.id: task for task in result.scalars().all()}

    predecessor = found.get(dep_in.predecessor_id)
    if predecessor is None:
        raise NotFoundError("Predecessor task", str(dep_in.predecessor_id))
    successor = found.get(dep_in.successor_id)
    if successor is None:
        raise NotFoundError("Successor task", str(dep_in.successor_id))

    if predecessor.project_id != successor.project_id:
        logger.warning(
            f"Cross-project dependency rejected: "
            f"{predecessor.project_id} -> {successor.project_id}"
        )
        raise CrossProjectDependencyError(str(predecessor.project_id), str(successor.project_id))

    return predecessor, successor


@router.post("/", response_model=DependencyRead, status_code=status.HTTP_201_CREATED)
async def create_dependency(
    dep_in: DependencyCreate,
    session: AsyncSession = Depends(get_session),
) -> Dependency:
    """
    Add an FS or SS edge between two tasks of the same project.

    Rejected with 400 when it would close a cycle; the error carries the
    cycle path.
    """
    edge = f"{dep_in.predecessor_id} -> {dep_in.successor_id} ({dep_in.type.value})"
    logger.info(f"Creating dependency: {edge}")

    if dep_in.predecessor_id == dep_in.successor_id:
        logger.warning(f"Self-dependency rejected: {dep_in.predecessor_id}")
        raise SelfDependencyError(str(dep_in.predecessor_id))

    predecessor, successor = await load_endpoints(session, dep_in)
    project_id = predecessor.project_id

    if await session.get(Dependency, (dep_in.predecessor_id, dep_in.successor_id)):
        logger.warning(f"Duplicate dependency rejected: {edge}")
        raise DuplicateDependencyError(str(dep_in.predecessor_id), str(dep_in.successor_id))

    cycle = await find_cycle_with_edge(
        session, project_id, dep_in.predecessor_id, dep_in.successor_id
    )
    if cycle:
        logger.warning(f"Dependency {edge} rejected, it would close a cycle of {len(cycle)} tasks")
        raise CircularDependencyError(dep_in.successor_id, cycle)

    if dep_in.lag_days:
        logger.debug(f"Dependency {edge} stores lag_days={dep_in.lag_days}; lag is not scheduled")

    dependency = Dependency(**dep_in.model_dump())
    session.add(dependency)
    await session.flush()
    await session.refresh(dependency)

    logger.info(f"Created dependency: {predecessor.title} -> {successor.title} (project={project_id})")

    await request_reschedule(session, project_id)

    return dependency


@router.get("/", response_model=list[DependencyRead])
async def list_dependencies(
    project_id: uuid.UUID | None = None,
    task_id: uuid.UUID | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[Dependency]:
    """
    List dependencies.

    Optionally filter by:
    - project_id: every edge whose successor belongs to the project
    - task_id: edges where the task is predecessor or successor
    """
    query = select(Dependency).order_by(Dependency.created_at)
    if project_id:
        project_tasks = select(Task.id).where(Task.project_id == project_id)
        query = query.where(Dependency.successor_id.in_(project_tasks))
    elif task_id:
        query = query.where(
            (Dependency.predecessor_id == task_id) | (Dependency.successor_id == task_id)
        )

    result = await session.execute(query)
    dependencies = list(result.scalars().all())

    logger.debug(f"Listed {len(dependencies)} dependencies")

    return dependencies


@router.delete(
    "/{predecessor_id}/{successor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_dependency(
    predecessor_id: uuid.UUID,
    successor_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> None:
    """Remove an edge; the successor's project is re-scheduled."""
    dependency = await session.get(Dependency, (predecessor_id, successor_id))
    if not dependency:
        raise NotFoundError("Dependency", f"{predecessor_id}/{successor_id}")

    logger.info(f"Deleting dependency: {predecessor_id} -> {successor_id}")

    successor = await session.get(Task, successor_id)

    await session.delete(dependency)
    await session.flush()

    if successor:
        await request_reschedule(session, successor.project_id)
