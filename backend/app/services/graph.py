"""
Graph operations using NetworkX.

This module handles:
- Building the precedence graph for one project's schedule computation
- Dependency-ordered traversal with cycle detection
- Write-time cycle checks for new dependency edges
"""

import uuid
from collections.abc import Hashable, Iterable
from typing import TYPE_CHECKING

import networkx as nx
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.exceptions import CircularDependencyError, InvalidInputError
from app.logging_config import get_logger
from app.models import Task, Dependency, DependencyType

if TYPE_CHECKING:
    from app.services.scheduler import ScheduleTask

logger = get_logger(__name__)


def build_dependency_graph(tasks: Iterable["ScheduleTask"]) -> nx.DiGraph:
    """
    Build a DiGraph from a flat task list scoped to one project.

    Returns a graph where:
    - Nodes are task IDs, with the ScheduleTask stored under 'task'
    - Edges go from predecessor -> successor, carrying 'type' and 'lag_days'

    Dependencies on task IDs outside the list are dropped with a warning.
    When the same pair is linked twice, FS wins over SS since it is the
    tighter constraint in both directions.
    """
    tasks = list(tasks)
    graph = nx.DiGraph()

    for task in tasks:
        if task.id in graph:
            raise InvalidInputError(f"Duplicate task id {task.id}", task_id=task.id)
        graph.add_node(task.id, task=task)

    for task in tasks:
        for dep in task.dependencies:
            if dep.predecessor_id not in graph:
                logger.warning(
                    f"Dropping dangling dependency: task {task.id} references "
                    f"missing predecessor {dep.predecessor_id}"
                )
                continue

            try:
                dep_type = DependencyType(dep.type)
            except ValueError:
                raise InvalidInputError(
                    f"Unknown dependency type {dep.type!r} on task {task.id}",
                    task_id=task.id,
                ) from None

            if dep.lag_days:
                logger.debug(
                    f"Ignoring lag of {dep.lag_days} days on "
                    f"{dep.predecessor_id} -> {task.id}"
                )

            existing = graph.get_edge_data(dep.predecessor_id, task.id)
            if existing is not None and existing["type"] == DependencyType.FS:
                continue

            graph.add_edge(
                dep.predecessor_id,
                task.id,
                type=dep_type,
                lag_days=dep.lag_days,
            )

    return graph


def scheduling_order(graph: nx.DiGraph) -> list[Hashable]:
    """
    Return task IDs so that every predecessor comes before its successors.

    The traversal is iterative, so long chains do not grow the call stack.
    Reverse the result for the backward pass.

    Raises:
        CircularDependencyError: the graph contains a cycle
    """
    try:
        return list(nx.topological_sort(graph))
    except nx.NetworkXUnfeasible:
        cycle = [u for u, _ in nx.find_cycle(graph)]
        logger.warning(f"Circular dependency detected: {cycle}")
        raise CircularDependencyError(cycle[0], cycle) from None


async def build_project_graph(
    session: AsyncSession,
    project_id: uuid.UUID,
) -> nx.DiGraph:
    """
    Build a DiGraph from the stored tasks and dependencies of a project.

    Nodes are task IDs; edges go from predecessor -> successor.
    """
    tasks_result = await session.execute(
        select(Task.id).where(Task.project_id == project_id)
    )
    task_ids = [row[0] for row in tasks_result.all()]

    deps_result = await session.execute(
        select(Dependency).where(Dependency.predecessor_id.in_(task_ids))
    )
    dependencies = deps_result.scalars().all()

    graph = nx.DiGraph()
    graph.add_nodes_from(task_ids)
    for dep in dependencies:
        graph.add_edge(dep.predecessor_id, dep.successor_id, type=dep.type)

    return graph


async def find_cycle_with_edge(
    session: AsyncSession,
    project_id: uuid.UUID,
    new_predecessor_id: uuid.UUID,
    new_successor_id: uuid.UUID,
) -> list[uuid.UUID] | None:
    """
    Return the cycle that adding predecessor -> successor would close.

    The path starts at the new predecessor. None means the edge is safe.
    """
    graph = await build_project_graph(session, project_id)
    graph.add_edge(new_predecessor_id, new_successor_id)

    try:
        edges = nx.find_cycle(graph, source=new_predecessor_id)
    except nx.NetworkXNoCycle:
        return None
    return [u for u, _ in edges]
