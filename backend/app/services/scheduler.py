"""
Working-day project scheduler.

Assigns start/end dates to every task of a project from a single anchor:
- Forward pass: anchor is the desired project start; each task starts as
  early as its predecessors allow
- Backward pass: anchor is the required project end; each task ends as
  late as its successors allow

Constraints per dependency edge (predecessor -> successor):
- FS: successor.start >= predecessor.end + 1 working day
- SS: successor.start >= predecessor.start

Everything here is pure and in-memory: the same input (and the same clock,
for backward-mode risk) always yields the same output, and a failure never
leaves a partial schedule behind.
"""

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

import networkx as nx

from app.exceptions import InvalidInputError
from app.logging_config import get_logger
from app.models import DependencyType, ScheduleDirection
from app.services.graph import build_dependency_graph, scheduling_order
from app.services.risk import evaluate_risk
from app.services.workdays import (
    add_working_days,
    next_working_day,
    previous_working_day,
    subtract_working_days,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskDependency:
    """An incoming edge: this task waits on `predecessor_id`."""
    predecessor_id: Hashable
    type: DependencyType = DependencyType.FS
    lag_days: int = 0  # Stored only; never applied


@dataclass
class ScheduleTask:
    """A task as seen by the scheduler."""
    id: Hashable
    duration: int | None = 1  # Working days; None means 1
    dependencies: list[TaskDependency] = field(default_factory=list)


@dataclass(frozen=True)
class ScheduleAnchor:
    """The single date a schedule is pinned to."""
    date: date
    direction: ScheduleDirection = ScheduleDirection.START


@dataclass(frozen=True)
class TaskSchedule:
    """Computed dates for one task (both inclusive working days)."""
    start_date: date
    end_date: date


@dataclass
class ProjectSchedule:
    """Complete result of one schedule computation."""
    task_schedules: dict[Hashable, TaskSchedule]
    project_start: date
    project_end: date
    direction: ScheduleDirection
    is_at_risk: bool = False
    risk_reason: str | None = None


def task_duration(task: ScheduleTask) -> int:
    """Return the task's duration in working days, rejecting non-positive values."""
    duration = task.duration
    if duration is None:
        return 1
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise InvalidInputError(
            f"Task {task.id} has a non-integer duration: {duration!r}",
            task_id=task.id,
        )
    if duration < 1:
        raise InvalidInputError(
            f"Task {task.id} has a non-positive duration: {duration}",
            task_id=task.id,
        )
    return duration


def _validated_anchor(anchor: ScheduleAnchor) -> ScheduleAnchor:
    anchor_date = anchor.date
    if isinstance(anchor_date, datetime):
        anchor_date = anchor_date.date()
    elif not isinstance(anchor_date, date):
        raise InvalidInputError(f"Anchor date is malformed: {anchor.date!r}")

    try:
        direction = ScheduleDirection(anchor.direction)
    except ValueError:
        raise InvalidInputError(
            f"Anchor direction must be 'start' or 'end', got {anchor.direction!r}"
        ) from None

    return ScheduleAnchor(date=anchor_date, direction=direction)


def schedule_forward(graph: nx.DiGraph, project_start: date) -> dict[Hashable, TaskSchedule]:
    """
    Forward pass: earliest feasible dates from a project start anchor.

    A task with no dependencies starts on the anchor (moved to Monday if the
    anchor is a weekend day).
    """
    schedule: dict[Hashable, TaskSchedule] = {}

    for task_id in scheduling_order(graph):
        start = project_start

        for pred_id, _, edge in graph.in_edges(task_id, data=True):
            pred = schedule[pred_id]
            if edge["type"] == DependencyType.FS:
                constraint = add_working_days(pred.end_date, 1)
            else:
                constraint = pred.start_date
            start = max(start, constraint)

        start = next_working_day(start)
        duration = task_duration(graph.nodes[task_id]["task"])
        schedule[task_id] = TaskSchedule(
            start_date=start,
            end_date=add_working_days(start, duration - 1),
        )

    return schedule


def schedule_backward(graph: nx.DiGraph, project_end: date) -> dict[Hashable, TaskSchedule]:
    """
    Backward pass: latest feasible dates from a required project end anchor.

    Tasks are visited only after all of their successors. A task with no
    successors ends on the anchor (moved back to Friday if the anchor is a
    weekend day).
    """
    schedule: dict[Hashable, TaskSchedule] = {}

    for task_id in reversed(scheduling_order(graph)):
        end = project_end

        for _, succ_id, edge in graph.out_edges(task_id, data=True):
            succ = schedule[succ_id]
            if edge["type"] == DependencyType.FS:
                constraint = subtract_working_days(succ.start_date, 1)
            else:
                constraint = succ.start_date
            end = min(end, constraint)

        end = previous_working_day(end)
        duration = task_duration(graph.nodes[task_id]["task"])
        schedule[task_id] = TaskSchedule(
            start_date=subtract_working_days(end, duration - 1),
            end_date=end,
        )

    return schedule


def compute_project_schedule(
    tasks: Iterable[ScheduleTask],
    anchor: ScheduleAnchor,
    *,
    target_end_date: date | None = None,
    clock: Callable[[], date] = date.today,
) -> ProjectSchedule:
    """
    Schedule every task of one project and derive the project envelope.

    Args:
        tasks: All tasks of the project, with their dependencies
        anchor: Start anchor (forward pass) or required end (backward pass)
        target_end_date: Committed deadline for forward-mode risk checks
        clock: Returns today's date; consulted only in backward mode

    Raises:
        InvalidInputError: non-positive duration, bad anchor or duplicate id
        CircularDependencyError: the dependencies contain a cycle
    """
    tasks = list(tasks)
    anchor = _validated_anchor(anchor)

    if not tasks:
        return ProjectSchedule(
            task_schedules={},
            project_start=anchor.date,
            project_end=anchor.date,
            direction=anchor.direction,
        )

    for task in tasks:
        task_duration(task)

    graph = build_dependency_graph(tasks)

    if anchor.direction == ScheduleDirection.START:
        task_schedules = schedule_forward(graph, anchor.date)
    else:
        task_schedules = schedule_backward(graph, anchor.date)

    project_start = min(s.start_date for s in task_schedules.values())
    project_end = max(s.end_date for s in task_schedules.values())

    risk = evaluate_risk(
        project_start,
        project_end,
        anchor.direction,
        today=clock() if anchor.direction == ScheduleDirection.END else None,
        target_end_date=target_end_date,
    )

    logger.info(
        f"Scheduled {len(task_schedules)} tasks ({anchor.direction.value} anchor "
        f"{anchor.date}): {project_start} -> {project_end}"
        + (f" AT RISK: {risk.reason}" if risk.is_at_risk else "")
    )

    return ProjectSchedule(
        task_schedules=task_schedules,
        project_start=project_start,
        project_end=project_end,
        direction=anchor.direction,
        is_at_risk=risk.is_at_risk,
        risk_reason=risk.reason,
    )
