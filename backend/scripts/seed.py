#!/usr/bin/env python3
"""
Seed script to generate a large task graph for scheduling benchmarks.

Generates a layered DAG with realistic project structure:
- Multiple parallel tracks
- Diamond patterns (convergence points)
- A mix of FS and SS dependencies

Usage:
    python -m scripts.seed [--nodes 500] [--clear] [--template] [--schedule]

Options:
    --nodes N       Number of tasks to generate (default: 500)
    --clear         Clear existing data before seeding
    --project NAME  Name of the project to create
    --template      Store the graph as a template project
    --anchor DATE   Anchor date (ISO format, default: next Monday)
    --from-end      Treat the anchor as the required end date
    --schedule      Compute and store the schedule after seeding
"""

import argparse
import asyncio
import random
import time
import uuid
from datetime import date, timedelta

from sqlalchemy import text

from app.database import async_session_maker, init_db
from app.models import Project, Task, Dependency, DependencyType, ScheduleDirection
from app.services.recalc import schedule_project


async def clear_data():
    """Clear all existing data."""
    print("Clearing existing data...")
    async with async_session_maker() as session:
        await session.execute(text("TRUNCATE dependencies, tasks, projects CASCADE"))
        await session.commit()
    print("Data cleared.")


async def create_project(
    name: str,
    is_template: bool,
    anchor: date,
    direction: ScheduleDirection,
) -> Project:
    """Create the project that will own the generated tasks."""
    async with async_session_maker() as session:
        project = Project(
            name=name,
            description="Generated scheduling benchmark",
            is_template=is_template,
            anchor_date=anchor,
            schedule_from=direction,
        )
        session.add(project)
        await session.commit()
        await session.refresh(project)
        return project


def generate_dag(
    project_id: uuid.UUID,
    num_nodes: int = 500,
    ss_ratio: float = 0.2,
) -> tuple[list[Task], list[Dependency]]:
    """
    Generate a layered DAG.

    Tasks are created in waves; each task after the first wave depends on
    1-3 tasks from the three preceding waves. Edges only point from earlier
    waves to later ones, so the graph is acyclic.
    """
    tasks: list[Task] = []
    dependencies: list[Dependency] = []
    seen_edges: set[tuple[uuid.UUID, uuid.UUID]] = set()

    num_waves = max(10, num_nodes // 50)
    tasks_per_wave = max(1, num_nodes // num_waves)
    waves: list[list[Task]] = []

    print(f"Generating {num_nodes} tasks in {num_waves} waves...")

    for wave in range(num_waves):
        wave_size = tasks_per_wave if wave < num_waves - 1 else num_nodes - len(tasks)
        if wave_size <= 0:
            break

        wave_tasks = []
        for i in range(wave_size):
            task = Task(
                title=f"Task W{wave:02d}-{i:03d}",
                description=f"Wave {wave}, Task {i}",
                duration_days=random.randint(1, 10),
                order=len(tasks),
                project_id=project_id,
            )
            tasks.append(task)
            wave_tasks.append(task)
        waves.append(wave_tasks)

        if wave == 0:
            continue

        earlier_waves = list(range(max(0, wave - 3), wave))
        for task in wave_tasks:
            for _ in range(random.randint(1, 3)):
                predecessor = random.choice(waves[random.choice(earlier_waves)])
                edge = (predecessor.id, task.id)
                if edge in seen_edges:
                    continue
                seen_edges.add(edge)
                dependencies.append(Dependency(
                    predecessor_id=predecessor.id,
                    successor_id=task.id,
                    type=DependencyType.SS if random.random() < ss_ratio else DependencyType.FS,
                ))

    return tasks, dependencies


async def insert_batch(tasks: list[Task], dependencies: list[Dependency]):
    """Insert tasks and dependencies in batches for performance."""
    async with async_session_maker() as session:
        batch_size = 100

        print(f"Inserting {len(tasks)} tasks...")
        for i in range(0, len(tasks), batch_size):
            session.add_all(tasks[i:i + batch_size])
            await session.flush()

        print(f"Inserting {len(dependencies)} dependencies...")
        for i in range(0, len(dependencies), batch_size):
            session.add_all(dependencies[i:i + batch_size])
            await session.flush()

        await session.commit()


async def run_schedule(project_id: uuid.UUID):
    """Compute and store the schedule, reporting how long it took."""
    async with async_session_maker() as session:
        start_time = time.time()
        result = await schedule_project(session, project_id)
        await session.commit()
        elapsed = time.time() - start_time

    print(f"\n=== Schedule ===")
    print(f"Tasks scheduled: {len(result.task_schedules)}")
    print(f"Project window:  {result.project_start} -> {result.project_end}")
    print(f"At risk:         {result.is_at_risk} {result.risk_reason or ''}")
    print(f"Compute + store: {elapsed * 1000:.2f}ms")


def next_monday(today: date) -> date:
    return today + timedelta(days=7 - today.weekday())


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with a large task graph")
    parser.add_argument("--nodes", type=int, default=500, help="Number of tasks to create")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")
    parser.add_argument("--project", type=str, default="Scheduling Benchmark", help="Project name")
    parser.add_argument("--template", action="store_true", help="Store as a template project")
    parser.add_argument("--anchor", type=date.fromisoformat, default=None, help="Anchor date (YYYY-MM-DD)")
    parser.add_argument("--from-end", action="store_true", help="Anchor is the required end date")
    parser.add_argument("--schedule", action="store_true", help="Compute the schedule after seeding")

    args = parser.parse_args()

    anchor = args.anchor or next_monday(date.today())
    direction = ScheduleDirection.END if args.from_end else ScheduleDirection.START

    print(f"=== Cadence Seed Script ===")

    await init_db()

    if args.clear:
        await clear_data()

    project = await create_project(args.project, args.template, anchor, direction)
    print(f"Created project: {project.name} ({project.id})")

    start_time = time.time()
    tasks, dependencies = generate_dag(project.id, args.nodes)
    print(f"Generation time: {time.time() - start_time:.2f}s")

    start_time = time.time()
    await insert_batch(tasks, dependencies)
    print(f"Insert time: {time.time() - start_time:.2f}s")

    if args.schedule:
        await run_schedule(project.id)

    print(f"\n=== Seeding Complete ===")
    print(f"Project ID: {project.id}")


if __name__ == "__main__":
    asyncio.run(main())
