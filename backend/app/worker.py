"""
ARQ Worker for background schedule recomputation.

This worker handles:
- reschedule_project: Recomputes every task date of a project after an edit

Usage:
    arq app.worker.WorkerSettings
"""

import uuid
from datetime import datetime

from arq import create_pool
from arq.connections import RedisSettings, ArqRedis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models import Project
from app.services.recalc import reschedule_project
from app.logging_config import setup_logging, get_logger

logger = get_logger(__name__)

settings = get_settings()


async def startup(ctx: dict) -> None:
    """Worker startup."""
    setup_logging()
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [reschedule_project]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
    max_jobs = 10
    job_timeout = settings.reschedule_job_timeout


# Redis pool for enqueuing jobs from the API
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ Redis pool for enqueuing jobs."""
    global _arq_pool
    if _arq_pool is None:
        logger.debug("Creating ARQ Redis pool")
        _arq_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
    return _arq_pool


async def enqueue_reschedule(project_id: str, version_id: str) -> None:
    """Enqueue a full re-schedule of a project."""
    pool = await get_arq_pool()
    logger.debug(f"Enqueuing reschedule job: project={project_id[:8]}... version={version_id[:8]}...")
    await pool.enqueue_job("reschedule_project", project_id, version_id)


async def request_reschedule(session: AsyncSession, project_id: uuid.UUID) -> None:
    """
    Mark a project's schedule as out of date and queue a full recomputation.

    Bumping calc_version_id makes any job queued for an earlier edit stale.
    The caller's transaction is committed before the job is queued, so the
    worker always reads the new version. Projects without an anchor are only
    versioned, never queued.
    """
    project = await session.get(Project, project_id)
    if project is None:
        return

    new_version_id = uuid.uuid4()
    project.calc_version_id = new_version_id
    project.updated_at = datetime.utcnow()
    has_anchor = project.anchor_date is not None
    await session.commit()

    if has_anchor:
        await enqueue_reschedule(str(project_id), str(new_version_id))
