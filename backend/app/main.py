"""
Cadence - working-day project scheduler with forward and backward date propagation.

Run with:
    uvicorn app.main:app --reload
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.config import get_settings
from app.database import init_db
from app.routes import tasks, dependencies, projects
from app.exceptions import register_exception_handlers
from app.logging_config import setup_logging, get_logger

VERSION = "0.1.0"

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Cadence API v{VERSION}")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Cadence API...")


app = FastAPI(
    title="Cadence",
    description="Working-day project scheduler with forward and backward date propagation",
    version=VERSION,
    debug=get_settings().debug,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": VERSION}
