import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from app.models.project import Project
    from app.models.dependency import Dependency


class Task(SQLModel, table=True):
    """
    Task model with scheduler-assigned dates.

    Key fields:
    - duration_days: working days the task occupies (at least 1)
    - start_date / due_date: written by the scheduler, never read by it
    - order: position within the project, preserved when copying templates
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True)
    description: str | None = Field(default=None)
    duration_days: int = Field(default=1, ge=1)
    order: int = Field(default=0)
    start_date: date | None = Field(default=None)
    due_date: date | None = Field(default=None)

    # Foreign keys
    project_id: uuid.UUID = Field(foreign_key="projects.id", index=True, ondelete="CASCADE")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    project: "Project" = Relationship(back_populates="tasks")

    # Dependencies where this task is the predecessor (blocker)
    successors: list["Dependency"] = Relationship(
        back_populates="predecessor",
        sa_relationship_kwargs={
            "foreign_keys": "Dependency.predecessor_id",
            "passive_deletes": True,
        },
    )

    # Dependencies where this task is the successor (blocked)
    predecessors: list["Dependency"] = Relationship(
        back_populates="successor",
        sa_relationship_kwargs={
            "foreign_keys": "Dependency.successor_id",
            "passive_deletes": True,
        },
    )
