import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from app.models.task import Task


class DependencyType(str, Enum):
    """Precedence relationship carried by a dependency edge."""

    FS = "FS"  # Finish-to-Start: successor starts the working day after predecessor ends
    SS = "SS"  # Start-to-Start: successor starts no earlier than predecessor starts


class Dependency(SQLModel, table=True):
    """
    Dependency model representing a directed edge in the task DAG.

    predecessor_id -> successor_id with type FS means:
    "The successor cannot start until the working day after the predecessor finishes"

    With type SS:
    "The successor cannot start before the predecessor starts"

    lag_days is stored for the record but is not applied by the scheduler.
    """

    __tablename__ = "dependencies"

    # Composite primary key
    predecessor_id: uuid.UUID = Field(
        foreign_key="tasks.id",
        ondelete="CASCADE",
        primary_key=True,
    )
    successor_id: uuid.UUID = Field(
        foreign_key="tasks.id",
        ondelete="CASCADE",
        primary_key=True,
    )

    type: DependencyType = Field(default=DependencyType.FS)
    lag_days: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    predecessor: "Task" = Relationship(
        back_populates="successors",
        sa_relationship_kwargs={"foreign_keys": "Dependency.predecessor_id"},
    )
    successor: "Task" = Relationship(
        back_populates="predecessors",
        sa_relationship_kwargs={"foreign_keys": "Dependency.successor_id"},
    )
