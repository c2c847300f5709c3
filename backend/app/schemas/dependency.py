import uuid
from datetime import datetime
from pydantic import BaseModel, Field

from app.models import DependencyType


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    predecessor_id: uuid.UUID  # The blocker task
    successor_id: uuid.UUID    # The blocked task
    type: DependencyType = DependencyType.FS
    lag_days: int = Field(default=0, ge=0)  # Recorded only; the scheduler does not apply lag


class DependencyRead(BaseModel):
    """Schema for reading a dependency."""
    predecessor_id: uuid.UUID
    successor_id: uuid.UUID
    type: DependencyType
    lag_days: int
    created_at: datetime

    model_config = {"from_attributes": True}
