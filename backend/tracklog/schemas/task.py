from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from tracklog.config import settings


class TaskCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=settings.name_max_length)


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=settings.name_max_length)


class TaskInDB(BaseModel):
    id: str
    activity_id: str
    name: str
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskSummary(BaseModel):
    """Task as embedded in a time entry."""

    id: str
    name: str
    is_archived: bool

    model_config = ConfigDict(from_attributes=True)
