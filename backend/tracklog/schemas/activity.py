"""Activity schemas for API requests and responses."""

from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field

from tracklog.config import settings


class ActivityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=settings.name_max_length, description="Activity name")


class ActivityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=settings.name_max_length, description="Activity name")


class ActivityInDB(BaseModel):
    id: str
    name: str
    tracked_duration: int = Field(..., description="Total tracked time in seconds")
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date] = Field(None, description="UTC day of the last completed session")
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
