"""Time entry schemas for API requests and responses."""

from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tracklog.config import settings
from tracklog.patch import CLEAR, SetTo, TimeEntryPatch
from tracklog.schemas.tag import TagInDB
from tracklog.schemas.task import TaskSummary


class TimeEntryStart(BaseModel):
    activity_id: UUID = Field(..., description="Activity to track time against")
    task_id: Optional[UUID] = Field(None, description="Task within the activity")
    description: Optional[str] = Field(None, max_length=settings.description_max_length)


class TimeEntryStop(BaseModel):
    id: UUID = Field(..., description="Running time entry to stop")
    distraction_count: Optional[int] = Field(None, ge=0)


class TimeEntryManualCreate(BaseModel):
    activity_id: UUID
    started_at: datetime = Field(..., description="Start time (ISO 8601)")
    stopped_at: datetime = Field(..., description="Stop time (ISO 8601)")
    task_id: Optional[UUID] = None
    description: Optional[str] = Field(None, max_length=settings.description_max_length)
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=settings.comment_max_length)
    distraction_count: Optional[int] = Field(None, ge=0)


class TimeEntryUpdate(BaseModel):
    """
    Partial update. Omitted fields stay as they are; ``null`` clears
    rating, comment and tag_ids.
    """

    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=settings.comment_max_length)
    tag_ids: Optional[List[UUID]] = Field(
        None,
        max_length=settings.max_tags_per_entry,
        description=f"Tag IDs to attach (max {settings.max_tags_per_entry}), replaces the current set",
    )
    distraction_count: Optional[int] = Field(None, ge=0)
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    @field_validator('distraction_count', 'started_at', 'stopped_at')
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    def to_patch(self) -> TimeEntryPatch:
        values = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                values[name] = CLEAR
            elif name == 'tag_ids':
                values[name] = SetTo([str(tag_id) for tag_id in value])
            else:
                values[name] = SetTo(value)
        return TimeEntryPatch(**values)


class TimeEntryInDB(BaseModel):
    id: str
    activity_id: str
    task_id: Optional[str] = None
    description: Optional[str] = None
    started_at: datetime
    stopped_at: Optional[datetime] = None
    duration_seconds: Optional[int] = Field(None, description="Whole seconds, set once stopped")
    rating: Optional[int] = None
    comment: Optional[str] = None
    distraction_count: int = 0
    created_at: datetime
    task: Optional[TaskSummary] = None
    tags: List[TagInDB] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ActiveTimeEntry(BaseModel):
    entry: Optional[TimeEntryInDB] = None
