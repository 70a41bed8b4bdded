from typing import List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tracklog.config import settings


class GetOrCreateTags(BaseModel):
    names: List[str] = Field(
        ...,
        max_length=settings.max_tags_per_entry,
        description="Tag names to get or create",
        examples=[["urgent", "review"]],
    )

    @field_validator('names')
    @classmethod
    def validate_name_length(cls, v: List[str]) -> List[str]:
        for name in v:
            if len(name) > settings.tag_name_max_length:
                raise ValueError(f'Each name cannot exceed {settings.tag_name_max_length} characters')
        return v


class TagInDB(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
