import datetime

from pydantic import BaseModel, Field


class HeatmapDay(BaseModel):
    date: datetime.date = Field(..., description="UTC calendar day")
    count: int = Field(..., ge=1, description="Sessions completed that day")
