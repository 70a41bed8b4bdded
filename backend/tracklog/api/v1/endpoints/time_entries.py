"""Time entry endpoints: timer lifecycle, history and heatmap."""

from typing import List, Annotated, Optional
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tracklog.auth import get_current_active_user
from tracklog.clock import Clock, get_clock
from tracklog.database import get_db
from tracklog.models.user import User
from tracklog.schemas.heatmap import HeatmapDay
from tracklog.schemas.time_entry import (
    ActiveTimeEntry,
    TimeEntryInDB,
    TimeEntryManualCreate,
    TimeEntryStart,
    TimeEntryStop,
    TimeEntryUpdate,
)
from tracklog.services.heatmap_service import HeatmapService
from tracklog.services.time_entry_service import TimeEntryService

router = APIRouter()


def get_time_entry_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> TimeEntryService:
    return TimeEntryService(db, clock)


def _optional_id(value) -> Optional[str]:
    return str(value) if value is not None else None


@router.post("/start", response_model=TimeEntryInDB, status_code=status.HTTP_201_CREATED)
async def start_time_entry(
    request: TimeEntryStart,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Start a timer. 409 if one is already running."""
    return service.start(
        current_user.id,
        str(request.activity_id),
        task_id=_optional_id(request.task_id),
        description=request.description,
    )

@router.post("/stop", response_model=TimeEntryInDB)
async def stop_time_entry(
    request: TimeEntryStop,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Stop the running timer and update streaks and heatmap."""
    return service.stop(current_user.id, str(request.id), distraction_count=request.distraction_count)

@router.post("/manual", response_model=TimeEntryInDB, status_code=status.HTTP_201_CREATED)
async def create_manual_time_entry(
    request: TimeEntryManualCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Record a past session with explicit start and stop times."""
    return service.create_manual(
        current_user.id,
        str(request.activity_id),
        request.started_at,
        request.stopped_at,
        task_id=_optional_id(request.task_id),
        description=request.description,
        rating=request.rating,
        comment=request.comment,
        distraction_count=request.distraction_count,
    )

@router.get("/", response_model=List[TimeEntryInDB])
async def read_time_entries(
    current_user: Annotated[User, Depends(get_current_active_user)],
    from_: Optional[datetime] = Query(None, alias="from", description="Started at or after (ISO 8601)"),
    to: Optional[datetime] = Query(None, description="Started at or before (ISO 8601)"),
    activity_id: Optional[str] = Query(None, description="Filter by activity"),
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """List time entries, most recent first. Unpaginated; narrow with from/to."""
    return service.find_all(current_user.id, from_=from_, to=to, activity_id=activity_id)

@router.get("/current", response_model=ActiveTimeEntry)
async def read_current_time_entry(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """The running entry, wrapped so an idle timer serializes as ``{"entry": null}``."""
    return {"entry": service.find_active(current_user.id)}

@router.get("/heatmap", response_model=List[HeatmapDay])
async def read_heatmap(
    current_user: Annotated[User, Depends(get_current_active_user)],
    from_: Optional[date] = Query(None, alias="from", description="First day (inclusive)"),
    to: Optional[date] = Query(None, description="Last day (inclusive)"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Completed sessions per day. Days without sessions are omitted."""
    rows = HeatmapService(db, clock).query(current_user.id, from_=from_, to=to)
    return [HeatmapDay(date=row.day, count=row.count) for row in rows]

@router.get("/{entry_id}", response_model=TimeEntryInDB)
async def read_time_entry(
    entry_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    return service.find_by_id(current_user.id, entry_id)

@router.patch("/{entry_id}", response_model=TimeEntryInDB)
async def update_time_entry(
    entry_id: str,
    update: TimeEntryUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Edit rating, comment, tags, distractions or times of a stopped entry (within 7 days)."""
    return service.update(current_user.id, entry_id, update.to_patch())

@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(
    entry_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TimeEntryService = Depends(get_time_entry_service),
):
    """Delete an entry in any state. Streaks and heatmap counts are not reverted."""
    service.delete(current_user.id, entry_id)
    return None
