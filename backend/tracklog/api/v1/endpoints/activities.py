from typing import List, Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tracklog.auth import get_current_active_user
from tracklog.clock import Clock, get_clock
from tracklog.database import get_db
from tracklog.models.user import User
from tracklog.schemas.activity import ActivityCreate, ActivityInDB, ActivityUpdate
from tracklog.services.activity_service import ActivityService

router = APIRouter()


def get_activity_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ActivityService:
    return ActivityService(db, clock)


@router.post("/", response_model=ActivityInDB, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity: ActivityCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    """Create a new activity."""
    return service.create(current_user.id, activity.name)

@router.get("/", response_model=List[ActivityInDB])
async def read_activities(
    current_user: Annotated[User, Depends(get_current_active_user)],
    include_archived: bool = Query(False, description="Include archived activities"),
    service: ActivityService = Depends(get_activity_service),
):
    """List the current user's activities, newest first."""
    return service.find_all(current_user.id, include_archived)

@router.get("/{activity_id}", response_model=ActivityInDB)
async def read_activity(
    activity_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    return service.find_by_id(current_user.id, activity_id)

@router.patch("/{activity_id}", response_model=ActivityInDB)
async def update_activity(
    activity_id: str,
    activity: ActivityUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    """Rename an activity."""
    if activity.name is None:
        return service.find_by_id(current_user.id, activity_id)
    return service.update(current_user.id, activity_id, activity.name)

@router.post("/{activity_id}/archive", response_model=ActivityInDB)
async def archive_activity(
    activity_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    return service.archive(current_user.id, activity_id)

@router.post("/{activity_id}/unarchive", response_model=ActivityInDB)
async def unarchive_activity(
    activity_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    return service.unarchive(current_user.id, activity_id)

@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_activity(
    activity_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityService = Depends(get_activity_service),
):
    """Delete an activity with its tasks and time entries."""
    service.delete(current_user.id, activity_id)
    return None
