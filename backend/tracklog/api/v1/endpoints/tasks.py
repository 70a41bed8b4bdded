from typing import List, Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tracklog.auth import get_current_active_user
from tracklog.clock import Clock, get_clock
from tracklog.database import get_db
from tracklog.exceptions import NotFoundError
from tracklog.models.task import Task
from tracklog.models.user import User
from tracklog.schemas.task import TaskCreate, TaskInDB, TaskUpdate
from tracklog.services.task_service import ActivityTaskService

router = APIRouter()


def get_task_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ActivityTaskService:
    return ActivityTaskService(db, clock)


def _task_in_activity(service: ActivityTaskService, user_id: str, activity_id: str, task_id: str) -> Task:
    task = service.find_by_id(user_id, task_id)
    if task.activity_id != activity_id:
        raise NotFoundError("Task not found")
    return task


@router.post("/", response_model=TaskInDB, status_code=status.HTTP_201_CREATED)
async def create_task(
    activity_id: str,
    task: TaskCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    """Create a task under an activity."""
    return service.create(current_user.id, activity_id, task.name)

@router.get("/", response_model=List[TaskInDB])
async def read_tasks(
    activity_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    include_archived: bool = Query(False),
    service: ActivityTaskService = Depends(get_task_service),
):
    return service.find_all_for_activity(current_user.id, activity_id, include_archived)

@router.get("/{task_id}", response_model=TaskInDB)
async def read_task(
    activity_id: str,
    task_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    return _task_in_activity(service, current_user.id, activity_id, task_id)

@router.patch("/{task_id}", response_model=TaskInDB)
async def update_task(
    activity_id: str,
    task_id: str,
    task: TaskUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    db_task = _task_in_activity(service, current_user.id, activity_id, task_id)
    if task.name is None:
        return db_task
    return service.update(current_user.id, task_id, task.name)

@router.post("/{task_id}/archive", response_model=TaskInDB)
async def archive_task(
    activity_id: str,
    task_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    _task_in_activity(service, current_user.id, activity_id, task_id)
    return service.archive(current_user.id, task_id)

@router.post("/{task_id}/unarchive", response_model=TaskInDB)
async def unarchive_task(
    activity_id: str,
    task_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    _task_in_activity(service, current_user.id, activity_id, task_id)
    return service.unarchive(current_user.id, task_id)

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    activity_id: str,
    task_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: ActivityTaskService = Depends(get_task_service),
):
    _task_in_activity(service, current_user.id, activity_id, task_id)
    service.delete(current_user.id, task_id)
    return None
