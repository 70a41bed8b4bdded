from fastapi import APIRouter

from tracklog.api.v1.endpoints import activities, tasks, tags, time_entries

api_router = APIRouter()
api_router.include_router(activities.router, prefix="/activities", tags=["activities"])
api_router.include_router(tasks.router, prefix="/activities/{activity_id}/tasks", tags=["tasks"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(time_entries.router, prefix="/time-entries", tags=["time-entries"])
