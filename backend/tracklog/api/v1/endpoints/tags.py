from typing import List, Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tracklog.auth import get_current_active_user
from tracklog.clock import Clock, get_clock
from tracklog.database import get_db
from tracklog.models.user import User
from tracklog.schemas.tag import GetOrCreateTags, TagInDB
from tracklog.services.tag_service import TagService

router = APIRouter()


def get_tag_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> TagService:
    return TagService(db, clock)


@router.get("/", response_model=List[TagInDB])
async def read_tags(
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TagService = Depends(get_tag_service),
):
    """List the current user's tags by name."""
    return service.find_all(current_user.id)

@router.post("/get-or-create", response_model=List[TagInDB])
async def get_or_create_tags(
    request: GetOrCreateTags,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TagService = Depends(get_tag_service),
):
    """Resolve tag names, creating the ones that do not exist yet."""
    return service.get_or_create(current_user.id, request.names)

@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    service: TagService = Depends(get_tag_service),
):
    service.delete(current_user.id, tag_id)
    return None
