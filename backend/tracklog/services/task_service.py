"""Task store: sub-tasks scoped to an activity."""

import logging
from typing import List

from sqlalchemy.orm import Session

from tracklog.clock import Clock, utc_now
from tracklog.exceptions import ConflictError, NotFoundError
from tracklog.models.task import Task
from tracklog.models.time_entry import TimeEntry
from tracklog.services.activity_service import ActivityService
from tracklog.services.filters import ForActivity, NotArchived, OwnedBy, apply_filters

log = logging.getLogger(__name__)


class ActivityTaskService:
    """CRUD for tasks; every lookup is filtered by owner."""

    def __init__(self, db: Session, clock: Clock = utc_now, activity_service: ActivityService = None):
        self.db = db
        self.clock = clock
        self.activity_service = activity_service or ActivityService(db, clock)

    def create(self, user_id: str, activity_id: str, name: str) -> Task:
        self.activity_service.find_by_id(user_id, activity_id)

        now = self.clock()
        task = Task(
            user_id=user_id,
            activity_id=activity_id,
            name=name,
            archived_at=None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        log.info(f"Created task {task.id} under activity {activity_id}")
        return task

    def find_all_for_activity(self, user_id: str, activity_id: str, include_archived: bool = False) -> List[Task]:
        self.activity_service.find_by_id(user_id, activity_id)

        predicates = [OwnedBy(user_id), ForActivity(activity_id)]
        if not include_archived:
            predicates.append(NotArchived())
        query = apply_filters(self.db.query(Task), Task, predicates)
        return query.order_by(Task.created_at.desc()).all()

    def find_by_id(self, user_id: str, task_id: str) -> Task:
        task = self.db.query(Task).filter(
            Task.id == task_id,
            Task.user_id == user_id
        ).first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def update(self, user_id: str, task_id: str, name: str) -> Task:
        task = self.find_by_id(user_id, task_id)
        task.name = name
        task.updated_at = self.clock()
        self.db.commit()
        self.db.refresh(task)
        return task

    def archive(self, user_id: str, task_id: str) -> Task:
        task = self.find_by_id(user_id, task_id)
        if task.archived_at is not None:
            raise ConflictError("Task is already archived")

        now = self.clock()
        task.archived_at = now
        task.updated_at = now
        self.db.commit()
        self.db.refresh(task)
        return task

    def unarchive(self, user_id: str, task_id: str) -> Task:
        task = self.find_by_id(user_id, task_id)
        if task.archived_at is None:
            raise ConflictError("Task is not archived")

        task.archived_at = None
        task.updated_at = self.clock()
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, user_id: str, task_id: str) -> None:
        """Delete a task; entries that referenced it keep existing without one."""
        task = self.find_by_id(user_id, task_id)
        try:
            detached = self.db.query(TimeEntry).filter(
                TimeEntry.task_id == task_id
            ).update({TimeEntry.task_id: None}, synchronize_session=False)
            self.db.delete(task)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        log.info(f"Deleted task {task_id}, detached from {detached} time entries")

    def verify_ownership(self, user_id: str, task_id: str, activity_id: str) -> bool:
        """True if the task is the user's, belongs to the activity and is not archived."""
        task = self.db.query(Task.id).filter(
            Task.id == task_id,
            Task.user_id == user_id,
            Task.activity_id == activity_id,
            Task.archived_at.is_(None)
        ).first()
        return task is not None
