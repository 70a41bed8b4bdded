"""Activity store: CRUD, ownership checks and progress accumulation."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracklog.clock import Clock, utc_now
from tracklog.exceptions import ConflictError, NotFoundError
from tracklog.models.activity import Activity
from tracklog.models.tag import time_entry_tags
from tracklog.models.task import Task
from tracklog.models.time_entry import TimeEntry
from tracklog.services.filters import NotArchived, OwnedBy, apply_filters
from tracklog.services.streaks import calculate_streak_update

log = logging.getLogger(__name__)


class ActivityService:
    """Owns activity records and their tracked duration and streak fields."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def create(self, user_id: str, name: str) -> Activity:
        now = self.clock()
        activity = Activity(
            user_id=user_id,
            name=name,
            tracked_duration=0,
            current_streak=0,
            longest_streak=0,
            last_completed_date=None,
            archived_at=None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        log.info(f"Created activity {activity.id} for user {user_id}")
        return activity

    def find_all(self, user_id: str, include_archived: bool = False) -> List[Activity]:
        predicates = [OwnedBy(user_id)]
        if not include_archived:
            predicates.append(NotArchived())
        query = apply_filters(self.db.query(Activity), Activity, predicates)
        return query.order_by(Activity.created_at.desc()).all()

    def find_by_id(self, user_id: str, activity_id: str) -> Activity:
        activity = self.db.query(Activity).filter(
            Activity.id == activity_id,
            Activity.user_id == user_id
        ).first()
        if activity is None:
            raise NotFoundError("Activity not found")
        return activity

    def update(self, user_id: str, activity_id: str, name: str) -> Activity:
        activity = self.find_by_id(user_id, activity_id)
        activity.name = name
        activity.updated_at = self.clock()
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def archive(self, user_id: str, activity_id: str) -> Activity:
        activity = self.find_by_id(user_id, activity_id)
        if activity.archived_at is not None:
            raise ConflictError("Activity is already archived")

        now = self.clock()
        activity.archived_at = now
        activity.updated_at = now
        self.db.commit()
        self.db.refresh(activity)
        log.info(f"Archived activity {activity_id}")
        return activity

    def unarchive(self, user_id: str, activity_id: str) -> Activity:
        activity = self.find_by_id(user_id, activity_id)
        if activity.archived_at is None:
            raise ConflictError("Activity is not archived")

        activity.archived_at = None
        activity.updated_at = self.clock()
        self.db.commit()
        self.db.refresh(activity)
        log.info(f"Unarchived activity {activity_id}")
        return activity

    def delete(self, user_id: str, activity_id: str) -> None:
        """
        Hard-delete an activity with its tasks and time entries.

        Dependents are removed explicitly so no tag association is orphaned
        on backends without declarative cascades. Heatmap counts already
        recorded for the deleted entries are kept.
        """
        activity = self.find_by_id(user_id, activity_id)

        entry_ids = select(TimeEntry.id).where(
            TimeEntry.activity_id == activity_id,
            TimeEntry.user_id == user_id
        )
        try:
            self.db.execute(
                time_entry_tags.delete().where(time_entry_tags.c.time_entry_id.in_(entry_ids))
            )
            deleted_entries = self.db.query(TimeEntry).filter(
                TimeEntry.activity_id == activity_id
            ).delete(synchronize_session="fetch")
            deleted_tasks = self.db.query(Task).filter(
                Task.activity_id == activity_id
            ).delete(synchronize_session="fetch")
            self.db.delete(activity)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        log.info(
            f"Deleted activity {activity_id} with {deleted_entries} time entries and {deleted_tasks} tasks"
        )

    def verify_ownership(self, user_id: str, activity_id: str) -> bool:
        """True if the activity exists, belongs to the user and is not archived."""
        activity = self.db.query(Activity.id).filter(
            Activity.id == activity_id,
            Activity.user_id == user_id,
            Activity.archived_at.is_(None)
        ).first()
        return activity is not None

    def update_progress(self, user_id: str, activity_id: str, duration_delta: int, now=None) -> Activity:
        """
        Add a stopped session's duration and re-evaluate the streak.

        Only flushes; the caller commits as part of its own transaction.
        The row is locked for the remainder of that transaction where the
        backend supports ``SELECT ... FOR UPDATE``.
        """
        if now is None:
            now = self.clock()

        activity = self.db.query(Activity).filter(
            Activity.id == activity_id,
            Activity.user_id == user_id
        ).with_for_update().first()
        if activity is None:
            raise NotFoundError("Activity not found")

        streak = calculate_streak_update(
            duration_delta=duration_delta,
            current_streak=activity.current_streak,
            longest_streak=activity.longest_streak,
            last_completed_date=activity.last_completed_date,
            now=now,
        )

        activity.tracked_duration = activity.tracked_duration + duration_delta
        activity.current_streak = streak.current_streak
        activity.longest_streak = streak.longest_streak
        activity.last_completed_date = streak.last_completed_date
        activity.updated_at = self.clock()
        self.db.flush()

        log.debug(
            f"Progress for activity {activity_id}: +{duration_delta}s, total={activity.tracked_duration}s, "
            f"streak={activity.current_streak}/{activity.longest_streak}, last={activity.last_completed_date}"
        )
        return activity
