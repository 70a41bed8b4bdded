"""Time entry lifecycle: start, stop, edit and delete tracked sessions.

Invariants kept here:

* a user has at most one running entry (also enforced by a partial unique
  index, see ``TimeEntry.__table_args__``);
* a stopped entry has ``started_at < stopped_at``;
* rating, comment, tags and timestamps of a stopped entry may only change
  within the edit window counted from ``stopped_at``.

Stopping an entry updates the activity's progress and the heatmap in the same
transaction. Deleting an entry never rolls those aggregates back.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from tracklog.clock import Clock, calendar_day, ensure_utc, utc_now
from tracklog.config import settings
from tracklog.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from tracklog.models.tag import time_entry_tags
from tracklog.models.time_entry import TimeEntry
from tracklog.patch import CLEAR, UNSET, TimeEntryPatch, resolve
from tracklog.services.activity_service import ActivityService
from tracklog.services.filters import ForActivity, OwnedBy, StartedFrom, StartedUntil, apply_filters
from tracklog.services.heatmap_service import HeatmapService
from tracklog.services.tag_service import TagService
from tracklog.services.task_service import ActivityTaskService

log = logging.getLogger(__name__)

ACTIVE_ENTRY_EXISTS = "You already have an active time entry. Please stop it before starting a new one."


def whole_seconds(started_at: datetime, stopped_at: datetime) -> int:
    """Elapsed whole seconds (floored), never negative."""
    return max(0, math.floor((stopped_at - started_at).total_seconds()))


class TimeEntryService:
    """
    Orchestrates time entries and the aggregates derived from them.

    Every public method takes the owner explicitly and treats entries of
    other users exactly like missing ones.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = utc_now,
        activity_service: Optional[ActivityService] = None,
        task_service: Optional[ActivityTaskService] = None,
        tag_service: Optional[TagService] = None,
        heatmap_service: Optional[HeatmapService] = None,
        edit_window: Optional[timedelta] = None,
    ):
        self.db = db
        self.clock = clock
        self.activity_service = activity_service or ActivityService(db, clock)
        self.task_service = task_service or ActivityTaskService(db, clock, self.activity_service)
        self.tag_service = tag_service or TagService(db, clock)
        self.heatmap_service = heatmap_service or HeatmapService(db, clock)
        self.edit_window = edit_window or timedelta(days=settings.edit_window_days)

    # -- queries ---------------------------------------------------------------

    def _owned_entry(self, user_id: str, entry_id: str) -> TimeEntry:
        entry = self.db.query(TimeEntry).filter(
            TimeEntry.id == entry_id,
            TimeEntry.user_id == user_id
        ).first()
        if entry is None:
            raise NotFoundError("Time entry not found")
        return entry

    def find_by_id(self, user_id: str, entry_id: str) -> TimeEntry:
        return self._owned_entry(user_id, entry_id)

    def find_active(self, user_id: str) -> Optional[TimeEntry]:
        """The running entry with its task and tags loaded, or None."""
        return self.db.query(TimeEntry).options(
            selectinload(TimeEntry.task),
            selectinload(TimeEntry.tags)
        ).filter(
            TimeEntry.user_id == user_id,
            TimeEntry.stopped_at.is_(None)
        ).first()

    def find_all(
        self,
        user_id: str,
        from_: Optional[datetime] = None,
        to: Optional[datetime] = None,
        activity_id: Optional[str] = None,
    ) -> List[TimeEntry]:
        """
        Entries by start time, most recent first.

        Not paginated: the result grows with the queried range, so callers
        should pass ``from_``/``to`` for anything beyond a single user's
        recent history.
        """
        predicates = [OwnedBy(user_id)]
        if from_ is not None:
            predicates.append(StartedFrom(ensure_utc(from_)))
        if to is not None:
            predicates.append(StartedUntil(ensure_utc(to)))
        if activity_id is not None:
            predicates.append(ForActivity(activity_id))

        query = self.db.query(TimeEntry).options(
            selectinload(TimeEntry.task),
            selectinload(TimeEntry.tags)
        )
        query = apply_filters(query, TimeEntry, predicates)
        return query.order_by(TimeEntry.started_at.desc()).all()

    # -- lifecycle -------------------------------------------------------------

    def _check_references(self, user_id: str, activity_id: str, task_id: Optional[str]) -> None:
        if not self.activity_service.verify_ownership(user_id, activity_id):
            raise NotFoundError("Activity not found")
        if task_id is not None and not self.task_service.verify_ownership(user_id, task_id, activity_id):
            raise NotFoundError("Task not found")

    def _check_interval(self, started_at: datetime, stopped_at: datetime, now: datetime) -> None:
        if started_at >= stopped_at:
            raise BadRequestError("started_at must be before stopped_at")
        if stopped_at > now:
            raise BadRequestError("stopped_at cannot be in the future")

    def start(
        self,
        user_id: str,
        activity_id: str,
        task_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> TimeEntry:
        """Start a timer. Fails with ConflictError while another one runs."""
        if self.find_active(user_id) is not None:
            raise ConflictError(ACTIVE_ENTRY_EXISTS)
        self._check_references(user_id, activity_id, task_id)

        now = self.clock()
        entry = TimeEntry(
            user_id=user_id,
            activity_id=activity_id,
            task_id=task_id,
            description=description or None,
            started_at=now,
            stopped_at=None,
            distraction_count=0,
            created_at=now,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent start for the same user
            self.db.rollback()
            log.info(f"Concurrent start rejected for user {user_id}")
            raise ConflictError(ACTIVE_ENTRY_EXISTS)

        self.db.refresh(entry)
        log.info(f"Started time entry {entry.id} for user {user_id} on activity {activity_id}")
        return entry

    def stop(self, user_id: str, entry_id: str, distraction_count: Optional[int] = None) -> TimeEntry:
        """
        Stop a running entry and fold it into the aggregates.

        Marking the entry stopped, adding its duration and streak to the
        activity and bumping the heatmap commit together or not at all.
        """
        entry = self._owned_entry(user_id, entry_id)
        if entry.stopped_at is not None:
            raise ConflictError("This time entry has already been stopped")

        now = self.clock()
        try:
            # Conditional update so two concurrent stops cannot both aggregate
            stopped = self.db.query(TimeEntry).filter(
                TimeEntry.id == entry.id,
                TimeEntry.stopped_at.is_(None)
            ).update({TimeEntry.stopped_at: now}, synchronize_session="evaluate")
            if stopped != 1:
                raise ConflictError("This time entry has already been stopped")

            if distraction_count is not None:
                entry.distraction_count = distraction_count

            duration = whole_seconds(entry.started_at, now)
            self.activity_service.update_progress(user_id, entry.activity_id, duration, now)
            self.heatmap_service.record_completion(user_id, calendar_day(now))
            self.db.commit()
        except ConflictError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            log.error(f"Failed to stop time entry {entry_id}: {e}", exc_info=True)
            raise

        self.db.refresh(entry)
        log.info(f"Stopped time entry {entry.id} for user {user_id} after {duration}s")
        return entry

    def create_manual(
        self,
        user_id: str,
        activity_id: str,
        started_at: datetime,
        stopped_at: datetime,
        task_id: Optional[str] = None,
        description: Optional[str] = None,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
        distraction_count: Optional[int] = None,
    ) -> TimeEntry:
        """
        Record a session after the fact.

        The aggregates see it as a stop that happened at ``stopped_at``:
        the heatmap day and the streak day are both taken from it.
        """
        started_at = ensure_utc(started_at)
        stopped_at = ensure_utc(stopped_at)
        now = self.clock()
        self._check_interval(started_at, stopped_at, now)
        self._check_references(user_id, activity_id, task_id)

        entry = TimeEntry(
            user_id=user_id,
            activity_id=activity_id,
            task_id=task_id,
            description=description or None,
            started_at=started_at,
            stopped_at=stopped_at,
            rating=rating,
            comment=comment,
            distraction_count=distraction_count or 0,
            created_at=now,
        )
        duration = whole_seconds(started_at, stopped_at)
        try:
            self.db.add(entry)
            self.db.flush()
            self.activity_service.update_progress(user_id, activity_id, duration, stopped_at)
            self.heatmap_service.record_completion(user_id, calendar_day(stopped_at))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            log.error(f"Failed to create manual time entry for user {user_id}: {e}", exc_info=True)
            raise

        self.db.refresh(entry)
        log.info(f"Created manual time entry {entry.id} for user {user_id} ({duration}s)")
        return entry

    def update(self, user_id: str, entry_id: str, patch: TimeEntryPatch) -> TimeEntry:
        """
        Edit a stopped entry within the edit window.

        Only fields present in ``patch`` change. ``tag_ids`` replaces the
        whole tag set, an empty list or CLEAR removes every tag. Changing the
        timestamps does not re-run the progress or heatmap aggregation.
        """
        entry = self._owned_entry(user_id, entry_id)
        if entry.stopped_at is None:
            raise ConflictError("Cannot update an active time entry")

        now = self.clock()
        if now - entry.stopped_at > self.edit_window:
            raise ForbiddenError("Cannot edit a time entry more than 1 week after it was stopped")

        for name in ("distraction_count", "started_at", "stopped_at"):
            if getattr(patch, name) is CLEAR:
                raise BadRequestError(f"{name} cannot be cleared")

        if patch.started_at is not UNSET or patch.stopped_at is not UNSET:
            started_at = ensure_utc(resolve(patch.started_at, entry.started_at))
            stopped_at = ensure_utc(resolve(patch.stopped_at, entry.stopped_at))
            self._check_interval(started_at, stopped_at, now)
            entry.started_at = started_at
            entry.stopped_at = stopped_at

        entry.rating = resolve(patch.rating, entry.rating)
        entry.comment = resolve(patch.comment, entry.comment)
        entry.distraction_count = resolve(patch.distraction_count, entry.distraction_count)

        try:
            if patch.tag_ids is not UNSET:
                self.tag_service.set_entry_tags(user_id, entry.id, resolve(patch.tag_ids, []) or [])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(entry)
        if not patch.is_empty():
            log.info(f"Updated time entry {entry.id}: {patch.provided()}")
        return entry

    def delete(self, user_id: str, entry_id: str) -> None:
        """
        Remove an entry in any state together with its tag associations.

        Progress and heatmap counts recorded when it stopped stay as they are.
        """
        entry = self._owned_entry(user_id, entry_id)
        try:
            self.db.execute(time_entry_tags.delete().where(time_entry_tags.c.time_entry_id == entry.id))
            self.db.delete(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        log.info(f"Deleted time entry {entry_id} for user {user_id}")
