"""Heatmap aggregator: completed sessions per user per calendar day."""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tracklog.clock import Clock, utc_now
from tracklog.models.daily_count import DailyTimeEntryCount
from tracklog.services.filters import DayFrom, DayUntil, OwnedBy, apply_filters

log = logging.getLogger(__name__)


class HeatmapService:
    """Maintains ``daily_time_entry_counts`` incrementally."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def record_completion(self, user_id: str, day: date) -> None:
        """
        Count one completed session on ``day``.

        The increment is relative (``count = count + 1``) and, on PostgreSQL
        and SQLite, a single ``INSERT ... ON CONFLICT DO UPDATE`` statement,
        so concurrent stops on the same day are all counted. Does not commit.
        """
        now = self.clock()
        statement = self._upsert_statement(user_id, day, now)
        if statement is not None:
            self.db.execute(statement)
        else:
            self._update_or_insert(user_id, day, now)
        log.debug(f"Heatmap +1 for user {user_id} on {day.isoformat()}")

    def _upsert_statement(self, user_id: str, day: date, now):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            return None

        table = DailyTimeEntryCount.__table__
        statement = insert(table).values(
            user_id=user_id,
            day=day,
            count=1,
            created_at=now,
            updated_at=now,
        )
        return statement.on_conflict_do_update(
            index_elements=[table.c.user_id, table.c.day],
            set_={
                "count": table.c.count + 1,
                "updated_at": statement.excluded.updated_at,
            },
        )

    def _increment(self, user_id: str, day: date, now) -> int:
        return self.db.query(DailyTimeEntryCount).filter(
            DailyTimeEntryCount.user_id == user_id,
            DailyTimeEntryCount.day == day
        ).update(
            {
                DailyTimeEntryCount.count: DailyTimeEntryCount.count + 1,
                DailyTimeEntryCount.updated_at: now,
            },
            synchronize_session=False
        )

    def _update_or_insert(self, user_id: str, day: date, now) -> None:
        if self._increment(user_id, day, now):
            return
        try:
            with self.db.begin_nested():
                self.db.add(DailyTimeEntryCount(user_id=user_id, day=day, count=1, created_at=now, updated_at=now))
        except IntegrityError:
            # Another transaction inserted the row first
            self._increment(user_id, day, now)

    def query(self, user_id: str, from_: Optional[date] = None, to: Optional[date] = None) -> List[DailyTimeEntryCount]:
        """Days with at least one completion, ascending; bounds are inclusive."""
        predicates = [OwnedBy(user_id)]
        if from_ is not None:
            predicates.append(DayFrom(from_))
        if to is not None:
            predicates.append(DayUntil(to))
        query = apply_filters(self.db.query(DailyTimeEntryCount), DailyTimeEntryCount, predicates)
        return query.order_by(DailyTimeEntryCount.day.asc()).all()
