"""Time entry model: one tracked session."""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.tag import time_entry_tags
from tracklog.models.types import UTCDateTime, new_id


class TimeEntry(Base):
    """A session started against an activity, optionally narrowed to a task."""

    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_id = Column(String(36), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    description = Column(String(500), nullable=True)

    started_at = Column(UTCDateTime, nullable=False)
    stopped_at = Column(UTCDateTime, nullable=True)  # NULL while the timer runs

    # Reflection, editable within the edit window
    rating = Column(Integer, nullable=True)  # 1-5
    comment = Column(Text, nullable=True)
    distraction_count = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, default=utc_now, nullable=False)

    activity = relationship("Activity")
    task = relationship("Task")
    # Association rows are written explicitly by TagService
    tags = relationship("Tag", secondary=time_entry_tags, order_by="Tag.name", viewonly=True)

    __table_args__ = (
        Index('idx_time_entries_user_date', 'user_id', 'started_at'),
        Index('idx_time_entries_activity_date', 'activity_id', 'started_at'),
        # At most one running timer per user
        Index(
            'uq_time_entries_one_active_per_user',
            'user_id',
            unique=True,
            postgresql_where=stopped_at.is_(None),
            sqlite_where=stopped_at.is_(None),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.stopped_at is None

    @property
    def duration_seconds(self):
        if self.stopped_at is None:
            return None
        return max(0, int((self.stopped_at - self.started_at).total_seconds()))

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, activity={self.activity_id}, started={self.started_at}, stopped={self.stopped_at})>"
