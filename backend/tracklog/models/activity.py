"""Activity model: a trackable pursuit and its progress counters."""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index
from sqlalchemy.orm import relationship

from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.types import UTCDateTime, new_id


class Activity(Base):
    """Something the user tracks time against."""

    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)

    # Progress, maintained when entries stop
    tracked_duration = Column(Integer, nullable=False, default=0)  # seconds
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_completed_date = Column(Date, nullable=True)

    archived_at = Column(UTCDateTime, nullable=True)  # soft delete
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)

    user = relationship("User", back_populates="activities")
    tasks = relationship("Task", back_populates="activity", passive_deletes=True)

    __table_args__ = (
        Index('idx_activities_user_archived', 'user_id', 'archived_at'),
    )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self):
        return f"<Activity(id={self.id}, name='{self.name}', streak={self.current_streak}/{self.longest_streak})>"
