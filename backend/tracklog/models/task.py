"""Task model: optional sub-division of an activity."""

from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.types import UTCDateTime, new_id


class Task(Base):
    """Sub-task scoped to one activity of the same user."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_id = Column(String(36), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    archived_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)

    activity = relationship("Activity", back_populates="tasks")

    __table_args__ = (
        Index('idx_tasks_activity_archived', 'activity_id', 'archived_at'),
    )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def __repr__(self):
        return f"<Task(id={self.id}, activity={self.activity_id}, name='{self.name}')>"
