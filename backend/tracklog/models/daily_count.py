"""Pre-aggregated heatmap counts, one row per user per day."""

from sqlalchemy import Column, Integer, String, Date, ForeignKey, PrimaryKeyConstraint

from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.types import UTCDateTime


class DailyTimeEntryCount(Base):
    """Number of sessions a user completed on a UTC calendar day."""

    __tablename__ = "daily_time_entry_counts"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)
    updated_at = Column(UTCDateTime, default=utc_now, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint('user_id', 'day', name='pk_daily_time_entry_counts'),
    )

    def __repr__(self):
        return f"<DailyTimeEntryCount(user={self.user_id}, day={self.day}, count={self.count})>"
