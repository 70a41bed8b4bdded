"""Tag model and the time entry association table."""

from sqlalchemy import Column, String, ForeignKey, Index, Table
from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.types import UTCDateTime, new_id


time_entry_tags = Table(
    "time_entry_tags",
    Base.metadata,
    Column("time_entry_id", String(36), ForeignKey("time_entries.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_time_entry_tags_tag", "tag_id"),
)


class Tag(Base):
    """User-scoped label. Names are stored lowercase and trimmed."""

    __tablename__ = "tags"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(50), nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index('idx_tags_user_name', 'user_id', 'name'),
    )

    def __repr__(self):
        return f"<Tag(id={self.id}, name='{self.name}')>"
