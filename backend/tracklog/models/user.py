"""User model for authentication."""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from tracklog.clock import utc_now
from tracklog.database import Base
from tracklog.models.types import UTCDateTime, new_id


class User(Base):
    """Account that owns activities, tags and time entries."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(100), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now, nullable=False)

    activities = relationship("Activity", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
