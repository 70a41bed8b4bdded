"""Database models."""

from tracklog.models.user import User
from tracklog.models.activity import Activity
from tracklog.models.task import Task
from tracklog.models.tag import Tag, time_entry_tags
from tracklog.models.time_entry import TimeEntry
from tracklog.models.daily_count import DailyTimeEntryCount

__all__ = [
    "User",
    "Activity",
    "Task",
    "Tag",
    "time_entry_tags",
    "TimeEntry",
    "DailyTimeEntryCount",
]
