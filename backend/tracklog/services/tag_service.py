"""Tag store: user-scoped labels and their time entry associations."""

import logging
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from tracklog.clock import Clock, utc_now
from tracklog.exceptions import NotFoundError
from tracklog.models.tag import Tag, time_entry_tags

log = logging.getLogger(__name__)


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


class TagService:
    """Get-or-create tags and replace the tag set of a time entry."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def find_all(self, user_id: str) -> List[Tag]:
        return self.db.query(Tag).filter(Tag.user_id == user_id).order_by(Tag.name.asc()).all()

    def get_or_create(self, user_id: str, names: Sequence[str]) -> List[Tag]:
        """
        Resolve tag names to the user's tags, creating the missing ones.

        Names are lowercased and trimmed; duplicates and blanks are dropped.
        Uniqueness per user relies on this lookup, not on a constraint.

        Returns:
            Tags in the order their names were first given
        """
        normalized = []
        for name in names:
            value = normalize_tag_name(name)
            if value and value not in normalized:
                normalized.append(value)
        if not normalized:
            return []

        existing: Dict[str, Tag] = {
            tag.name: tag
            for tag in self.db.query(Tag).filter(
                Tag.user_id == user_id,
                Tag.name.in_(normalized)
            ).all()
        }

        missing = [name for name in normalized if name not in existing]
        if missing:
            now = self.clock()
            for name in missing:
                tag = Tag(user_id=user_id, name=name, created_at=now)
                self.db.add(tag)
                existing[name] = tag
            self.db.commit()
            log.info(f"Created {len(missing)} tags for user {user_id}: {missing}")

        return [existing[name] for name in normalized]

    def delete(self, user_id: str, tag_id: str) -> None:
        tag = self.db.query(Tag).filter(
            Tag.id == tag_id,
            Tag.user_id == user_id
        ).first()
        if tag is None:
            raise NotFoundError("Tag not found")

        try:
            self.db.execute(time_entry_tags.delete().where(time_entry_tags.c.tag_id == tag_id))
            self.db.delete(tag)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def set_entry_tags(self, user_id: str, time_entry_id: str, tag_ids: Sequence[str]) -> None:
        """
        Replace every tag on a time entry (delete then insert).

        Only flushes; the caller commits. Ownership of the entry itself is
        the caller's check.
        """
        tag_ids = list(dict.fromkeys(tag_ids))
        if tag_ids:
            found = self.db.query(Tag.id).filter(
                Tag.user_id == user_id,
                Tag.id.in_(tag_ids)
            ).count()
            if found != len(tag_ids):
                raise NotFoundError("One or more tags not found")

        self.db.execute(
            time_entry_tags.delete().where(time_entry_tags.c.time_entry_id == time_entry_id)
        )
        if tag_ids:
            self.db.execute(
                time_entry_tags.insert(),
                [{"time_entry_id": time_entry_id, "tag_id": tag_id} for tag_id in tag_ids]
            )
        self.db.flush()
        log.debug(f"Time entry {time_entry_id} now tagged with {tag_ids}")
