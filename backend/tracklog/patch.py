"""Per-field partial update values.

A patch field is one of three things: ``UNSET`` (leave the column alone),
``CLEAR`` (write NULL) or ``SetTo(value)``. Keeping these apart avoids the
ambiguity of a bare ``None`` meaning both "not provided" and "remove".
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Generic, List, TypeVar, Union

T = TypeVar("T")


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


class _Clear:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "CLEAR"


UNSET = _Unset()
CLEAR = _Clear()


@dataclass(frozen=True)
class SetTo(Generic[T]):
    value: T


FieldPatch = Union[_Unset, _Clear, SetTo[T]]


def resolve(patch: FieldPatch, current: Any) -> Any:
    """Value a column ends up with once ``patch`` is applied."""
    if patch is UNSET:
        return current
    if patch is CLEAR:
        return None
    return patch.value


@dataclass(frozen=True)
class TimeEntryPatch:
    """Fields a stopped time entry accepts after the fact."""

    rating: FieldPatch[int] = UNSET
    comment: FieldPatch[str] = UNSET
    tag_ids: FieldPatch[List[str]] = UNSET
    distraction_count: FieldPatch[int] = UNSET
    started_at: FieldPatch[datetime] = UNSET
    stopped_at: FieldPatch[datetime] = UNSET

    def provided(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not UNSET]

    def is_empty(self) -> bool:
        return not self.provided()
