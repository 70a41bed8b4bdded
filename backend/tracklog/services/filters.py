"""Typed query predicates.

Callers describe what they want as a list of small predicate objects;
``apply_filters`` is the only place that turns them into SQLAlchemy criteria.
"""

from dataclasses import dataclass
from datetime import date, datetime
from functools import singledispatch
from typing import Iterable

from sqlalchemy.orm import Query


@dataclass(frozen=True)
class OwnedBy:
    user_id: str


@dataclass(frozen=True)
class StartedFrom:
    value: datetime


@dataclass(frozen=True)
class StartedUntil:
    value: datetime


@dataclass(frozen=True)
class ForActivity:
    activity_id: str


@dataclass(frozen=True)
class DayFrom:
    value: date


@dataclass(frozen=True)
class DayUntil:
    value: date


@dataclass(frozen=True)
class NotArchived:
    pass


@singledispatch
def to_criterion(predicate, model):
    raise TypeError(f"Unsupported predicate {predicate!r} for {model.__name__}")


@to_criterion.register
def _(predicate: OwnedBy, model):
    return model.user_id == predicate.user_id


@to_criterion.register
def _(predicate: StartedFrom, model):
    return model.started_at >= predicate.value


@to_criterion.register
def _(predicate: StartedUntil, model):
    return model.started_at <= predicate.value


@to_criterion.register
def _(predicate: ForActivity, model):
    return model.activity_id == predicate.activity_id


@to_criterion.register
def _(predicate: DayFrom, model):
    return model.day >= predicate.value


@to_criterion.register
def _(predicate: DayUntil, model):
    return model.day <= predicate.value


@to_criterion.register
def _(predicate: NotArchived, model):
    return model.archived_at.is_(None)


def apply_filters(query: Query, model, predicates: Iterable) -> Query:
    """Narrow ``query`` by every predicate (logical AND)."""
    criteria = [to_criterion(p, model) for p in predicates]
    if criteria:
        query = query.filter(*criteria)
    return query
