"""Composable schedule filters.

A ``ScheduleFilter`` collects independent conditions and ANDs them together.
Every condition renders to a SQLAlchemy clause over ``travel_schedules``, so
the filter runs inside the store query.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.sql.elements import ColumnElement

from db.tables import schedules, stops
from schemas.schedule import as_utc


class InvalidRangeError(ValueError):
    pass


class Condition:
    name: str = "condition"

    def to_clause(self) -> ColumnElement[bool]:
        raise NotImplementedError


def _column(field: str):
    if field not in schedules.c:
        raise KeyError(f"unknown schedule field: {field}")
    return schedules.c[field]


@dataclass(frozen=True)
class Equals(Condition):
    field: str
    value: Any

    @property
    def name(self) -> str:
        return f"{self.field}_equals"

    def to_clause(self) -> ColumnElement[bool]:
        return _column(self.field) == self.value


@dataclass(frozen=True)
class Range(Condition):
    """Inclusive time range; either bound may be open."""

    field: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def name(self) -> str:
        return f"{self.field}_range"

    def to_clause(self) -> ColumnElement[bool]:
        column = _column(self.field)
        if self.start is not None and self.end is not None:
            return column.between(self.start, self.end)
        if self.start is not None:
            return column >= self.start
        return column <= self.end


@dataclass(frozen=True)
class HasNoStops(Condition):
    name: str = "has_no_stops"

    def to_clause(self) -> ColumnElement[bool]:
        schedule_stops = stops.alias("schedule_stops")
        return ~(
            select(schedule_stops.c.id)
            .where(schedule_stops.c.schedule_id == schedules.c.id)
            .correlate(schedules)
            .exists()
        )


class ScheduleFilter:
    def __init__(self) -> None:
        self._conditions: List[Condition] = []

    @classmethod
    def from_query(
        cls,
        source: Optional[str] = None,
        destination: Optional[str] = None,
        bus_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        arrival_start: Optional[datetime] = None,
        arrival_end: Optional[datetime] = None,
        departure_start: Optional[datetime] = None,
        departure_end: Optional[datetime] = None,
    ) -> "ScheduleFilter":
        return (
            cls()
            .equals("source", source)
            .equals("destination", destination)
            .equals("bus_id", bus_id)
            .equals("driver_id", driver_id)
            .within("estimated_arrival_time", arrival_start, arrival_end)
            .within("estimated_departure_time", departure_start, departure_end)
        )

    @property
    def conditions(self) -> List[Condition]:
        return list(self._conditions)

    def equals(self, field: str, value: Any) -> "ScheduleFilter":
        if value is not None:
            _column(field)
            self._conditions.append(Equals(field, value))
        return self

    def within(
        self, field: str, start: Optional[datetime], end: Optional[datetime]
    ) -> "ScheduleFilter":
        start, end = as_utc(start), as_utc(end)
        if start is None and end is None:
            return self
        if start is not None and end is not None and start > end:
            raise InvalidRangeError(f"{field} range start must not be after its end")
        _column(field)
        self._conditions.append(Range(field, start, end))
        return self

    def without_stops(self) -> "ScheduleFilter":
        self._conditions.append(HasNoStops())
        return self

    def where_clause(self) -> Optional[ColumnElement[bool]]:
        if not self._conditions:
            return None
        return and_(*(condition.to_clause() for condition in self._conditions))

    def __repr__(self) -> str:
        names = ", ".join(condition.name for condition in self._conditions) or "all"
        return f"ScheduleFilter({names})"
