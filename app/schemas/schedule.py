from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_place(value: str, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field} must not be empty")
    return cleaned


def _check_unique_sequences(stops: Optional[List["StopIn"]]) -> None:
    if not stops:
        return
    sequences = [stop.sequence for stop in stops]
    if len(set(sequences)) != len(sequences):
        raise ValueError("stop sequences must be unique within a schedule")


def check_times(departure: Optional[datetime], arrival: Optional[datetime]) -> None:
    if departure is not None and arrival is not None and arrival <= departure:
        raise ValueError("estimatedArrivalTime must be after estimatedDepartureTime")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StopIn(CamelModel):
    name: str = Field(..., max_length=128)
    sequence: int = Field(..., ge=1, description="1-based position on the route")
    estimated_arrival_time: Optional[datetime] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _clean_place(value, "name")

    @field_validator("estimated_arrival_time")
    @classmethod
    def normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Stop(StopIn):
    id: int


class ScheduleCreate(CamelModel):
    source: str = Field(..., max_length=128)
    destination: str = Field(..., max_length=128)
    estimated_arrival_time: Optional[datetime] = None
    estimated_departure_time: Optional[datetime] = None
    bus_id: Optional[int] = None
    driver_id: Optional[int] = None
    stops: List[StopIn] = Field(default_factory=list)

    @field_validator("source", "destination", mode="before")
    @classmethod
    def strip_place(cls, value: str, info: ValidationInfo) -> str:
        return _clean_place(value, info.field_name)

    @field_validator("estimated_arrival_time", "estimated_departure_time")
    @classmethod
    def normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def check_consistency(self) -> "ScheduleCreate":
        check_times(self.estimated_departure_time, self.estimated_arrival_time)
        _check_unique_sequences(self.stops)
        return self


class ScheduleUpdate(CamelModel):
    """Partial update: only the fields present in the payload are changed.

    A supplied ``stops`` list replaces every stop of the schedule.
    """

    source: Optional[str] = Field(None, max_length=128)
    destination: Optional[str] = Field(None, max_length=128)
    estimated_arrival_time: Optional[datetime] = None
    estimated_departure_time: Optional[datetime] = None
    bus_id: Optional[int] = None
    driver_id: Optional[int] = None
    stops: Optional[List[StopIn]] = None

    @field_validator("source", "destination", mode="before")
    @classmethod
    def strip_place(cls, value: str, info: ValidationInfo) -> str:
        return _clean_place(value, info.field_name)

    @field_validator("estimated_arrival_time", "estimated_departure_time")
    @classmethod
    def normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def check_stops(self) -> "ScheduleUpdate":
        _check_unique_sequences(self.stops)
        return self


class Schedule(CamelModel):
    id: int
    source: str
    destination: str
    estimated_arrival_time: Optional[datetime] = None
    estimated_departure_time: Optional[datetime] = None
    bus_id: Optional[int] = None
    driver_id: Optional[int] = None
    stops: List[Stop] = Field(default_factory=list)

    @field_validator("estimated_arrival_time", "estimated_departure_time")
    @classmethod
    def normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)
