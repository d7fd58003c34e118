from datetime import datetime, timedelta, timezone

import pytest

from repos.schedule_filter import Equals, HasNoStops, InvalidRangeError, Range, ScheduleFilter
from repos.schedule_repository import stops_statement

UTC = timezone.utc


def test_empty_filter_has_no_clause():
    schedule_filter = ScheduleFilter.from_query()
    assert schedule_filter.conditions == []
    assert schedule_filter.where_clause() is None
    assert repr(schedule_filter) == "ScheduleFilter(all)"


def test_absent_parameters_add_no_condition():
    schedule_filter = ScheduleFilter.from_query(source="A", driver_id=2)
    assert schedule_filter.conditions == [Equals("source", "A"), Equals("driver_id", 2)]


def test_equality_conditions_are_anded():
    sql = str(ScheduleFilter.from_query(source="A", destination="B").where_clause())
    assert "travel_schedules.source = " in sql
    assert "travel_schedules.destination = " in sql
    assert " AND " in sql


def test_range_with_both_bounds_renders_between():
    schedule_filter = ScheduleFilter().within(
        "estimated_departure_time",
        datetime(2024, 1, 1, tzinfo=UTC),
        datetime(2024, 1, 2, tzinfo=UTC),
    )
    assert "BETWEEN" in str(schedule_filter.where_clause())


@pytest.mark.parametrize(
    "start, end, operator",
    [
        (datetime(2024, 1, 1, tzinfo=UTC), None, ">="),
        (None, datetime(2024, 1, 1, tzinfo=UTC), "<="),
    ],
)
def test_open_range_renders_single_comparison(start, end, operator):
    sql = str(ScheduleFilter().within("estimated_arrival_time", start, end).where_clause())
    assert f"travel_schedules.estimated_arrival_time {operator} " in sql


def test_naive_bounds_are_read_as_utc():
    schedule_filter = ScheduleFilter.from_query(departure_start=datetime(2024, 1, 1, 8))
    (condition,) = schedule_filter.conditions
    assert isinstance(condition, Range)
    assert condition.start == datetime(2024, 1, 1, 8, tzinfo=UTC)


def test_offset_bounds_are_converted_to_utc():
    plus_two = timezone(timedelta(hours=2))
    schedule_filter = ScheduleFilter.from_query(arrival_end=datetime(2024, 1, 1, 13, tzinfo=plus_two))
    (condition,) = schedule_filter.conditions
    assert condition.end == datetime(2024, 1, 1, 11, tzinfo=UTC)


def test_inverted_range_is_rejected():
    with pytest.raises(InvalidRangeError):
        ScheduleFilter.from_query(
            arrival_start=datetime(2024, 1, 2, tzinfo=UTC),
            arrival_end=datetime(2024, 1, 1, tzinfo=UTC),
        )


def test_unknown_field_is_rejected():
    with pytest.raises(KeyError):
        ScheduleFilter().equals("colour", "red")


def test_without_stops():
    schedule_filter = ScheduleFilter().equals("source", "A").without_stops()
    assert isinstance(schedule_filter.conditions[-1], HasNoStops)
    sql = str(schedule_filter.where_clause())
    assert "NOT" in sql
    assert "EXISTS" in sql


def test_stop_loading_binds_only_filter_values():
    clause = ScheduleFilter.from_query(source="A").without_stops().where_clause()
    compiled = stops_statement(clause).compile()
    assert list(compiled.params.values()) == ["A"]
    assert "schedule_stops" in str(compiled)


def test_stop_loading_without_filter_has_no_parameters():
    assert stops_statement().compile().params == {}
