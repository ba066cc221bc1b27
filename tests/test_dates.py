"""
Test day keys and the served date window.
"""
from datetime import date

import pytest

from event_query_api.dates import (
    EARLIEST_DATE, in_served_range, next_date_str, parse_date, prev_date_str, try_parse_date
)


@pytest.mark.parametrize("day", [
    "2016-01-02", "2016-02-29", "2016-03-01", "2016-12-31", "2017-01-01", "2020-06-15",
])
def test_prev_next_round_trip(day):
    assert next_date_str(prev_date_str(day)) == day
    assert prev_date_str(next_date_str(day)) == day


def test_adjacent_days_cross_boundaries():
    assert prev_date_str("2017-01-01") == "2016-12-31"
    assert next_date_str("2016-02-28") == "2016-02-29"
    assert next_date_str("2017-02-28") == "2017-03-01"


@pytest.mark.parametrize("value", ["2016-13-40", "2017-02-29", "2017-1-5", "20170105", "", None, "bogus"])
def test_malformed_dates(value):
    assert try_parse_date(value) is None


def test_parse_date():
    assert parse_date("2017-03-01") == date(2017, 3, 1)
    with pytest.raises(ValueError):
        parse_date("2016-13-40")


def test_served_range_is_exclusive_at_both_ends():
    latest = date(2017, 6, 1)
    assert not in_served_range(EARLIEST_DATE, latest)
    assert not in_served_range(date(2015, 12, 31), latest)
    assert in_served_range(date(2016, 1, 2), latest)
    assert in_served_range(date(2017, 5, 31), latest)
    assert not in_served_range(latest, latest)
    assert not in_served_range(date(2017, 6, 2), latest)
