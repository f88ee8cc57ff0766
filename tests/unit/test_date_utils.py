from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from app.utils.date_utils import (
    InvalidDateError,
    format_date_local,
    iter_days,
    local_today,
    parse_date_local,
)

CHICAGO = ZoneInfo("America/Chicago")


def test_parse_date_local_uses_components_only():
    assert parse_date_local("2024-06-10") == date(2024, 6, 10)


def test_parse_date_local_accepts_timestamp_prefix():
    # Only the day part matters; no UTC shift for western zones
    assert parse_date_local("2024-06-10T00:00:00+00:00") == date(2024, 6, 10)


def test_parse_date_local_accepts_space_separated_timestamp():
    assert parse_date_local("2024-06-10 08:00:00") == date(2024, 6, 10)


def test_parse_date_local_passes_dates_through():
    assert parse_date_local(date(2024, 1, 31)) == date(2024, 1, 31)
    assert parse_date_local(datetime(2024, 1, 31, 23, 59)) == date(2024, 1, 31)


@pytest.mark.parametrize(
    "value",
    ["", "2024-6-10", "06/10/2024", "2024-13-01", "2024-02-30", "2024-06-10garbage", None],
)
def test_parse_date_local_rejects_malformed(value):
    with pytest.raises(InvalidDateError) as exc:
        parse_date_local(value)

    assert exc.value.value == value


def test_format_date_local_pads():
    assert format_date_local(date(2024, 3, 5)) == "2024-03-05"


def test_local_today_converts_aware_instants():
    # 03:00 UTC on the 11th is still the evening of the 10th in Chicago
    as_of = datetime(2024, 6, 11, 3, 0, tzinfo=UTC)

    assert local_today(as_of, CHICAGO) == date(2024, 6, 10)


def test_local_today_keeps_naive_wall_clock():
    assert local_today(datetime(2024, 6, 10, 23, 30), CHICAGO) == date(2024, 6, 10)


def test_iter_days_is_inclusive():
    days = list(iter_days(date(2024, 2, 28), date(2024, 3, 1)))

    assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]


def test_iter_days_empty_when_end_before_start():
    assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []
