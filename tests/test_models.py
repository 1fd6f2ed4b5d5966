import datetime as dt

import pytest
from bson import ObjectId

from database import build_log_filter
from models import (
    UserCreate,
    format_date,
    parse_date,
    parse_int,
    resolve_exercise_date,
    to_datetime,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("30", 30),
        (30, 30),
        ("30.7", 30),
        (30.7, 30),
        (" 45min", 45),
        ("-5", -5),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
    ],
)
def test_parse_int_uses_leading_digits(raw, expected):
    assert parse_int(raw) == expected


def test_parse_int_rejects_nan():
    assert parse_int(float("nan")) is None


def test_parse_date_accepts_iso_date_and_datetime():
    assert parse_date("2023-01-15") == dt.date(2023, 1, 15)
    assert parse_date("2023-01-15T10:30:00Z") == dt.date(2023, 1, 15)
    assert parse_date(dt.datetime(2023, 1, 15, 23, 59)) == dt.date(2023, 1, 15)


@pytest.mark.parametrize(
    "raw",
    ["Sun Jan 15 2023", "2023/01/15", "January 15, 2023", "01/15/2023", "15 Jan 2023"],
)
def test_parse_date_accepts_looser_formats(raw):
    assert parse_date(raw) == dt.date(2023, 1, 15)


def test_parse_date_reads_its_own_output():
    day = dt.date(2023, 3, 5)
    assert parse_date(format_date(day)) == day


def test_parse_date_converts_offset_datetimes_to_utc():
    assert parse_date("2023-01-15T23:00:00-05:00") == dt.date(2023, 1, 16)
    assert parse_date("2023-01-15T01:00:00+02:00") == dt.date(2023, 1, 14)
    aware = dt.datetime(2023, 1, 15, 23, tzinfo=dt.timezone(dt.timedelta(hours=-5)))
    assert parse_date(aware) == dt.date(2023, 1, 16)


@pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "2023-13-40"])
def test_parse_date_returns_none_for_unusable_input(raw):
    assert parse_date(raw) is None


def test_resolve_exercise_date_defaults_to_today():
    today = dt.datetime.now(dt.timezone.utc).date()
    assert resolve_exercise_date(None) == today
    assert resolve_exercise_date("garbage") == today
    assert resolve_exercise_date("2020-02-29") == dt.date(2020, 2, 29)


def test_format_date_matches_browser_style():
    assert format_date(dt.date(2023, 1, 15)) == "Sun Jan 15 2023"
    assert format_date(dt.datetime(2023, 3, 5)) == "Sun Mar 05 2023"


def test_to_datetime_is_utc_midnight():
    value = to_datetime(dt.date(2023, 1, 15))
    assert value == dt.datetime(2023, 1, 15, tzinfo=dt.timezone.utc)


class TestBuildLogFilter:
    def test_user_only(self):
        oid = ObjectId()
        assert build_log_filter(oid) == {"user_id": oid}

    def test_from_bound_is_inclusive_gte(self):
        oid = ObjectId()
        query = build_log_filter(oid, date_from=dt.date(2023, 1, 1))
        assert query == {"user_id": oid, "date": {"$gte": to_datetime(dt.date(2023, 1, 1))}}

    def test_to_bound_is_inclusive_lte(self):
        oid = ObjectId()
        query = build_log_filter(oid, date_to=dt.date(2023, 1, 31))
        assert query == {"user_id": oid, "date": {"$lte": to_datetime(dt.date(2023, 1, 31))}}

    def test_both_bounds_combine(self):
        oid = ObjectId()
        query = build_log_filter(oid, dt.date(2023, 1, 1), dt.date(2023, 1, 31))
        assert query["date"] == {
            "$gte": to_datetime(dt.date(2023, 1, 1)),
            "$lte": to_datetime(dt.date(2023, 1, 31)),
        }


def test_user_create_turns_numeric_username_into_text():
    assert UserCreate(username=123).username == "123"
    assert UserCreate(username=1.5).username == "1.5"
