"""
Tests para utilidades de fechas del pipeline PMS.
"""
from datetime import date, datetime, timedelta, timezone

from pms_sync.shared.utils.datetime_utils import (
    ensure_utc,
    format_pms_date,
    format_pms_timestamp,
    parse_pms_date,
    parse_pms_datetime,
)


def test_parse_pms_date_handles_sentinel_and_empty():
    assert parse_pms_date("1980-05-15") == date(1980, 5, 15)
    assert parse_pms_date("1980-05-15 00:00:00") == date(1980, 5, 15)
    assert parse_pms_date("0001-01-01") is None
    assert parse_pms_date("") is None
    assert parse_pms_date(None) is None
    assert parse_pms_date("basura") is None


def test_parse_pms_datetime_keeps_naive_local_time():
    parsed = parse_pms_datetime("2024-01-15 09:00:00")
    assert parsed == datetime(2024, 1, 15, 9, 0, 0)
    assert parsed.tzinfo is None


def test_parse_pms_datetime_with_zulu_suffix():
    parsed = parse_pms_datetime("2024-01-15T09:00:00Z")
    assert parsed == datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


def test_ensure_utc_converts_offsets():
    naive = datetime(2024, 1, 1, 12, 0)
    assert ensure_utc(naive).tzinfo == timezone.utc

    minus_five = datetime(2024, 1, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert ensure_utc(minus_five) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_format_pms_stamps():
    dt = datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert format_pms_timestamp(dt) == "2024-03-04 05:06:07"
    assert format_pms_date(dt) == "2024-03-04"
