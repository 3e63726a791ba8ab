from datetime import datetime, timedelta, timezone

import pytest

from hubblecli.timeutil import (
    RFC1123Z,
    RFC3339,
    RFC3339_MICRO,
    RFC3339_MILLI,
    RFC3339_NANO,
    STAMP_MILLI,
    format_name_to_layout,
    format_time,
    from_string,
    parse_duration,
)

NOW = datetime(2019, 7, 1, 14, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("10s", "2019-07-01T13:59:50Z"),
        ("5m", "2019-07-01T13:55:00Z"),
        ("20h", "2019-06-30T18:00:00Z"),
        ("2019-06-30T18:00:00Z", "2019-06-30T18:00:00Z"),
    ],
)
def test_from_string(value, expected):
    assert from_string(value, NOW) == from_string(expected, NOW)


def test_from_string_relative_value():
    assert from_string("20h", NOW) == datetime(2019, 6, 30, 18, 0, tzinfo=timezone.utc)


def test_from_string_rfc3339_with_offset_and_fraction():
    parsed = from_string("2019-07-01T16:00:00.250+02:00", NOW)
    assert parsed == datetime(2019, 7, 1, 14, 0, 0, 250000, tzinfo=timezone.utc)


def test_from_string_rfc1123z():
    parsed = from_string("Mon, 01 Jul 2019 14:00:00 +0200", NOW)
    assert parsed == datetime(2019, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["yesterday", "10", "2019-13-01T00:00:00Z", ""])
def test_from_string_invalid(value):
    with pytest.raises(ValueError, match="failed to convert"):
        from_string(value, NOW)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0", timedelta(0)),
        ("10s", timedelta(seconds=10)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("-1.5s", -timedelta(seconds=1, microseconds=500000)),
        ("300ms", timedelta(milliseconds=300)),
        ("+2us", timedelta(microseconds=2)),
        ("1µs", timedelta(microseconds=1)),
        (".5m", timedelta(seconds=30)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "+", "-", "10", "1x", ".s", "s", "1.5.5s"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


@pytest.mark.parametrize(
    "name, layout",
    [
        ("StampMilli", STAMP_MILLI),
        ("RFC3339", RFC3339),
        ("rfc3339milli", RFC3339_MILLI),
        ("RFC3339Micro", RFC3339_MICRO),
        ("RFC3339NANO", RFC3339_NANO),
        ("RFC1123Z", RFC1123Z),
        ("something-else", STAMP_MILLI),
    ],
)
def test_format_name_to_layout(name, layout):
    assert format_name_to_layout(name) == layout


def test_format_time_stamp_milli_epoch():
    moment = datetime.fromtimestamp(0, timezone.utc)
    assert format_time(moment, STAMP_MILLI) == "Jan  1 00:00:00.000"


def test_format_time_stamp_milli_non_zero():
    moment = datetime(2018, 7, 7, 17, 30, 0, 123000, tzinfo=timezone.utc)
    assert format_time(moment, STAMP_MILLI) == "Jul  7 17:30:00.123"


def test_format_time_trims_zero_fraction():
    moment = datetime(2019, 6, 30, 18, 0, tzinfo=timezone.utc)
    assert "." not in format_time(moment, RFC3339_MILLI)
    assert format_time(moment, RFC3339_MILLI) == format_time(moment, RFC3339)


@pytest.mark.parametrize(
    "layout, microsecond",
    [
        (RFC3339, 0),
        (RFC3339_MILLI, 123000),
        (RFC3339_MICRO, 123456),
        (RFC3339_NANO, 123456),
        (RFC1123Z, 0),
    ],
)
@pytest.mark.parametrize("tz", [timezone.utc, timezone(timedelta(hours=2)), timezone(timedelta(hours=-5, minutes=-30))])
def test_format_then_parse_round_trip(layout, microsecond, tz):
    moment = datetime(2021, 3, 4, 5, 6, 7, microsecond, tzinfo=tz)
    assert from_string(format_time(moment, layout), NOW) == moment


def test_format_time_rfc3339_utc_uses_z():
    moment = datetime(2019, 6, 30, 18, 0, tzinfo=timezone.utc)
    assert format_time(moment, RFC3339) == "2019-06-30T18:00:00Z"