from datetime import time

from cortana_rules.services.time_windows import in_any_range, is_minute_in_range, parse_hhmm


def test_parse_hhmm():
    assert parse_hhmm("07:05") == time(7, 5)
    assert parse_hhmm(" 22:00 ") == time(22, 0)
    assert parse_hhmm("24:00") is None
    assert parse_hhmm("7pm") is None
    assert parse_hhmm(None) is None


def test_daytime_range_is_inclusive():
    start, end = time(9, 0), time(17, 0)
    assert is_minute_in_range(9 * 60, start, end) is True
    assert is_minute_in_range(17 * 60, start, end) is True
    assert is_minute_in_range(8 * 60 + 59, start, end) is False
    assert is_minute_in_range(17 * 60 + 1, start, end) is False


def test_overnight_range_wraps():
    start, end = time(22, 0), time(6, 0)
    assert is_minute_in_range(23 * 60 + 30, start, end) is True
    assert is_minute_in_range(5 * 60 + 30, start, end) is True
    assert is_minute_in_range(12 * 60, start, end) is False


def test_in_any_range_accepts_objects_and_skips_bad_entries():
    class Period:
        start = "13:00"
        end = "14:00"

    ranges = [{"start": "bad", "end": "14:00"}, Period()]
    assert in_any_range(13 * 60 + 30, ranges) is True
    assert in_any_range(12 * 60, ranges) is False
    assert in_any_range(12 * 60, None) is False
