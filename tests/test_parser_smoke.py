"""Smoke tests for the day parser."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from roomdesk.services.parser import parse_day

# Fixed reference time: Sunday 2025-06-01 12:00 UTC
NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_defaults_to_tomorrow():
    start, end = parse_day(None, NOW)
    assert start == datetime(2025, 6, 2, tzinfo=timezone.utc)
    assert end == start + timedelta(days=1)


def test_blank_text_defaults_to_tomorrow():
    assert parse_day("   ", NOW) == parse_day("tomorrow", NOW)


def test_weekday_resolves_to_next_occurrence():
    start, end = parse_day("Friday", NOW)
    # Friday after 2025-06-01 (Sunday) is 2025-06-06
    assert start == datetime(2025, 6, 6, tzinfo=timezone.utc)
    assert end == datetime(2025, 6, 7, tzinfo=timezone.utc)


def test_window_starts_at_midnight():
    start, _ = parse_day("tomorrow", NOW)
    assert (start.hour, start.minute, start.second) == (0, 0, 0)


def test_raises_when_no_date():
    with pytest.raises(ValueError, match="No date found"):
        parse_day("xyzzy", NOW)
