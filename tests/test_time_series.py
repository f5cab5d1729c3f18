"""Tests for the trailing 7-day chart series."""

import math
from datetime import datetime, timedelta

from analytics.time_series import series_frame, weekly_series
from conftest import TODAY, make_entry


def test_single_entry_two_days_ago():
    slots = weekly_series([make_entry(1, mood=6, sleep_hours=7, days_ago=2)], today=TODAY)

    assert len(slots) == 7
    assert slots[0].date == TODAY - timedelta(days=6)
    assert slots[-1].date == TODAY
    present = [i for i, s in enumerate(slots) if s.mood is not None]
    assert present == [4]
    assert slots[4].date == TODAY - timedelta(days=2)
    assert slots[4].mood == 6
    assert all(s.missing for i, s in enumerate(slots) if i != 4)


def test_missing_is_none_not_zero():
    slots = weekly_series([], today=TODAY)
    assert all(s.mood is None and s.sleep_hours is None for s in slots)


def test_zero_sleep_is_a_real_value():
    slots = weekly_series([make_entry(1, sleep_hours=0)], today=TODAY)
    assert slots[-1].sleep_hours == 0.0
    assert not slots[-1].missing


def test_weekday_labels():
    slots = weekly_series([], today=TODAY)
    assert [s.label for s in slots] == [
        (TODAY - timedelta(days=6 - i)).strftime("%a") for i in range(7)
    ]


def test_newest_entry_wins_for_shared_date():
    older = make_entry(1, mood=3)
    newer = make_entry(2, mood=9)
    slots = weekly_series([newer, older], today=TODAY)
    assert slots[-1].mood == 9


def test_entries_outside_week_ignored():
    slots = weekly_series([make_entry(1, days_ago=7), make_entry(2, days_ago=-1)], today=TODAY)
    assert all(s.missing for s in slots)


def test_series_frame_uses_nan_for_missing():
    slots = weekly_series([make_entry(1, mood=6, days_ago=2)], today=TODAY)
    df = series_frame(slots)
    assert len(df) == 7
    assert df["mood"].iloc[4] == 6
    assert math.isnan(df["mood"].iloc[0])
    assert df["mood"].isna().sum() == 6


def test_entry_built_from_datetime_lands_on_its_day():
    e = make_entry(1, mood=7, entry_date=datetime(2026, 3, 15, 9, 0))
    slots = weekly_series([e], today=TODAY)
    assert slots[-1].mood == 7
