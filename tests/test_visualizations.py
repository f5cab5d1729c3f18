"""Tests for the plotly weekly charts."""

from analytics.time_series import weekly_series
from conftest import TODAY, make_entry
from visualizations import WellnessVisualizer


def _slots():
    entries = [
        make_entry(2, mood=8, sleep_hours=7.5, sleep_quality=4),
        make_entry(1, mood=4, sleep_hours=0, days_ago=3),
    ]
    return weekly_series(entries, today=TODAY)


def test_weekly_chart_draws_gaps_not_zeros():
    fig = WellnessVisualizer().create_weekly_chart(_slots())
    mood, sleep = fig.data
    assert mood.name == "Mood"
    assert sleep.name == "Sleep Hours"
    assert mood.connectgaps is False
    assert list(mood.y) == [None, None, None, 4, None, None, 8]
    assert list(sleep.y)[3] == 0
    assert list(sleep.y)[0] is None
    assert fig.layout.title.text == "Weekly Mood & Sleep Chart"


def test_no_slots_no_chart():
    assert WellnessVisualizer().create_weekly_chart([]) is None


def test_sleep_quality_chart_skipped_without_quality():
    slots = weekly_series([make_entry(1)], today=TODAY)
    assert WellnessVisualizer().create_sleep_quality_chart(slots) is None


def test_export_writes_html(tmp_path):
    written = WellnessVisualizer().export_weekly_charts(_slots(), str(tmp_path))
    assert set(written) == {"weekly_mood_sleep", "weekly_sleep_quality"}
    for path in written.values():
        assert (tmp_path / path.split("/")[-1]).read_text(encoding="utf-8").lstrip().startswith("<html")
