"""
Tests for rolling-window aggregation.

Covers:
- InsufficientData below three entries
- window = min(w, n) newest entries
- forward shift when a newer entry arrives
- sleep quality averaged only over entries that carry it
"""

import pytest

from analytics.rolling_stats import InsufficientData, RollingStats, rolling_stats, window_frame
from conftest import make_entry, newest_first


class TestInsufficientData:

    @pytest.mark.parametrize("n", [0, 1, 2])
    def test_fewer_than_three_entries(self, n):
        entries = newest_first([5] * n, [7] * n)
        result = rolling_stats(entries)
        assert isinstance(result, InsufficientData)
        assert result.total_entries == n
        assert result.required == 3

    def test_three_entries_is_enough(self):
        assert isinstance(rolling_stats(newest_first([5, 5, 5], [7, 7, 7])), RollingStats)

    def test_small_window_over_long_log_is_not_insufficient(self):
        entries = newest_first([4, 6, 8, 2], [7, 7, 7, 7])
        result = rolling_stats(entries, window_size=1)
        assert isinstance(result, RollingStats)
        assert result.window == 1
        assert result.avg_mood == 4


class TestWindow:

    @pytest.mark.parametrize("w", range(1, 8))
    def test_uses_min_w_n_newest(self, w):
        moods = [10, 9, 8, 7, 6, 5]
        entries = newest_first(moods, [8] * len(moods))
        result = rolling_stats(entries, window_size=w)
        used = moods[: min(w, len(moods))]
        assert result.window == len(used)
        assert result.avg_mood == pytest.approx(sum(used) / len(used))

    def test_newer_entry_shifts_window_forward(self):
        entries = newest_first([2, 4, 6, 8], [6, 6, 6, 6])
        before = rolling_stats(entries, window_size=3)
        assert before.avg_mood == pytest.approx(4.0)

        newer = make_entry(5000, mood=10, sleep_hours=6)
        after = rolling_stats([newer] + entries, window_size=3)
        # oldest of the old window (6) drops out; 8 was already outside
        assert after.avg_mood == pytest.approx((10 + 2 + 4) / 3)

    def test_sleep_hours_mean(self):
        result = rolling_stats(newest_first([5, 5, 5], [6, 7, 8.5]))
        assert result.avg_sleep_hours == pytest.approx(7.1666, rel=1e-3)

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError):
            window_frame(newest_first([5, 5, 5], [7, 7, 7]), 0)


class TestSleepQuality:

    def test_averages_only_present_values(self):
        entries = newest_first([5, 5, 5], [7, 7, 7], qualities=[2, None, 4])
        assert rolling_stats(entries).avg_sleep_quality == pytest.approx(3.0)

    def test_none_when_no_entry_has_quality(self):
        assert rolling_stats(newest_first([5, 5, 5], [7, 7, 7])).avg_sleep_quality is None
