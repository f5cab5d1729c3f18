"""Rolling-window averages over the newest wellness entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import pandas as pd

from constants import DEFAULT_WINDOW, MIN_ENTRIES_FOR_INSIGHTS
from wellness_entry import WellnessEntry


@dataclass(frozen=True)
class RollingStats:
    window: int
    avg_mood: float
    avg_sleep_hours: float
    avg_sleep_quality: Optional[float]


@dataclass(frozen=True)
class InsufficientData:
    """Not enough history yet; not an error and not a zero average."""

    total_entries: int
    required: int = MIN_ENTRIES_FOR_INSIGHTS


StatsResult = Union[RollingStats, InsufficientData]


def window_frame(entries: Sequence[WellnessEntry], window_size: int = DEFAULT_WINDOW) -> pd.DataFrame:
    """DataFrame of the min(window_size, n) newest entries, newest first."""
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")
    recent = list(entries[:window_size])
    return pd.DataFrame(
        {
            "date": [e.date for e in recent],
            "mood": [e.mood for e in recent],
            "sleep_hours": [e.sleep_hours for e in recent],
            "sleep_quality": [e.sleep_quality for e in recent],
        },
        columns=["date", "mood", "sleep_hours", "sleep_quality"],
    )


def rolling_stats(entries: Sequence[WellnessEntry], window_size: int = DEFAULT_WINDOW) -> StatsResult:
    """Unweighted means of mood, sleep hours and sleep quality.

    Entries are newest-first.  Fewer than MIN_ENTRIES_FOR_INSIGHTS entries in
    total yields InsufficientData.  Sleep quality is averaged over the entries
    that carry it and is None when none in the window do.
    """
    df = window_frame(entries, window_size)
    if len(entries) < MIN_ENTRIES_FOR_INSIGHTS:
        return InsufficientData(total_entries=len(entries))

    quality = pd.to_numeric(df["sleep_quality"], errors="coerce").dropna()
    return RollingStats(
        window=len(df),
        avg_mood=float(df["mood"].mean()),
        avg_sleep_hours=float(df["sleep_hours"].astype(float).mean()),
        avg_sleep_quality=float(quality.mean()) if not quality.empty else None,
    )
