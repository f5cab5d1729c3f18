"""
Trailing 7-day calendar grid for charting.

Every slot is a calendar day; days without an entry carry None for each
metric.  None is the missing marker and must be drawn as a gap, never as
zero (0 h of sleep is a real value).  When several entries share a date the
newest one wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from wellness_entry import WellnessEntry

WEEK_DAYS = 7


@dataclass(frozen=True)
class DaySlot:
    date: date
    label: str
    mood: Optional[int]
    sleep_hours: Optional[float]
    sleep_quality: Optional[int]

    @property
    def missing(self) -> bool:
        return self.mood is None and self.sleep_hours is None and self.sleep_quality is None


def weekly_series(
    entries: Sequence[WellnessEntry],
    today: Optional[date] = None,
    days: int = WEEK_DAYS,
) -> List[DaySlot]:
    """Project newest-first entries onto [today - (days-1), today], oldest first."""
    today = today or date.today()
    grid = pd.date_range(end=pd.Timestamp(today), periods=days, freq="D")

    by_day: Dict[date, WellnessEntry] = {}
    for entry in entries:
        by_day.setdefault(entry.date, entry)

    slots: List[DaySlot] = []
    for ts in grid:
        day = ts.date()
        entry = by_day.get(day)
        slots.append(
            DaySlot(
                date=day,
                label=ts.strftime("%a"),
                mood=entry.mood if entry else None,
                sleep_hours=entry.sleep_hours if entry else None,
                sleep_quality=entry.sleep_quality if entry else None,
            )
        )
    return slots


def series_frame(slots: Sequence[DaySlot]) -> pd.DataFrame:
    """The series as a DataFrame; missing markers become NaN."""
    df = pd.DataFrame(
        {
            "date": [s.date for s in slots],
            "label": [s.label for s in slots],
            "mood": [s.mood for s in slots],
            "sleep_hours": [s.sleep_hours for s in slots],
            "sleep_quality": [s.sleep_quality for s in slots],
        }
    )
    for col in ("mood", "sleep_hours", "sleep_quality"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df
