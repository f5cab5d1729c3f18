"""
Wellness Entry Model
====================
One immutable check-in: mood, sleep and notes for a calendar day, plus an
optional fitness snapshot handed over by the device registry.

Validation happens once, in create_entry(); everything downstream
(aggregation, insights, charting) assumes bounded values.

Persisted records use the camelCase layout of the journal's JSON log.
Older records (schema 1) lack sleepQuality, bedTime, wakeTime,
sleepDisturbances and fitnessSnapshot, carry string ids, and store the
mood glyph under "emoji"; entry_from_record() fills the gaps.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from constants import (
    MOOD_MAX,
    MOOD_MIN,
    MOOD_SCALE,
    NO_DISTURBANCE,
    SLEEP_DISTURBANCES,
    SLEEP_HOURS_MAX,
    SLEEP_HOURS_MIN,
    SLEEP_QUALITY_MAX,
    SLEEP_QUALITY_MIN,
)


class EntryValidationError(ValueError):
    """Raised when a check-in carries out-of-range or ill-typed values."""


@dataclass(frozen=True)
class FitnessSnapshot:
    steps: int
    heart_rate: int
    active_minutes: int
    source: str = ""


@dataclass(frozen=True)
class WellnessEntry:
    id: int
    date: date
    mood: int
    mood_label: str
    sleep_hours: float
    notes: str = ""
    sleep_quality: Optional[int] = None
    bed_time: Optional[time] = None
    wake_time: Optional[time] = None
    sleep_disturbances: Tuple[str, ...] = field(default_factory=tuple)
    fitness_snapshot: Optional[FitnessSnapshot] = None


# ─── Mood / disturbance helpers ─────────────────────────────

def mood_label_for(mood: int) -> str:
    """Return the display glyph for a mood value."""
    if mood not in MOOD_SCALE:
        raise EntryValidationError(f"mood must be an integer in [{MOOD_MIN}, {MOOD_MAX}], got {mood!r}")
    return MOOD_SCALE[mood][0]


def mood_name_for(mood: int) -> str:
    return MOOD_SCALE.get(mood, ("", "Unknown"))[1]


def toggle_disturbance(current: Iterable[str], tag: str) -> Tuple[str, ...]:
    """Apply one click on a disturbance tag.

    Selecting "None" clears every other tag; selecting any other tag clears
    "None"; selecting a tag that is already present removes it.
    """
    if tag not in SLEEP_DISTURBANCES:
        raise EntryValidationError(f"Unknown sleep disturbance: {tag!r}")
    tags = list(current)
    if tag in tags:
        return tuple(t for t in tags if t != tag)
    if tag == NO_DISTURBANCE:
        return (NO_DISTURBANCE,)
    return tuple(t for t in tags if t != NO_DISTURBANCE) + (tag,)


def normalize_disturbances(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if not tags:
        return ()
    if isinstance(tags, str):
        tags = [tags]
    ordered = tuple(dict.fromkeys(tags))
    unknown = [t for t in ordered if t not in SLEEP_DISTURBANCES]
    if unknown:
        raise EntryValidationError(f"Unknown sleep disturbance(s): {', '.join(map(str, unknown))}")
    if NO_DISTURBANCE in ordered and len(ordered) > 1:
        raise EntryValidationError('"None" cannot be combined with other sleep disturbances')
    return ordered


# ─── Coercion ───────────────────────────────────────────────

def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise EntryValidationError(f"Invalid date: {value!r}") from e


def _as_time(value: Union[time, str, None]) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError as e:
        raise EntryValidationError(f"Invalid time of day: {value!r}") from e


def _as_int_in_range(name: str, value: Any, low: int, high: int) -> int:
    if isinstance(value, bool):
        raise EntryValidationError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise EntryValidationError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise EntryValidationError(f"{name} must be in [{low}, {high}], got {value}")
    return value


def _as_sleep_hours(value: Any) -> float:
    if isinstance(value, bool):
        raise EntryValidationError(f"sleep_hours must be a number, got {value!r}")
    try:
        hours = float(value)
    except (TypeError, ValueError) as e:
        raise EntryValidationError(f"sleep_hours must be a number, got {value!r}") from e
    if not math.isfinite(hours) or not SLEEP_HOURS_MIN <= hours <= SLEEP_HOURS_MAX:
        raise EntryValidationError(
            f"sleep_hours must be in [{SLEEP_HOURS_MIN:g}, {SLEEP_HOURS_MAX:g}], got {value}"
        )
    return hours


def create_entry(
    *,
    entry_id: int,
    entry_date: Union[date, str],
    mood: int,
    sleep_hours: float,
    notes: str = "",
    sleep_quality: Optional[int] = None,
    bed_time: Union[time, str, None] = None,
    wake_time: Union[time, str, None] = None,
    sleep_disturbances: Optional[Iterable[str]] = None,
    fitness_snapshot: Optional[FitnessSnapshot] = None,
) -> WellnessEntry:
    """Validate raw check-in values and build an immutable entry."""
    mood = _as_int_in_range("mood", mood, MOOD_MIN, MOOD_MAX)
    quality = None
    if sleep_quality is not None:
        quality = _as_int_in_range("sleep_quality", sleep_quality, SLEEP_QUALITY_MIN, SLEEP_QUALITY_MAX)

    return WellnessEntry(
        id=int(entry_id),
        date=_as_date(entry_date),
        mood=mood,
        mood_label=mood_label_for(mood),
        sleep_hours=_as_sleep_hours(sleep_hours),
        notes=notes or "",
        sleep_quality=quality,
        bed_time=_as_time(bed_time),
        wake_time=_as_time(wake_time),
        sleep_disturbances=normalize_disturbances(sleep_disturbances),
        fitness_snapshot=fitness_snapshot,
    )


# ─── JSON records ───────────────────────────────────────────

def _fmt_time(value: Optional[time]) -> Optional[str]:
    """HH:MM when that is exact, full ISO form otherwise."""
    if value is None:
        return None
    if value.second == 0 and value.microsecond == 0 and value.tzinfo is None:
        return value.strftime("%H:%M")
    return value.isoformat()


def entry_to_record(entry: WellnessEntry) -> Dict[str, Any]:
    snap = entry.fitness_snapshot
    return {
        "id": entry.id,
        "date": entry.date.isoformat(),
        "mood": entry.mood,
        "moodLabel": entry.mood_label,
        "notes": entry.notes,
        "sleepHours": entry.sleep_hours,
        "sleepQuality": entry.sleep_quality,
        "bedTime": _fmt_time(entry.bed_time),
        "wakeTime": _fmt_time(entry.wake_time),
        "sleepDisturbances": list(entry.sleep_disturbances),
        "fitnessSnapshot": (
            {
                "steps": snap.steps,
                "heartRate": snap.heart_rate,
                "activeMinutes": snap.active_minutes,
                "source": snap.source,
            }
            if snap is not None
            else None
        ),
    }


def entry_from_record(record: Dict[str, Any]) -> WellnessEntry:
    """Rebuild an entry from its persisted record.

    The stored mood label is kept as-is rather than re-derived.
    """
    if not isinstance(record, dict):
        raise EntryValidationError(f"Entry record must be an object, got {type(record).__name__}")
    try:
        entry_id = int(record["id"])
    except (KeyError, TypeError, ValueError) as e:
        raise EntryValidationError(f"Entry record has no usable id: {record.get('id')!r}") from e

    snap_raw = record.get("fitnessSnapshot")
    snapshot = None
    if isinstance(snap_raw, dict):
        snapshot = FitnessSnapshot(
            steps=snap_raw.get("steps"),
            heart_rate=snap_raw.get("heartRate"),
            active_minutes=snap_raw.get("activeMinutes"),
            source=snap_raw.get("source") or "",
        )

    entry = create_entry(
        entry_id=entry_id,
        entry_date=record.get("date"),
        mood=record.get("mood"),
        sleep_hours=record.get("sleepHours"),
        notes=record.get("notes") or "",
        sleep_quality=record.get("sleepQuality"),
        bed_time=record.get("bedTime"),
        wake_time=record.get("wakeTime"),
        sleep_disturbances=record.get("sleepDisturbances"),
        fitness_snapshot=snapshot,
    )
    stored_label = record.get("moodLabel") or record.get("emoji")
    if stored_label:
        entry = replace(entry, mood_label=stored_label)
    return entry
