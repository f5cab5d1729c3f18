"""
Shared helpers for API routes.
Contains: JSON coercion and payload builders for entries, stats,
insights, weekly series and devices.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Sequence

from analytics.insight_generator import InsightReport
from analytics.rolling_stats import InsufficientData, StatsResult
from analytics.time_series import DaySlot
from device_registry import DeviceRecord
from wellness_entry import WellnessEntry, entry_to_record, mood_name_for


# ─── Type coercion ──────────────────────────────────────────

def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if value is not None else None


# ─── Payloads ───────────────────────────────────────────────

def _entry_payload(entry: WellnessEntry) -> Dict[str, Any]:
    out = entry_to_record(entry)
    out["moodName"] = mood_name_for(entry.mood)
    return out


def _stats_payload(stats: StatsResult) -> Dict[str, Any]:
    if isinstance(stats, InsufficientData):
        return {
            "status": "insufficient_data",
            "total_entries": stats.total_entries,
            "required": stats.required,
        }
    return {
        "status": "ok",
        "window": stats.window,
        "avg_mood": _round(stats.avg_mood),
        "avg_sleep_hours": _round(stats.avg_sleep_hours),
        "avg_sleep_quality": _round(stats.avg_sleep_quality),
    }


def _insight_payload(report: InsightReport, analysis: str) -> Dict[str, Any]:
    return {
        "analysis": analysis,
        "clauses": [c.strip() for c in report.clauses],
        "suggestions": list(report.suggestions),
        "dominant_disturbance": report.dominant_disturbance,
        "sufficient_data": report.sufficient,
        "stats": _stats_payload(report.stats) if report.stats is not None else None,
    }


def _series_payload(slots: Sequence[DaySlot]) -> List[Dict[str, Any]]:
    """One row per day; missing metrics stay null (drawn as gaps)."""
    return [
        {
            "date": _to_jsonable(s.date),
            "day": s.label,
            "mood": s.mood,
            "sleep": s.sleep_hours,
            "sleepQuality": s.sleep_quality,
            "missing": s.missing,
        }
        for s in slots
    ]


def _device_payload(device: DeviceRecord) -> Dict[str, Any]:
    return device.to_record()
