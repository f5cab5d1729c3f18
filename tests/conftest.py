"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (wellness_entry, entry_store, ...)
and the analytics / pipeline / routes packages import by their plain names,
and provides small builders for entries and in-memory journals.
"""

import os
import sys
from datetime import date, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from wellness_entry import FitnessSnapshot, create_entry  # noqa: E402
from storage_backends import MemoryBackend  # noqa: E402

TODAY = date(2026, 3, 15)


def make_entry(entry_id, mood=5, sleep_hours=7.5, days_ago=0, **kwargs):
    """Valid entry dated TODAY - days_ago."""
    return create_entry(
        entry_id=entry_id,
        entry_date=kwargs.pop("entry_date", TODAY - timedelta(days=days_ago)),
        mood=mood,
        sleep_hours=sleep_hours,
        **kwargs,
    )


def newest_first(moods, sleeps, qualities=None):
    """Entries for consecutive days ending TODAY; index 0 is the newest."""
    qualities = qualities or [None] * len(moods)
    return [
        make_entry(1000 - i, mood=m, sleep_hours=s, days_ago=i, sleep_quality=q)
        for i, (m, s, q) in enumerate(zip(moods, sleeps, qualities))
    ]


class FixedSnapshots:
    """Deterministic snapshot provider recording the types it was asked for."""

    def __init__(self):
        self.calls = []

    def __call__(self, device_type):
        self.calls.append(device_type)
        return FitnessSnapshot(steps=8000, heart_rate=72, active_minutes=45, source=device_type)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def snapshots():
    return FixedSnapshots()
