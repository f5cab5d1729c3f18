"""
Contract tests for the check-in pipeline.

Covers:
- submit -> store -> analysis refresh
- validation failures leave the log untouched
- fitness snapshot attachment and snapshot failure degradation
- caller-side duplicate device guard
- serialized writes under concurrent callers
- optional supportive note
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from unittest.mock import MagicMock

import pytest

from analytics.insight_generator import KEEP_TRACKING_MESSAGE, LOW_MOOD_CLAUSE
from analytics.rolling_stats import InsufficientData, RollingStats
from companion import FALLBACK_REPLY, ProviderError, SupportiveCompanion
from device_registry import DeviceRegistry
from entry_store import EntryStore
from pipeline.checkin_pipeline import CheckInPipeline, DeviceAlreadyConnectedError, build_pipeline
from storage_backends import MemoryBackend
from wellness_entry import EntryValidationError, FitnessSnapshot


@pytest.fixture
def pipeline(backend, snapshots):
    return CheckInPipeline(
        store=EntryStore(backend),
        registry=DeviceRegistry(backend, snapshot_provider=snapshots),
        companion=SupportiveCompanion(None),
        ai_notes=False,
    ).start()


def _submit(p, mood=5, sleep=7.5, day=None, **kwargs):
    return p.submit(mood=mood, sleep_hours=sleep, entry_date=day or date(2026, 3, 15), **kwargs)


# ─── Check-ins ───────────────────────────────────────────────


class TestSubmit:

    def test_first_entries_keep_tracking(self, pipeline):
        _submit(pipeline)
        assert pipeline.analysis == KEEP_TRACKING_MESSAGE
        assert isinstance(pipeline.stats(), InsufficientData)

    def test_analysis_refreshes_after_third_entry(self, pipeline):
        for mood in (2, 3, 2):
            _submit(pipeline, mood=mood, sleep=5)
        assert pipeline.analysis.startswith(LOW_MOOD_CLAUSE)
        assert isinstance(pipeline.stats(), RollingStats)
        assert pipeline.report.sufficient

    def test_entries_newest_first_with_increasing_ids(self, pipeline):
        a = _submit(pipeline)
        b = _submit(pipeline)
        assert b.id > a.id
        assert [e.id for e in pipeline.entries()] == [b.id, a.id]
        assert pipeline.entries(1) == [b]

    def test_invalid_entry_not_stored(self, pipeline):
        with pytest.raises(EntryValidationError):
            _submit(pipeline, mood=11)
        assert len(pipeline.store) == 0

    def test_defaults_to_today(self, pipeline):
        entry = pipeline.submit(mood=5, sleep_hours=8)
        assert entry.date == date.today()

    def test_start_loads_persisted_entries(self, backend, pipeline):
        for _ in range(3):
            _submit(pipeline)
        reopened = CheckInPipeline(store=EntryStore(backend), ai_notes=False).start()
        assert len(reopened.store) == 3
        assert reopened.analysis == pipeline.analysis

    def test_weekly_series(self, pipeline):
        _submit(pipeline, mood=8, day=date(2026, 3, 13))
        slots = pipeline.weekly_series(date(2026, 3, 15))
        assert [s.mood for s in slots] == [None, None, None, None, 8, None, None]


# ─── Fitness snapshots ──────────────────────────────────────


class TestSnapshots:

    def test_rejected_entry_draws_no_snapshot(self, pipeline, snapshots):
        pipeline.connect_device("garmin")
        with pytest.raises(EntryValidationError):
            _submit(pipeline, sleep=30)
        assert snapshots.calls == []

    def test_no_device_no_snapshot(self, pipeline, snapshots):
        assert _submit(pipeline).fitness_snapshot is None
        assert snapshots.calls == []

    def test_snapshot_from_connected_device(self, pipeline, snapshots):
        pipeline.connect_device("garmin")
        entry = _submit(pipeline)
        assert entry.fitness_snapshot.steps == 8000
        assert entry.fitness_snapshot.source == "garmin"

    def test_most_recent_connection_supplies_snapshot(self, pipeline, snapshots):
        pipeline.connect_device("fitbit")
        pipeline.connect_device("oura")
        _submit(pipeline)
        assert snapshots.calls == ["oura"]

    def test_snapshot_failure_stores_entry_without_snapshot(self, backend):
        failing = MagicMock(side_effect=RuntimeError("sensor offline"))
        p = CheckInPipeline(
            store=EntryStore(backend),
            registry=DeviceRegistry(backend, snapshot_provider=failing),
            ai_notes=False,
        ).start()
        p.connect_device("fitbit")
        entry = _submit(p)
        assert entry.fitness_snapshot is None
        assert len(p.store) == 1


# ─── Concurrent writers ────────────────────────────────────


class TestConcurrentSubmits:

    def test_parallel_submits_get_unique_increasing_ids(self, backend):
        def slow_snapshot(device_type):
            time.sleep(0.02)
            return FitnessSnapshot(steps=1, heart_rate=60, active_minutes=1, source=device_type)

        p = CheckInPipeline(
            store=EntryStore(backend, clock=lambda: 1000.0),
            registry=DeviceRegistry(backend, snapshot_provider=slow_snapshot),
            ai_notes=False,
        ).start()
        p.connect_device("fitbit")

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(lambda _: p.submit(mood=5, sleep_hours=7), range(8)))

        ids = [e.id for e in p.entries()]
        assert len(set(ids)) == 8
        assert ids == sorted(ids, reverse=True)
        assert EntryStore(backend).load_all() == p.entries()

    def test_parallel_connects_keep_one_device_per_type(self, pipeline):
        def connect(_):
            try:
                return pipeline.connect_device("oura")
            except DeviceAlreadyConnectedError:
                return None

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(connect, range(6)))

        assert sum(r is not None for r in results) == 1
        assert len(pipeline.registry.devices()) == 1


# ─── Devices ────────────────────────────────────────────────


class TestDeviceGuard:

    def test_second_connect_of_same_type_rejected(self, pipeline):
        first = pipeline.connect_device("fitbit")
        with pytest.raises(DeviceAlreadyConnectedError) as exc:
            pipeline.connect_device("fitbit")
        assert exc.value.device == first
        assert len(pipeline.registry.devices()) == 1

    def test_reconnect_after_disconnect(self, pipeline):
        first = pipeline.connect_device("fitbit")
        assert pipeline.disconnect_device(first.id)
        second = pipeline.connect_device("fitbit")
        assert second.id != first.id

    def test_different_types_allowed(self, pipeline):
        pipeline.connect_device("fitbit")
        pipeline.connect_device("garmin")
        assert len(pipeline.registry.devices()) == 2


# ─── Companion ──────────────────────────────────────────────


class TestCompanion:

    def test_chat_without_provider_falls_back(self, pipeline):
        assert pipeline.chat("I can't sleep") == FALLBACK_REPLY

    def test_supportive_note_appended_when_enabled(self, backend):
        provider = MagicMock()
        provider.generate.return_value = "You're doing great."
        p = CheckInPipeline(
            store=EntryStore(backend),
            companion=SupportiveCompanion(provider),
            ai_notes=True,
        ).start()
        for _ in range(3):
            _submit(p)
        assert p.analysis.endswith("\n\nYou're doing great.")

    def test_note_not_requested_below_threshold(self, backend):
        provider = MagicMock()
        p = CheckInPipeline(
            store=EntryStore(backend), companion=SupportiveCompanion(provider), ai_notes=True,
        ).start()
        _submit(p)
        assert p.analysis == KEEP_TRACKING_MESSAGE
        provider.generate.assert_not_called()

    def test_note_failure_leaves_analysis_unchanged(self, backend):
        provider = MagicMock()
        provider.generate.side_effect = ProviderError("quota")
        p = CheckInPipeline(
            store=EntryStore(backend), companion=SupportiveCompanion(provider), ai_notes=True,
        ).start()
        for _ in range(3):
            _submit(p)
        assert p.analysis == p.report.text


def test_build_pipeline_memory(monkeypatch):
    monkeypatch.setenv("WELLNESS_AI_PROVIDER", "none")
    p = build_pipeline("memory")
    assert isinstance(p.store.backend, MemoryBackend)
    assert len(p.store) == 0
