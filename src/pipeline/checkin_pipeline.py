"""Check-in orchestration: entry -> store -> rolling stats -> cached analysis."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date
from typing import List, Optional

from analytics.insight_generator import InsightGenerator, InsightReport
from analytics.rolling_stats import StatsResult, rolling_stats
from analytics.time_series import DaySlot, weekly_series
from companion import ChatMessage, SupportiveCompanion, build_provider
from config import ai_notes_enabled, get_storage_kind
from constants import DEFAULT_WINDOW
from device_registry import DeviceRecord, DeviceRegistry
from entry_store import EntryStore
from pipeline.migrations import ensure_startup_schema
from storage_backends import build_backend
from wellness_entry import FitnessSnapshot, WellnessEntry, create_entry

log = logging.getLogger("checkin_pipeline")


class DeviceAlreadyConnectedError(RuntimeError):
    """A device of this type is already connected."""

    def __init__(self, device: DeviceRecord):
        super().__init__(f"{device.name} is already connected (id {device.id})")
        self.device = device


class CheckInPipeline:
    """Owns the entry store, device registry and companion for one journal.

    Writes (submit, connect, disconnect) hold one lock, so concurrent API
    requests get strictly increasing ids and a consistent log.
    """

    def __init__(
        self,
        store: EntryStore,
        registry: Optional[DeviceRegistry] = None,
        companion: Optional[SupportiveCompanion] = None,
        window_size: int = DEFAULT_WINDOW,
        ai_notes: Optional[bool] = None,
    ):
        self.store = store
        self.registry = registry or DeviceRegistry()
        self.companion = companion or SupportiveCompanion()
        self.window_size = window_size
        self.insights = InsightGenerator(window_size=window_size)
        self.ai_notes = ai_notes_enabled() if ai_notes is None else ai_notes
        self._analysis: Optional[str] = None
        self._report: Optional[InsightReport] = None
        self._lock = threading.RLock()

    def start(self) -> "CheckInPipeline":
        """Load persisted state and warm the analysis cache."""
        self.store.load_all()
        self.registry.load()
        self._refresh_analysis()
        log.info("Journal loaded: %d entries, %d devices", len(self.store), len(self.registry.devices()))
        return self

    # ─── Check-ins ────────────────────────────────────────────

    def submit(
        self,
        *,
        mood: int,
        sleep_hours: float,
        entry_date: Optional[date] = None,
        notes: str = "",
        sleep_quality: Optional[int] = None,
        bed_time=None,
        wake_time=None,
        sleep_disturbances=None,
    ) -> WellnessEntry:
        """Validate, persist and analyse one check-in.

        Raises EntryValidationError before anything is stored.
        """
        with self._lock:
            entry = create_entry(
                entry_id=self.store.next_id(),
                entry_date=entry_date or date.today(),
                mood=mood,
                sleep_hours=sleep_hours,
                notes=notes,
                sleep_quality=sleep_quality,
                bed_time=bed_time,
                wake_time=wake_time,
                sleep_disturbances=sleep_disturbances,
            )
            snapshot = self._fitness_snapshot()
            if snapshot is not None:
                entry = replace(entry, fitness_snapshot=snapshot)
            self.store.append(entry)
            self._refresh_analysis()
            return entry

    def _fitness_snapshot(self) -> Optional[FitnessSnapshot]:
        connected = [d for d in self.registry.devices() if d.connected]
        if not connected:
            return None
        device = connected[-1]
        try:
            return self.registry.snapshot_for(device.type)
        except Exception as e:
            log.warning("Fitness snapshot from %s failed, storing entry without it: %s", device.name, e)
            return None

    def _refresh_analysis(self) -> None:
        stats = rolling_stats(self.store.all(), self.window_size)
        report = self.insights.build_report(self.store.recent(self.window_size), stats)
        text = report.text
        if self.ai_notes and report.sufficient:
            note = self.companion.supportive_note(text)
            if note:
                text = f"{text}\n\n{note}"
        self._report = report
        self._analysis = text

    # ─── Reads ────────────────────────────────────────────────

    def entries(self, limit: Optional[int] = None) -> List[WellnessEntry]:
        items = list(self.store.all())
        return items[:limit] if limit is not None else items

    def stats(self, window_size: Optional[int] = None) -> StatsResult:
        return rolling_stats(self.store.all(), window_size or self.window_size)

    @property
    def analysis(self) -> str:
        if self._analysis is None:
            self._refresh_analysis()
        return self._analysis

    @property
    def report(self) -> InsightReport:
        if self._report is None:
            self._refresh_analysis()
        return self._report

    def weekly_series(self, today: Optional[date] = None) -> List[DaySlot]:
        return weekly_series(self.store.all(), today or date.today())

    # ─── Devices ──────────────────────────────────────────────

    def connect_device(self, device_type: str) -> DeviceRecord:
        with self._lock:
            existing = self.registry.find_connected(device_type)
            if existing is not None:
                raise DeviceAlreadyConnectedError(existing)
            return self.registry.connect(device_type)

    def disconnect_device(self, device_id: str) -> bool:
        with self._lock:
            return self.registry.disconnect(device_id)

    # ─── Companion ────────────────────────────────────────────

    def chat(self, message: str, history: Optional[List[ChatMessage]] = None) -> str:
        return self.companion.reply(history or [], message)


def build_pipeline(storage: Optional[str] = None) -> CheckInPipeline:
    """Wire the configured backend, registry and companion, then start()."""
    kind = (storage or get_storage_kind()).lower()
    if kind == "postgres":
        ensure_startup_schema()
    backend = build_backend(kind)
    return CheckInPipeline(
        store=EntryStore(backend),
        registry=DeviceRegistry(backend),
        companion=SupportiveCompanion(build_provider()),
    ).start()
