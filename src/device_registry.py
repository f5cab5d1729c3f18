"""
Simulated fitness-device connections.

The registry tracks which wearables the user has "connected" and hands out a
fitness snapshot for a new entry.  Snapshots come from a SnapshotProvider
strategy; the default RandomSnapshotProvider returns synthetic placeholder
numbers, not sensor readings.

The registry does not dedupe: refusing a second connected device of the same
type is the caller's job (see CheckInPipeline.connect_device).
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

import numpy as np

from constants import DEVICES_KEY, DEVICE_TYPES
from wellness_entry import FitnessSnapshot

log = logging.getLogger("device_registry")

SnapshotProvider = Callable[[str], FitnessSnapshot]


@dataclass
class DeviceRecord:
    id: str
    name: str
    type: str
    connected: bool
    last_sync: datetime

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "connected": self.connected,
            "lastSync": self.last_sync.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict) -> "DeviceRecord":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or DEVICE_TYPES.get(record.get("type"), "Other Device")),
            type=str(record["type"]),
            connected=bool(record.get("connected", True)),
            last_sync=datetime.fromisoformat(record["lastSync"]),
        )


class RandomSnapshotProvider:
    """Synthetic steps / heart rate / active minutes."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def __call__(self, device_type: str) -> FitnessSnapshot:
        return FitnessSnapshot(
            steps=int(self._rng.integers(2000, 12001)),
            heart_rate=int(self._rng.integers(60, 101)),
            active_minutes=int(self._rng.integers(10, 91)),
            source=device_type,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceRegistry:
    """In-session list of device records, optionally persisted."""

    def __init__(
        self,
        backend=None,
        snapshot_provider: Optional[SnapshotProvider] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.backend = backend
        self.snapshot_provider = snapshot_provider or RandomSnapshotProvider()
        self._clock = clock
        self._devices: List[DeviceRecord] = []

    def load(self) -> List[DeviceRecord]:
        """Best-effort load; an unreadable payload leaves the registry empty."""
        self._devices = []
        if self.backend is None:
            return []
        try:
            raw = self.backend.read(DEVICES_KEY)
            if raw:
                self._devices = [DeviceRecord.from_record(r) for r in json.loads(raw)]
        except Exception as e:
            log.warning("Discarding unreadable device registry (%s)", e)
            self._devices = []
        return list(self._devices)

    def _save(self) -> None:
        if self.backend is None:
            return
        self.backend.write(DEVICES_KEY, json.dumps([d.to_record() for d in self._devices]))

    def devices(self) -> List[DeviceRecord]:
        return list(self._devices)

    def find_connected(self, device_type: str) -> Optional[DeviceRecord]:
        for device in self._devices:
            if device.type == device_type and device.connected:
                return device
        return None

    def connect(self, device_type: str) -> DeviceRecord:
        if device_type not in DEVICE_TYPES:
            raise ValueError(
                f"Unknown device type: {device_type!r} (expected one of {', '.join(DEVICE_TYPES)})"
            )
        record = DeviceRecord(
            id=uuid.uuid4().hex,
            name=DEVICE_TYPES[device_type],
            type=device_type,
            connected=True,
            last_sync=self._clock(),
        )
        self._devices.append(record)
        self._save()
        log.info("Connected %s (%s)", record.name, record.id)
        return record

    def disconnect(self, device_id: str) -> bool:
        before = len(self._devices)
        self._devices = [d for d in self._devices if d.id != device_id]
        removed = len(self._devices) < before
        if removed:
            self._save()
            log.info("Disconnected device %s", device_id)
        else:
            log.warning("Disconnect requested for unknown device %s", device_id)
        return removed

    def snapshot_for(self, device_type: str) -> FitnessSnapshot:
        return self.snapshot_provider(device_type)
