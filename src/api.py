"""
FastAPI backend for the wellness journal frontend.

Route handlers are defined here; payload builders live in routes/helpers.py.
One CheckInPipeline per process; its lock serializes writes across worker threads.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from companion import GREETING, QUICK_PROMPTS, ChatMessage
from config import get_conn_str, get_frontend_origins, get_log_level, get_storage_kind
from pipeline.checkin_pipeline import CheckInPipeline, DeviceAlreadyConnectedError, build_pipeline
from pipeline.migrations import schema_audit
from routes.helpers import (
    _device_payload, _entry_payload, _insight_payload,
    _series_payload, _stats_payload,
)
from wellness_entry import EntryValidationError

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("api")


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Wellness Journal API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_frontend_origins(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

_pipeline: Optional[CheckInPipeline] = None
_pipeline_lock = threading.Lock()


def _get_pipeline() -> CheckInPipeline:
    """Lazy-init so importing the module never touches storage."""
    global _pipeline
    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = build_pipeline()
    return _pipeline


class EntryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mood: int
    sleep_hours: float
    entry_date: Optional[date] = Field(default=None, alias="date")
    notes: str = ""
    sleep_quality: Optional[int] = None
    bed_time: Optional[str] = None
    wake_time: Optional[str] = None
    sleep_disturbances: List[str] = Field(default_factory=list)


class DeviceRequest(BaseModel):
    type: str


class ChatTurn(BaseModel):
    content: str
    is_ai: bool = False


class ChatRequest(BaseModel):
    message: str
    history: List[ChatTurn] = Field(default_factory=list)


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "wellness-journal-api", "status": "ok"}


@app.get("/health-check")
def health_check() -> Dict[str, Any]:
    try:
        pipeline = _get_pipeline()
        return {"status": "Online", "entries": len(pipeline.store)}
    except Exception as e:
        return {"status": "Waking up", "message": f"Storage unavailable: {e}"}


@app.get("/api/v1/entries")
def list_entries(limit: int = Query(default=30, ge=1, le=3650)) -> Dict[str, Any]:
    items = [_entry_payload(e) for e in _get_pipeline().entries(limit)]
    return {"data": items, "entries": items}


@app.post("/api/v1/entries")
def add_entry(body: EntryRequest) -> Dict[str, Any]:
    pipeline = _get_pipeline()
    try:
        entry = pipeline.submit(
            mood=body.mood,
            sleep_hours=body.sleep_hours,
            entry_date=body.entry_date,
            notes=body.notes,
            sleep_quality=body.sleep_quality,
            bed_time=body.bed_time,
            wake_time=body.wake_time,
            sleep_disturbances=body.sleep_disturbances,
        )
    except EntryValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"entry": _entry_payload(entry), "analysis": pipeline.analysis}


@app.get("/api/v1/stats/rolling")
def rolling(window: int = Query(default=7, ge=1, le=365)) -> Dict[str, Any]:
    return _stats_payload(_get_pipeline().stats(window))


@app.get("/api/v1/insights/latest")
def insights_latest() -> Dict[str, Any]:
    pipeline = _get_pipeline()
    return _insight_payload(pipeline.report, pipeline.analysis)


@app.get("/api/v1/charts/weekly")
def weekly_chart(today: Optional[date] = None) -> Dict[str, Any]:
    slots = _get_pipeline().weekly_series(today)
    return {"data": _series_payload(slots), "start": slots[0].date.isoformat(), "end": slots[-1].date.isoformat()}


@app.get("/api/v1/devices")
def list_devices() -> Dict[str, Any]:
    return {"devices": [_device_payload(d) for d in _get_pipeline().registry.devices()]}


@app.post("/api/v1/devices")
def connect_device(body: DeviceRequest) -> Dict[str, Any]:
    try:
        device = _get_pipeline().connect_device(body.type)
    except DeviceAlreadyConnectedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"device": _device_payload(device)}


@app.delete("/api/v1/devices/{device_id}")
def disconnect_device(device_id: str) -> Dict[str, Any]:
    if not _get_pipeline().disconnect_device(device_id):
        raise HTTPException(status_code=404, detail="Device not found")
    return {"status": "disconnected", "id": device_id}


@app.get("/api/v1/chat/prompts")
def chat_prompts() -> Dict[str, Any]:
    return {"greeting": GREETING, "quick_prompts": QUICK_PROMPTS}


@app.post("/api/v1/chat")
def chat(body: ChatRequest) -> Dict[str, Any]:
    message = body.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="message is required")
    history = [ChatMessage(content=t.content, is_ai=t.is_ai) for t in body.history]
    answer = _get_pipeline().chat(message, history)
    return {
        "response": answer,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api/v1/admin/migration-audit")
def migration_audit() -> Dict[str, Any]:
    if get_storage_kind() != "postgres":
        return {"ok": True, "storage": get_storage_kind(), "tables": {}, "missing_tables": []}
    try:
        return schema_audit(get_conn_str())
    except Exception as e:
        log.error("Migration audit failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
