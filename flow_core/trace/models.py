"""
Trace event models.

A trace file holds one ``TraceEvent`` per line. A single ``execute()`` call
yields ``run_start``, a ``node_enter``/``node_exit`` pair for every node that
ran, an ``error`` when the run failed and finally ``run_end``.
"""
from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    SYSTEM = "system"
    NODE = "node"


class EventName(str, Enum):
    RUN_START = "run_start"
    NODE_ENTER = "node_enter"
    NODE_EXIT = "node_exit"
    ERROR = "error"
    RUN_END = "run_end"


class _EventData(BaseModel):
    """Event payloads reject unknown keys so a parsed line maps to exactly one model."""
    model_config = ConfigDict(extra="forbid")


class RunStartData(_EventData):
    workflow: Optional[str] = None
    node_count: int = 0
    edge_count: int = 0
    input: Dict[str, Any] = Field(default_factory=dict)
    input_hash: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)


class NodeEnterData(_EventData):
    node: str
    node_type: str
    input_keys: List[str] = Field(default_factory=list)
    input_hash: Optional[str] = None


class NodeExitData(_EventData):
    node: str
    duration_ms: float
    output_keys: List[str] = Field(default_factory=list)
    output_hash: Optional[str] = None


class ErrorData(_EventData):
    """``error_kind`` carries the workflow ErrorKind value when known."""
    error_type: str
    message: str
    error_kind: Optional[str] = None
    node: Optional[str] = None


class RunEndData(_EventData):
    status: str  # success, error or timeout
    duration_ms: float
    output_keys: List[str] = Field(default_factory=list)
    output_hash: Optional[str] = None
    error: Optional[str] = None


EventData = Union[RunStartData, NodeEnterData, NodeExitData, ErrorData, RunEndData, Dict[str, Any]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _short_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def generate_run_id() -> str:
    return _short_id("run")


def generate_span_id() -> str:
    return _short_id("sp")


class TraceEvent(BaseModel):
    """One line of a trace file."""
    model_config = ConfigDict(use_enum_values=True)

    v: str = "0.1"
    ts: datetime = Field(default_factory=_now)
    run_id: str
    span_id: str = Field(default_factory=generate_span_id)
    kind: EventKind
    name: EventName
    workflow: Optional[str] = None
    data: EventData = Field(default_factory=dict)

    def data_dict(self) -> Dict[str, Any]:
        if isinstance(self.data, BaseModel):
            return self.data.model_dump()
        return self.data

    def to_jsonl(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_jsonl(cls, line: str) -> "TraceEvent":
        return cls.model_validate_json(line)


class TraceRun(BaseModel):
    """Events of a single run read back from disk."""
    run_id: str
    events: List[TraceEvent] = Field(default_factory=list)

    @property
    def end_event(self) -> Optional[TraceEvent]:
        return next(reversed(self.filter_by_name(EventName.RUN_END)), None)

    def filter_by_name(self, name: EventName) -> List[TraceEvent]:
        return [event for event in self.events if event.name == name]

    @classmethod
    def from_jsonl_file(cls, path: str | Path) -> "TraceRun":
        """Parse a trace file; blank lines are skipped."""
        text = Path(path).read_text(encoding="utf-8")
        events = [TraceEvent.from_jsonl(line) for line in text.splitlines() if line.strip()]
        run_id = events[0].run_id if events else generate_run_id()
        return cls(run_id=run_id, events=events)


def hash_data(data: Any) -> str:
    """
    Short content hash used to compare payloads across runs.

    Mappings and lists are hashed from key-sorted JSON, so key order does not
    matter. Returns 16 hex characters, or ``""`` for ``None``.
    """
    if data is None:
        return ""
    text = json.dumps(data, sort_keys=True, default=str) if isinstance(data, (dict, list)) else str(data)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
