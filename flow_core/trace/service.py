"""
Run-scoped tracing for the workflow executor.

``TraceService`` is handed to ``WorkflowExecutor(tracer=...)``. The executor
reports run and node boundaries; the service turns them into ``TraceEvent``
records, keeps them in ``events`` and mirrors them to a JSONL file.
"""
from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .models import (
    ErrorData,
    EventKind,
    EventName,
    NodeEnterData,
    NodeExitData,
    RunEndData,
    RunStartData,
    TraceEvent,
    generate_run_id,
    generate_span_id,
    hash_data,
)
from .writer import TraceWriter

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
PREVIEW_CHARS = 1000
MAX_INPUT_BYTES = 64 * 1024

# Matched case-insensitively against mapping keys at any depth.
SENSITIVE_KEYS = frozenset(
    """
    api_key apikey api-key bearer token access_token refresh_token
    secret client_secret password passwd pwd authorization auth
    cookie set-cookie session private_key privatekey credential credentials
    """.split()
)


def _scrub(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def sanitize_trace_input(input_data: Any, max_size: int = MAX_INPUT_BYTES) -> Any:
    """
    Make workflow inputs safe to persist.

    Secrets are replaced with ``[REDACTED]`` and anything JSON cannot hold is
    stringified. When the cleaned payload serializes past ``max_size``
    characters, a stub with its size, hash, key names and a preview is
    returned instead.
    """
    cleaned = _scrub(input_data)
    encoded = json.dumps(cleaned, default=str)
    if len(encoded) <= max_size:
        return cleaned
    return {
        "_truncated": True,
        "_original_size": len(encoded),
        "_hash": hash_data(input_data),
        "_preview": f"{encoded[:PREVIEW_CHARS]}...",
        "_keys": list(input_data) if isinstance(input_data, Mapping) else None,
    }


def _key_list(value: Any) -> List[str]:
    if not isinstance(value, Mapping):
        return []
    return [str(k) for k in value]


def _digest(value: Any) -> Optional[str]:
    return hash_data(value) if value else None


class TraceService:
    """
    Records one workflow run at a time.

    Events go to ``trace_path`` when ``start_run`` receives one and to
    ``<output_dir>/<run_id>_<utc timestamp>.trace.jsonl`` otherwise. A
    disabled service writes nothing but still fills ``events``. Calls made
    outside a run are ignored.
    """

    def __init__(
        self,
        output_dir: str | Path = "traces",
        enabled: bool = True,
        workflow: Optional[str] = None,
    ):
        self.output_dir = Path(output_dir)
        self.enabled = enabled
        self.workflow = workflow
        self.events: List[TraceEvent] = []

        self._run_id: Optional[str] = None
        self._run_workflow: Optional[str] = None
        self._started_at = 0.0
        self._open_spans: List[str] = []
        self._sink: Optional[TraceWriter] = None
        self._trace_path: Optional[Path] = None

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def is_active(self) -> bool:
        return self._run_id is not None

    @property
    def trace_path(self) -> Optional[Path]:
        """File of the latest run; stays set after ``end_run``."""
        return self._trace_path

    def fork(self) -> "TraceService":
        """A fresh service with the same settings, holding the state of one run."""
        return TraceService(output_dir=self.output_dir, enabled=self.enabled, workflow=self.workflow)

    def adopt(self, finished: "TraceService") -> None:
        """Expose a forked run's events and file here once it has ended."""
        self.events = list(finished.events)
        self._trace_path = finished.trace_path

    def start_run(
        self,
        workflow: Optional[str] = None,
        node_count: int = 0,
        edge_count: int = 0,
        input_data: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        trace_path: Optional[str | Path] = None,
    ) -> str:
        """Open a run, emit ``run_start`` and return the new run id."""
        self._run_id = generate_run_id()
        self._run_workflow = workflow or self.workflow
        self._started_at = time.time()
        self._open_spans = []
        self.events = []

        if self.enabled:
            self._trace_path = Path(trace_path) if trace_path is not None else self._auto_path()
            self._sink = TraceWriter(self._trace_path).open()

        self._record(
            EventKind.SYSTEM,
            EventName.RUN_START,
            RunStartData(
                workflow=self._run_workflow,
                node_count=node_count,
                edge_count=edge_count,
                input=sanitize_trace_input(input_data) if input_data else {},
                input_hash=_digest(input_data),
                config=config or {},
            ),
        )
        logger.info(f"Trace run {self._run_id} started for workflow {self._run_workflow}")
        return self._run_id

    def end_run(
        self,
        status: str = "success",
        output_data: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        """Emit ``run_end`` (status is success, error or timeout) and close the file."""
        if not self.is_active:
            return

        elapsed_ms = (time.time() - self._started_at) * 1000
        self._record(
            EventKind.SYSTEM,
            EventName.RUN_END,
            RunEndData(
                status=status,
                output_keys=_key_list(output_data),
                output_hash=_digest(output_data),
                duration_ms=elapsed_ms,
                error=error,
            ),
        )
        if self._sink is not None:
            self._sink.close()
        logger.info(f"Trace run {self._run_id} ended: {status} in {elapsed_ms:.1f}ms")

        self._run_id = None
        self._sink = None
        self._open_spans = []

    def node_enter(self, node: str, node_type: str, inputs: Optional[Dict[str, Any]] = None) -> str:
        """Open a span for ``node`` and return its id."""
        span_id = generate_span_id()
        self._open_spans.append(span_id)
        self._record(
            EventKind.NODE,
            EventName.NODE_ENTER,
            NodeEnterData(
                node=node,
                node_type=node_type,
                input_keys=_key_list(inputs),
                input_hash=_digest(inputs),
            ),
            span_id=span_id,
        )
        return span_id

    def node_exit(self, node: str, output: Any = None, duration_ms: float = 0) -> None:
        self._record(
            EventKind.NODE,
            EventName.NODE_EXIT,
            NodeExitData(
                node=node,
                output_keys=_key_list(output),
                output_hash=hash_data(output) if output is not None else None,
                duration_ms=duration_ms,
            ),
            span_id=self._close_span(),
        )

    def error(
        self,
        error_type: str,
        message: str,
        error_kind: Optional[str] = None,
        node: Optional[str] = None,
    ) -> None:
        """Record a failure. A failing node's span ends here instead of at ``node_exit``."""
        self._record(
            EventKind.SYSTEM,
            EventName.ERROR,
            ErrorData(error_type=error_type, error_kind=error_kind, message=message, node=node),
            span_id=self._close_span(),
        )

    def _auto_path(self) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        return self.output_dir / f"{self._run_id}_{stamp}.trace.jsonl"

    def _close_span(self) -> Optional[str]:
        return self._open_spans.pop() if self._open_spans else None

    def _record(
        self,
        kind: EventKind,
        name: EventName,
        data: Any,
        span_id: Optional[str] = None,
    ) -> None:
        if not self.is_active:
            return
        event = TraceEvent(
            run_id=self._run_id,
            span_id=span_id or generate_span_id(),
            kind=kind,
            name=name,
            workflow=self._run_workflow,
            data=data,
        )
        self.events.append(event)
        if self._sink is not None:
            self._sink.write(event)
