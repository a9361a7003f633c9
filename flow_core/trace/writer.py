"""JSONL sink for trace events."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Optional

from .models import TraceEvent

logger = logging.getLogger(__name__)


class TraceWriter:
    """
    Appends one JSON line per event to ``path``.

    The file is opened lazily on the first write. Each line is flushed unless
    ``auto_flush`` is off, so an interrupted workflow leaves a readable file.
    """

    def __init__(self, path: str | Path, auto_flush: bool = True):
        self.path = Path(path)
        self.auto_flush = auto_flush
        self._handle: Optional[IO[str]] = None
        self._written = 0
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def event_count(self) -> int:
        return self._written

    def open(self) -> "TraceWriter":
        if not self.is_open:
            self._handle = self.path.open("a", encoding="utf-8")
            logger.debug(f"Trace file {self.path} opened")
        return self

    def write(self, event: TraceEvent) -> None:
        handle = self.open()._handle
        handle.write(f"{event.to_jsonl()}\n")
        self._written += 1
        if self.auto_flush:
            handle.flush()

    def close(self) -> None:
        if not self.is_open:
            return
        handle, self._handle = self._handle, None
        handle.close()
        logger.debug(f"Trace file {self.path} closed after {self._written} events")

    def __enter__(self) -> "TraceWriter":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
