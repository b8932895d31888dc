"""
Structured JSON audit logger — append-only, one object per line (.jsonl).

Usage:
    from modules.observability.logger import StructuredLogger

    audit = StructuredLogger()
    audit.log("plan_123", "reorder_committed", {"date": "2025-05-01", "writes": 2})

Logs are written to  <AUDIT_LOG_DIR>/<stream>.jsonl ; the schedule engine
uses the plan id as the stream so each plan has its own change history.
"""

from __future__ import annotations

import json
import os
import re
import threading
from datetime import datetime, timezone
from pathlib import Path

import config

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(self, logs_dir: Path | str | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else Path(config.AUDIT_LOG_DIR)
        self._lock = threading.Lock()
        self._handles: dict[str, object] = {}  # stream -> file handle

    # ── public API ────────────────────────────────────────────────────────

    def log(self, stream: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<stream>.jsonl``."""
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "stream": stream,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(stream)
            if fh is None:
                fh = self._open(stream)
            fh.write(line)  # type: ignore[union-attr]
            fh.flush()  # type: ignore[union-attr]

    def path_for(self, stream: str) -> Path:
        return self._logs_dir / f"{_UNSAFE_CHARS.sub('_', stream)}.jsonl"

    def close(self, stream: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if stream:
                fh = self._handles.pop(stream, None)
                if fh:
                    fh.close()  # type: ignore[union-attr]
            else:
                for fh in self._handles.values():
                    fh.close()  # type: ignore[union-attr]
                self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, stream: str):  # noqa: ANN202
        os.makedirs(self._logs_dir, exist_ok=True)
        fh = open(self.path_for(stream), "a", encoding="utf-8")  # noqa: SIM115
        self._handles[stream] = fh
        return fh
