"""
modules/observability/logger.py
----------------------------------
Per-run planning event log: one JSON object per line in  <LOGS_DIR>/<run_id>.jsonl
(TRIPWEAVE_LOGS_DIR).  TRIPWEAVE_STRUCTURED_LOGS=false turns log() into a no-op.

run_pipeline() writes, in order:
  PIPELINE_START     trip_id, destinations, preferences
  PERFORMANCE        stage, duration_ms, plus stage extras; one per stage from
                     validation to multi_day
  PIPELINE_REJECTED  errors (validation codes); ends a rejected run
  PIPELINE_COMPLETE  duration_ms, cache (hit/miss stats), days

Every record is {timestamp (UTC ISO-8601), run_id, event_type, payload}.

    events = StructuredLogger(tmp_path, enabled=True)
    run_pipeline(trip, run_id="run_abc123", event_logger=events)
    stages = [r["payload"]["stage"] for r in events.read_events("run_abc123")
              if r["event_type"] == "PERFORMANCE"]
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

import tripweave.config as config


class StructuredLogger:
    """Thread-safe, append-only JSONL logger."""

    def __init__(self, logs_dir: Path | str | None = None, enabled: bool | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else config.LOGS_DIR
        self.enabled = config.STRUCTURED_LOGS_ENABLED if enabled is None else enabled
        self._lock = threading.Lock()
        self._handles: dict[str, object] = {}  # run_id -> file handle

    # ── public API ────────────────────────────────────────────────────────

    def log(self, run_id: str, event_type: str, payload: dict) -> None:
        """Append one structured JSON record to ``<run_id>.jsonl``."""
        if not self.enabled:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": run_id,
            "event_type": event_type,
            "payload": payload,
        }
        line = json.dumps(record, default=str, ensure_ascii=False) + "\n"

        with self._lock:
            fh = self._handles.get(run_id)
            if fh is None:
                fh = self._open(run_id)
            fh.write(line)  # type: ignore[union-attr]
            fh.flush()  # type: ignore[union-attr]

    def events_path(self, run_id: str) -> Path:
        return self._logs_dir / f"{run_id}.jsonl"

    def read_events(self, run_id: str) -> list[dict]:
        """All records written for *run_id*, in order ([] when none)."""
        path = self.events_path(run_id)
        if not path.exists():
            return []
        with open(path, "r", encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]

    def close(self, run_id: str | None = None) -> None:
        """Close one or all open file handles."""
        with self._lock:
            if run_id:
                fh = self._handles.pop(run_id, None)
                if fh:
                    fh.close()  # type: ignore[union-attr]
            else:
                for fh in self._handles.values():
                    fh.close()  # type: ignore[union-attr]
                self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _open(self, run_id: str):  # noqa: ANN202
        os.makedirs(self._logs_dir, exist_ok=True)
        fh = open(self.events_path(run_id), "a", encoding="utf-8")  # noqa: SIM115
        self._handles[run_id] = fh
        return fh
