"""Structured JSONL step log for scenario runs."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LogPaths:
    base: Path
    shots: Path
    events: Path


class StructuredLogger:
    """Writes one JSON line per executed step.

    Scenario units running in parallel share the logger, so writes are
    serialised with a lock.
    """

    def __init__(self, run_id: str, paths: LogPaths) -> None:
        self.run_id = run_id
        self.paths = paths
        self._count = 0
        self._lock = threading.Lock()
        self._events_file = paths.events.open("a", encoding="utf-8")

    @property
    def event_count(self) -> int:
        return self._count

    def log_event(
        self,
        *,
        unit: str,
        step_index: int,
        action: Dict[str, Any],
        result: Dict[str, Any],
        screenshot_path: Optional[Path] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        payload = {
            "ts": time.time(),
            "run_id": self.run_id,
            "unit": unit,
            "step": step_index,
            "action": action,
            "result": result,
            "screenshot_path": str(screenshot_path) if screenshot_path else None,
            "metadata": metadata or {},
        }
        with self._lock:
            self._count += 1
            self._events_file.write(json.dumps(payload, ensure_ascii=False) + "\n")
            self._events_file.flush()
            return self._count

    def close(self) -> None:
        try:
            self._events_file.close()
        except OSError as exc:
            log.debug("Closing step log failed: %s", exc)


def prepare_log_paths(base_dir: Path) -> LogPaths:
    base_dir.mkdir(parents=True, exist_ok=True)
    shots_dir = base_dir / "shots"
    shots_dir.mkdir(parents=True, exist_ok=True)
    events_file = base_dir / "events.jsonl"
    return LogPaths(base=base_dir, shots=shots_dir, events=events_file)
