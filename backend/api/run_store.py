"""
In-memory run store.

Tracks the status and outcome of pipeline runs by run_id for the lifetime of
the process. Nothing is persisted.
"""

from typing import Any, Dict, Optional
import threading


class RunStore:
    """Thread-safe in-memory store for pipeline run status."""

    def __init__(self) -> None:
        self._store: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, run_id: str, transcript: str) -> None:
        with self._lock:
            self._store[run_id] = {
                "run_id": run_id,
                "transcript": transcript,
                "status": "pending",
                "active_node": None,
                "final_analysis": None,
                "final_metrics": None,
                "final_report": None,
                "report_text": None,
                "stats": None,
                "failed_stage": None,
                "error": None,
            }

    def get(self, run_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            run = self._store.get(run_id)
            return dict(run) if run is not None else None

    def update(self, run_id: str, updates: Dict[str, Any]) -> None:
        with self._lock:
            if run_id in self._store:
                self._store[run_id].update(updates)

    def delete(self, run_id: str) -> None:
        with self._lock:
            self._store.pop(run_id, None)


# Singleton instance shared across the application
run_store = RunStore()
