from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .trace_store_jsonl import TraceStoreJSONL


class TraceEmitter:
    """
    Diagnostic event sink. With no store every emit is dropped; detection
    never reports source or probe problems to the end user, only here.
    """

    def __init__(self, store: TraceStoreJSONL | None, run_id: str):
        self._store = store
        self._run_id = run_id

    @property
    def enabled(self) -> bool:
        return self._store is not None

    def emit(
        self,
        event_type: str,
        *,
        detector: str | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if self._store is None:
            return
        event: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self._run_id,
            "event_type": event_type,
        }
        if detector is not None:
            event["detector"] = detector
        if message is not None:
            event["message"] = message
        if data is not None:
            event["data"] = data

        self._store.append(event)


def null_trace(run_id: str = "run_null") -> TraceEmitter:
    return TraceEmitter(store=None, run_id=run_id)
