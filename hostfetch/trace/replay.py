from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


class Replay:
    """
    Reads a detection trace back. A missing file is an empty trace.
    """

    def __init__(self, path: Path):
        self._path = path

    def iter_events(self, *, event_type: Optional[str] = None, detector: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                event = json.loads(line)
                if event_type is not None and event.get("event_type") != event_type:
                    continue
                if detector is not None and event.get("detector") != detector:
                    continue
                yield event

    def select(
        self,
        *,
        event_type: Optional[str] = None,
        detector: Optional[str] = None,
        tail: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        events = list(self.iter_events(event_type=event_type, detector=detector))
        if tail is not None and tail >= 0:
            events = events[-tail:] if tail else []
        return events

    def event_types(self) -> list[str]:
        return [str(e.get("event_type")) for e in self.iter_events()]

    def resolution_steps(self) -> List[str]:
        # Which cascade step settled the OS identity, once per resolve().
        return [str((e.get("data") or {}).get("step")) for e in self.iter_events(event_type="resolution_finished")]
