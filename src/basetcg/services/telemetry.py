from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping

from basetcg.engine.state import LogEntry


@dataclass
class TelemetryService:
    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def log_entries(self, entries: Iterable[LogEntry], **extra: object) -> int:
        """Append one "match_log" record per entry; returns how many were written."""
        n = 0
        for entry in entries:
            payload: dict[str, object] = {
                "turn": entry.turn,
                "message": entry.message,
                "at": entry.timestamp.isoformat(),
            }
            payload.update(extra)
            self.log("match_log", payload)
            n += 1
        return n
