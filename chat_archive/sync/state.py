from __future__ import annotations

import threading
import time
from dataclasses import asdict, dataclass, replace
from typing import Any, Literal

from ..store.utils import now_iso

SyncStatus = Literal["idle", "running", "succeeded", "failed"]


@dataclass(frozen=True)
class SyncPassState:
    status: SyncStatus = "idle"
    started_at: str | None = None
    finished_at: str | None = None
    updated_count: int = 0
    total_count: int = 0
    failed_count: int = 0
    duration_s: float = 0.0
    error: str | None = None
    message: str | None = None

    @property
    def in_progress(self) -> bool:
        return self.status == "running"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["in_progress"] = self.in_progress
        return data


class SyncPassTracker:
    """Holds the current pass state; at most one pass may be running."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = SyncPassState()
        self._started_mono: float | None = None

    def snapshot(self) -> SyncPassState:
        with self._lock:
            return self._state

    def try_begin(self) -> bool:
        with self._lock:
            if self._state.status == "running":
                return False
            self._started_mono = time.monotonic()
            self._state = SyncPassState(status="running", started_at=now_iso())
            return True

    def finish_ok(
        self,
        *,
        updated_count: int,
        total_count: int,
        failed_count: int,
        message: str,
    ) -> SyncPassState:
        return self._finish(
            status="succeeded",
            updated_count=updated_count,
            total_count=total_count,
            failed_count=failed_count,
            message=message,
        )

    def finish_error(self, error: str) -> SyncPassState:
        return self._finish(status="failed", error=error)

    def _finish(self, *, status: SyncStatus, **fields: Any) -> SyncPassState:
        with self._lock:
            duration = 0.0
            if self._started_mono is not None:
                duration = round(time.monotonic() - self._started_mono, 3)
            self._state = replace(
                self._state,
                status=status,
                finished_at=now_iso(),
                duration_s=duration,
                **fields,
            )
            self._started_mono = None
            return self._state
