from __future__ import annotations

from .planner import SyncPlan, build_manifest, plan_sync
from .runner import ArchiveRunner
from .state import SyncPassState, SyncPassTracker
from .sync_pass import SyncPass, SyncResult

__all__ = [
    "ArchiveRunner",
    "SyncPass",
    "SyncPassState",
    "SyncPassTracker",
    "SyncPlan",
    "SyncResult",
    "build_manifest",
    "plan_sync",
]
