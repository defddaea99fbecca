from __future__ import annotations

import datetime as dt
import logging
import threading
from pathlib import Path
from typing import Any

from .runner import ArchiveRunner

logger = logging.getLogger(__name__)

DEFAULT_DAEMON_LOG = Path.home() / ".chat-archive" / "sync-daemon.log"


def sync_daemon_tick(runner: ArchiveRunner, *, log_path: Path | None = None) -> dict[str, Any]:
    result = runner.run_sync()
    if not result.get("ok") and not result.get("skipped"):
        message = result.get("traceback") or result.get("error") or "sync failed"
        _append_sync_daemon_log(str(message), log_path=log_path)
    return result


def run_sync_daemon(
    runner: ArchiveRunner,
    interval_s: int,
    *,
    stop_event: threading.Event | None = None,
    run_immediately: bool = True,
    log_path: Path | None = None,
) -> None:
    stop = stop_event or threading.Event()
    logger.info("sync daemon started (interval %ss)", interval_s)
    if run_immediately and not stop.is_set():
        sync_daemon_tick(runner, log_path=log_path)
    while not stop.wait(interval_s):
        sync_daemon_tick(runner, log_path=log_path)
    logger.info("sync daemon stopped")


def _append_sync_daemon_log(message: str, *, log_path: Path | None = None) -> None:
    path = log_path or DEFAULT_DAEMON_LOG
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        ts = dt.datetime.now(dt.UTC).isoformat()
        with path.open("a", encoding="utf-8", errors="ignore") as handle:
            handle.write(f"\n[{ts}]\n{message}\n")
    except OSError:
        logger.warning("could not append to sync daemon log %s", path)
