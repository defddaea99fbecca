from __future__ import annotations

import json
import signal
import threading

import typer
from rich import print

from chat_archive.config import load_config
from chat_archive.sync.daemon import run_sync_daemon


def sync_once_cmd(*, runner_from_path, db_path: str | None, full: bool) -> None:
    """Run one sync pass."""

    runner = runner_from_path(db_path)
    try:
        result = runner.run_sync(force_full=full)
    finally:
        runner.close()
    if result.get("skipped"):
        print("[yellow]Sync already in progress[/yellow]")
        return
    if not result.get("ok"):
        print(f"[red]Sync failed:[/red] {result.get('error')}")
        raise typer.Exit(code=1)
    print(f"[green]{result['message']}[/green] ({result['duration_s']:.1f}s)")
    for uuid in result.get("failed") or []:
        print(f"[yellow]- fetch failed, will retry: {uuid}[/yellow]")
    for warning in result.get("warnings") or []:
        print(f"[yellow]- export: {warning}[/yellow]")


def sync_status_cmd(*, runner_from_path, db_path: str | None) -> None:
    """Show the state of the sync pass in this process and the last checkpoint."""

    runner = runner_from_path(db_path)
    try:
        state = runner.get_status()
        checkpoints = runner.checkpoint_file.load_checkpoints()
        latest = runner.store.latest_sync_at()
    finally:
        runner.close()
    payload = state.to_dict()
    payload["checkpoints"] = len(checkpoints)
    payload["latest_sync_at"] = latest
    print(json.dumps(payload, indent=2))


def sync_daemon_cmd(*, runner_from_path, db_path: str | None, interval: int | None) -> None:
    """Run sync passes on an interval until interrupted."""

    interval_s = interval or load_config().sync_interval_s
    stop = threading.Event()

    def _stop(*_args: object) -> None:
        stop.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)
    runner = runner_from_path(db_path)
    try:
        print(f"[bold]Sync daemon running[/bold] every {interval_s}s (Ctrl-C to stop)")
        run_sync_daemon(runner, interval_s, stop_event=stop)
    finally:
        runner.close()
