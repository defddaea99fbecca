from __future__ import annotations

import json
from dataclasses import asdict, fields

import typer
from rich import print

from chat_archive.config import (
    INT_CONFIG_KEYS,
    ArchiveConfig,
    get_config_path,
    load_config,
)

from .common import format_bytes, read_config_or_exit, write_config_or_exit


def stats_cmd(*, runner_from_path, db_path: str | None, as_json: bool) -> None:
    """Show archive counts and the time of the latest sync."""

    runner = runner_from_path(db_path)
    try:
        stats = runner.get_stats()
    finally:
        runner.close()
    if as_json:
        print(json.dumps(stats, indent=2))
        return
    database = stats["database"]
    print("[bold]Archive[/bold]")
    print(f"- Path: {database['path']}")
    print(f"- Size: {format_bytes(int(database['size_bytes']))}")
    print(f"- Conversations: {stats['conversation_count']}")
    print(f"- Message fragments: {stats['fragment_count']}")
    print(f"- Latest sync: {stats['latest_sync_at']}")


def clear_cmd(*, runner_from_path, db_path: str | None) -> None:
    """Delete every archived conversation and reset sync checkpoints."""

    runner = runner_from_path(db_path)
    try:
        runner.clear()
    finally:
        runner.close()
    print("Archive cleared; next sync will fetch every conversation")


def config_show_cmd() -> None:
    """Print the effective configuration (file plus environment overrides)."""

    read_config_or_exit()
    effective = asdict(load_config())
    if effective.get("session_cookie"):
        effective["session_cookie"] = "<redacted>"
    print(json.dumps(effective, indent=2))


def config_set_cmd(*, key: str, value: str) -> None:
    """Store one setting in the config file; an empty value removes it."""

    known = {item.name for item in fields(ArchiveConfig)}
    if key not in known:
        print(f"[red]Unknown config key: {key}[/red]")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    text = value.strip()
    if not text:
        data.pop(key, None)
    elif key in INT_CONFIG_KEYS:
        try:
            number = int(text)
        except ValueError:
            print(f"[red]{key} must be an integer[/red]")
            raise typer.Exit(code=1) from None
        if number <= 0:
            print(f"[red]{key} must be positive[/red]")
            raise typer.Exit(code=1)
        data[key] = number
    else:
        data[key] = text
    write_config_or_exit(data)
    shown = "<redacted>" if key == "session_cookie" and text else (text or "(unset)")
    print(f"Set {key} = {shown} in {get_config_path()}")
