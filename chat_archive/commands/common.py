from __future__ import annotations

import logging
from typing import Any

import typer
from rich import print

from chat_archive.config import load_config, read_config_file, write_config_file
from chat_archive.sync.runner import ArchiveRunner

SNIPPET_DISPLAY_LIMIT = 3


def runner_from_path(db_path: str | None) -> ArchiveRunner:
    read_config_or_exit()
    return ArchiveRunner.from_config(load_config(), db_path=db_path)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_filters(content_types: list[str] | None, senders: list[str] | None) -> dict[str, Any]:
    filters: dict[str, Any] = {}
    if content_types:
        filters["content_types"] = list(content_types)
    if senders:
        filters["senders"] = list(senders)
    return filters


def format_bytes(size: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{int(size)} B"


def cap_snippets(items: list[Any], limit: int = SNIPPET_DISPLAY_LIMIT) -> tuple[list[Any], int]:
    if len(items) <= limit:
        return list(items), 0
    return list(items[:limit]), len(items) - limit
