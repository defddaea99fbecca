from __future__ import annotations

import json
from dataclasses import asdict

import typer
from rich import print
from rich.markup import escape

from .common import build_filters, cap_snippets


def search_cmd(
    *,
    runner_from_path,
    db_path: str | None,
    query: str,
    content_types: list[str] | None,
    senders: list[str] | None,
    snippets: bool,
    limit: int | None,
) -> None:
    """Search conversation titles and message text."""

    runner = runner_from_path(db_path)
    try:
        filters = build_filters(content_types, senders)
        results = runner.search(query, filters)
        print(f"[bold]{len(results)}[/bold] conversations match")
        shown = results[:limit] if limit else results
        for item in shown:
            print(f"[cyan]{item.uuid}[/cyan] {escape(item.name)} ({item.updated_at or '-'})")
            if not snippets:
                continue
            visible, overflow = cap_snippets(runner.get_snippets(item.uuid, query, filters))
            for snippet in visible:
                label = f"{snippet.sender}/{snippet.content_type}"
                print(f"  [dim]{label}[/dim] {escape(snippet.snippet)}")
            if overflow:
                print(f"  [dim]+{overflow} more matches[/dim]")
    finally:
        runner.close()


def snippets_cmd(
    *,
    runner_from_path,
    db_path: str | None,
    conversation_uuid: str,
    query: str,
    content_types: list[str] | None,
    senders: list[str] | None,
) -> None:
    """Print every matching snippet of one conversation as JSON."""

    runner = runner_from_path(db_path)
    try:
        filters = build_filters(content_types, senders)
        items = runner.get_snippets(conversation_uuid, query, filters)
    finally:
        runner.close()
    print(json.dumps([asdict(item) for item in items], indent=2, ensure_ascii=False))


def list_cmd(*, runner_from_path, db_path: str | None, limit: int | None, starred: bool) -> None:
    """List archived conversations, most recently updated first."""

    runner = runner_from_path(db_path)
    try:
        conversations = runner.get_all_conversations()
    finally:
        runner.close()
    if starred:
        conversations = [item for item in conversations if item.is_starred]
    conversations.sort(key=lambda item: item.updated_at or "", reverse=True)
    if limit:
        conversations = conversations[:limit]
    for item in conversations:
        star = "*" if item.is_starred else " "
        print(
            f"{star} [cyan]{item.uuid}[/cyan] {escape(item.name)} "
            f"[dim]{item.message_count} messages, updated {item.updated_at or '-'}[/dim]"
        )


def show_cmd(*, runner_from_path, db_path: str | None, conversation_uuid: str) -> None:
    """Print a conversation summary and its fragments as JSON."""

    runner = runner_from_path(db_path)
    try:
        conversation = runner.store.get_conversation(conversation_uuid)
        if conversation is None:
            print(f"[red]Conversation {conversation_uuid} not found[/red]")
            raise typer.Exit(code=1)
        fragments = runner.store.get_fragments_by_conversation(conversation_uuid)
    finally:
        runner.close()
    payload = asdict(conversation)
    payload["fragments"] = [asdict(item) for item in fragments]
    print(json.dumps(payload, indent=2, ensure_ascii=False))
