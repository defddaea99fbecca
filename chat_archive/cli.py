from __future__ import annotations

import typer

from .commands.common import configure_logging, runner_from_path
from .commands.db_cmds import clear_cmd, config_set_cmd, config_show_cmd, stats_cmd
from .commands.search_cmds import list_cmd, search_cmd, show_cmd, snippets_cmd
from .commands.sync_cmds import sync_daemon_cmd, sync_once_cmd, sync_status_cmd

app = typer.Typer(help="chat-archive: incremental local archive of chat conversations")
config_app = typer.Typer(help="Inspect and edit configuration")
app.add_typer(config_app, name="config")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress")) -> None:
    configure_logging(verbose)


@app.command()
def sync(
    full: bool = typer.Option(False, "--full", help="Refetch every conversation"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Fetch new and changed conversations into the archive."""

    sync_once_cmd(runner_from_path=runner_from_path, db_path=db_path, full=full)


@app.command()
def status(db_path: str = typer.Option(None, help="Path to SQLite database")) -> None:
    """Show sync state and checkpoint summary."""

    sync_status_cmd(runner_from_path=runner_from_path, db_path=db_path)


@app.command()
def daemon(
    interval: int | None = typer.Option(None, help="Seconds between passes"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Run sync passes periodically."""

    sync_daemon_cmd(runner_from_path=runner_from_path, db_path=db_path, interval=interval)


@app.command()
def stats(
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Show archive statistics."""

    stats_cmd(runner_from_path=runner_from_path, db_path=db_path, as_json=as_json)


@app.command("list")
def list_conversations(
    limit: int | None = typer.Option(None, help="Max conversations to show"),
    starred: bool = typer.Option(False, help="Only starred conversations"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """List archived conversations."""

    list_cmd(runner_from_path=runner_from_path, db_path=db_path, limit=limit, starred=starred)


@app.command()
def search(
    query: str,
    content_types: list[str] | None = typer.Option(
        None, "--type", help="Restrict to content type (text, thinking, attachment, unknown)"
    ),
    senders: list[str] | None = typer.Option(
        None, "--sender", help="Restrict to sender (human, assistant, unknown)"
    ),
    snippets: bool = typer.Option(True, help="Show matching snippets"),
    limit: int | None = typer.Option(None, help="Max conversations to show"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Search titles and message text; all terms must appear in one fragment."""

    search_cmd(
        runner_from_path=runner_from_path,
        db_path=db_path,
        query=query,
        content_types=content_types,
        senders=senders,
        snippets=snippets,
        limit=limit,
    )


@app.command()
def snippets(
    conversation_uuid: str,
    query: str,
    content_types: list[str] | None = typer.Option(None, "--type", help="Content type filter"),
    senders: list[str] | None = typer.Option(None, "--sender", help="Sender filter"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Print all snippets of one conversation matching a query."""

    snippets_cmd(
        runner_from_path=runner_from_path,
        db_path=db_path,
        conversation_uuid=conversation_uuid,
        query=query,
        content_types=content_types,
        senders=senders,
    )


@app.command()
def show(
    conversation_uuid: str,
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Print one conversation with its fragments."""

    show_cmd(
        runner_from_path=runner_from_path, db_path=db_path, conversation_uuid=conversation_uuid
    )


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Confirm deletion"),
    db_path: str = typer.Option(None, help="Path to SQLite database"),
) -> None:
    """Delete all archived data and checkpoints."""

    if not yes:
        typer.confirm("Delete every archived conversation?", abort=True)
    clear_cmd(runner_from_path=runner_from_path, db_path=db_path)


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""

    config_show_cmd()


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key, e.g. export_dir or page_size"),
    value: str = typer.Argument(..., help="New value; empty string removes the key"),
) -> None:
    """Write one setting to the config file."""

    config_set_cmd(key=key, value=value)
