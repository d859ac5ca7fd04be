"""CLI: ptsp sessions list|show"""

import json

import click
from rich.console import Console

from ptsp_chat.cli.render import print_message, sessions_table
from ptsp_chat.client import default_storage
from ptsp_chat.sessions import SessionStore

console = Console()


def _get_store() -> SessionStore:
    from ptsp_chat.cli.main import _load_settings
    settings = _load_settings()
    return SessionStore(
        default_storage(settings),
        key=settings.history_key,
        max_sessions=settings.max_sessions,
    )


@click.group()
def sessions():
    """Local chat history."""


@sessions.command("list")
@click.option("--limit", default=10, type=int)
@click.option("--json-output", "--json", is_flag=True)
def sessions_list(limit, json_output):
    """List saved conversations, most recent first."""
    infos = _get_store().list()[:limit]
    if json_output:
        click.echo(json.dumps([i.model_dump(mode="json") for i in infos], indent=2))
        return
    if not infos:
        console.print("[yellow]Belum ada riwayat chat. Mulai percakapan baru![/yellow]")
        return
    console.print(sessions_table(infos))


@sessions.command("show")
@click.argument("session_id")
@click.option("--json-output", "--json", is_flag=True)
def sessions_show(session_id, json_output):
    """Print a saved conversation."""
    session = _get_store().get(session_id)
    if session is None:
        console.print(f"[red]Session {session_id} not found.[/red]")
        raise SystemExit(1)
    if json_output:
        click.echo(session.model_dump_json(by_alias=True, exclude_none=True, indent=2))
        return
    console.print(f"[bold]{session.title or 'New Chat'}[/bold] [dim]({session.id})[/dim]")
    for message in session.messages:
        print_message(console, message)
