"""CLI: ptsp chat, ptsp send"""

import asyncio
import json
from typing import Optional

import click
from rich.console import Console

from ptsp_chat.cli.render import print_message, print_suggestions, sessions_table

console = Console()

HELP_LINE = "Type your message (/new, /history, /switch <id>, /voice, /quit)"


def _get_client():
    from ptsp_chat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from ptsp_chat.cli.main import _run
    return _run(coro)


def _show_conversation(controller) -> None:
    console.print(f"[dim]Session: {controller.session_id}[/dim]")
    if not controller.messages:
        print_suggestions(console)
        return
    for message in controller.messages:
        print_message(console, message)


@click.command("chat")
@click.argument("session_id", required=False)
def chat_cmd(session_id: Optional[str]):
    """Interactive chat with the PTSP assistant."""

    async def _chat():
        async with _get_client() as client:
            controller = client.chat
            if session_id:
                controller.switch_session(session_id)
            _show_conversation(controller)
            console.print(f"[cyan]{HELP_LINE}[/cyan]\n")
            try:
                while True:
                    # Prompt in a worker thread so pending saves still fire
                    msg = await asyncio.to_thread(click.prompt, "You", prompt_suffix=": ")
                    command, _, arg = msg.strip().partition(" ")
                    if command in ("/quit", "/exit"):
                        break
                    if command == "/new":
                        controller.new_chat()
                        _show_conversation(controller)
                        continue
                    if command == "/history":
                        console.print(sessions_table(controller.history(), controller.session_id))
                        continue
                    if command == "/switch":
                        if not arg.strip():
                            console.print("[yellow]Usage: /switch <session-id>[/yellow]")
                            continue
                        controller.switch_session(arg.strip())
                        _show_conversation(controller)
                        continue
                    if command == "/voice":
                        if not controller.speech_available:
                            console.print("[yellow]Voice input is not available.[/yellow]")
                            continue
                        reply = await controller.dictate()
                    else:
                        with console.status("Sedang mengetik..."):
                            reply = await controller.submit(msg)
                    if reply is not None:
                        print_message(console, reply)
            except (KeyboardInterrupt, EOFError, click.Abort):
                pass

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("-s", "--session", "session_id", default=None)
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, session_id: Optional[str], json_output: bool):
    """Send a one-shot message."""

    async def _send():
        async with _get_client() as client:
            controller = client.chat
            if session_id:
                controller.switch_session(session_id)
            else:
                controller.new_chat()
            if not json_output:
                console.print(f"[dim]Session: {controller.session_id}[/dim]")
            reply = await controller.submit(message)
            if reply is None:
                raise click.UsageError("MESSAGE must not be empty")
            if json_output:
                click.echo(json.dumps({"session_id": controller.session_id, **reply.model_dump(exclude_none=True)}))
            else:
                print_message(console, reply)

    _run(_send())
