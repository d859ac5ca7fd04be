"""
PTSP chat CLI: `ptsp` command.

Commands:
  ptsp chat [session-id]      Interactive REPL chat
  ptsp send <message>         One-shot message
  ptsp sessions list|show     Browse the local chat history
"""

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console

from ptsp_chat import __version__
from ptsp_chat.client import ChatClient
from ptsp_chat.config import Settings

console = Console()


def _load_settings() -> Settings:
    return Settings()


def _get_client() -> ChatClient:
    return ChatClient(_load_settings())


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or warning)")
def main(log_level: Optional[str]):
    """PTSP Jawa Tengah chatbot. Ask about permits, investment and public services."""
    level = (log_level or _load_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Register subcommands from separate modules
from ptsp_chat.cli.chat import chat_cmd, send_cmd
from ptsp_chat.cli.sessions import sessions

main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(sessions)


if __name__ == "__main__":
    main()
