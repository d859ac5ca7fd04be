"""Terminal rendering of messages and history listings."""

from datetime import datetime, timezone
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ptsp_chat.models.message import AssistantMessage, Message
from ptsp_chat.models.session import SessionInfo

MAX_SOURCES_SHOWN = 5

SUGGESTED_QUESTIONS = [
    "Apa itu DPMPTSP Jawa Tengah?",
    "Bagaimana cara mengurus izin usaha?",
    "Syarat investasi di Jawa Tengah",
    "Prosedur perizinan online",
    "Layanan pelayanan terpadu satu pintu",
    "Dokumen yang diperlukan untuk izin",
    "Kontak DPMPTSP Jawa Tengah",
    "Biaya pengurusan izin usaha",
]


def time_ago(then: datetime, now: Optional[datetime] = None) -> str:
    """Relative time in Indonesian, e.g. '3 jam yang lalu'."""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - then).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days} hari yang lalu"
    if hours > 0:
        return f"{hours} jam yang lalu"
    if minutes > 0:
        return f"{minutes} menit yang lalu"
    return "Baru saja"


def feature_label(name: str) -> str:
    return name.replace("_", " ").title()


def print_message(console: Console, message: Message) -> None:
    if not isinstance(message, AssistantMessage):
        console.print(f"[bold]You:[/bold] {message.content}")
        return

    console.print("[green]PTSP:[/green]")
    console.print(Markdown(message.content))

    if message.sources:
        console.print(
            f"[dim]Sumber Dokumen ({len(message.sources)} dari {message.total_sources})[/dim]"
        )
        for source in message.sources[:MAX_SOURCES_SHOWN]:
            console.print(f"  📄 [bold]{source.filename}[/bold]  Relevansi: {source.score_display}")
            if source.content_preview:
                console.print(f"     [dim]{source.preview}[/dim]")
        hidden = len(message.sources) - MAX_SOURCES_SHOWN
        if hidden > 0:
            console.print(f"  [dim]+{hidden} dokumen lainnya tersedia[/dim]")

        if message.enhanced_features:
            labels = [feature_label(k) for k, v in message.enhanced_features.items() if v]
            if labels:
                console.print(f"[dim]Fitur: {', '.join(labels)}[/dim]")


def print_suggestions(console: Console) -> None:
    console.print("[dim]Contoh pertanyaan:[/dim]")
    for question in SUGGESTED_QUESTIONS:
        console.print(f"  • {question}")


def sessions_table(infos: list[SessionInfo], current_id: Optional[str] = None) -> Table:
    table = Table(title=f"Chat History ({len(infos)} sessions)")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Messages", justify="right")
    table.add_column("Updated")
    for info in infos:
        marker = "* " if info.id == current_id else ""
        table.add_row(
            f"{marker}{info.id}",
            info.title or "New Chat",
            str(info.message_count),
            time_ago(info.updated_at),
        )
    return table
