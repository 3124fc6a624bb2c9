"""Shared CLI helpers."""

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.text import Text

from chatstream.schema.chat import Message
from chatstream.streaming.session import SessionView

console = Console()


def print_message(message: Message) -> None:
    """Print one transcript message with its citations."""
    if message.role == "user":
        console.print(f"[bold cyan]You:[/bold cyan] {message.content}")
        return

    console.print("[bold green]Assistant:[/bold green]")
    console.print(Markdown(message.content))
    if message.citations:
        sources = ", ".join(f"{c.filename} p.{c.page}" for c in message.citations)
        console.print(f"[dim]Sources: {sources}[/dim]")


def render_view(view: SessionView) -> Group:
    """Renderable for the live streaming reply."""
    parts = []
    if view.status:
        parts.append(Text(f"⏳ {view.status}", style="dim italic"))
    if view.streaming_text:
        parts.append(Markdown(view.streaming_text))
    elif not view.status:
        parts.append(Text("…", style="dim"))
    return Group(*parts)
