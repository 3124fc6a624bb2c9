"""Chat commands."""

import asyncio
import contextlib
import signal
from typing import Annotated

import typer
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt

from chatstream.cli.utils import console, print_message, render_view


def chat(
    project_id: Annotated[str, typer.Argument(help="Project that owns the chat")],
    chat_id: Annotated[str, typer.Argument(help="Chat to continue")],
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="User identity (defaults to USER_ID)"),
    ] = None,
) -> None:
    """Interactive chat with streamed replies.

    Loads the chat history, then sends each line you type and streams the
    assistant's reply as it arrives. Press Ctrl-C during a reply to cancel it.

    Examples:
        chatstream chat proj-1 chat-42
        chatstream chat proj-1 chat-42 --user user_123
    """
    asyncio.run(_chat_interactive(project_id, chat_id, user))


async def _chat_interactive(project_id: str, chat_id: str, user: str | None) -> None:
    """Run interactive chat session."""
    from chatstream.client import ChatAPIClient
    from chatstream.exceptions import TransportError
    from chatstream.streaming import ConversationReconciler, SessionPhase, StreamSession

    async with ChatAPIClient() as client:
        try:
            chat_data = await client.get_chat(chat_id)
        except TransportError as e:
            console.print(f"[red]Failed to load chat. Please try again. ({e})[/red]")
            raise typer.Exit(1) from e

        reconciler = ConversationReconciler(chat_data)
        session = StreamSession(
            client,
            reconciler,
            project_id=project_id,
            user_id=user,
            on_error=lambda message: console.print(f"[red]❌ {message}[/red]"),
        )

        console.print(
            Panel(
                f"[bold blue]{chat_data.title or chat_data.id}[/bold blue]\n\n"
                "Type [cyan]'exit'[/cyan] or [cyan]'quit'[/cyan] to end.\n"
                "Press [cyan]Ctrl-C[/cyan] while a reply streams to cancel it.",
                title="💬 Chat",
                border_style="blue",
            )
        )
        for message in reconciler.messages:
            print_message(message)

        loop = asyncio.get_running_loop()
        while True:
            try:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
            except (KeyboardInterrupt, EOFError):
                break

            if not user_input.strip():
                continue
            if user_input.lower() in ("exit", "quit", "q"):
                console.print("[dim]Ending conversation.[/dim]")
                break

            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signal.SIGINT, session.cancel)
            try:
                with Live(render_view(session.view), console=console, transient=True) as live:
                    unsubscribe = session.subscribe(lambda view: live.update(render_view(view)))
                    try:
                        outcome = await session.send(user_input)
                    finally:
                        unsubscribe()
            finally:
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(signal.SIGINT)

            if outcome.ok and outcome.ai_message is not None:
                print_message(outcome.ai_message)
            elif outcome.phase == SessionPhase.CANCELLED:
                console.print("[dim]Reply cancelled.[/dim]")

    console.print("\n[dim]Chat session ended.[/dim]")
