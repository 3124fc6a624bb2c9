"""Transcript commands."""

import asyncio
from typing import Annotated

import typer

from chatstream.cli.utils import console, print_message


def show(
    chat_id: Annotated[str, typer.Argument(help="Chat to display")],
) -> None:
    """Show a chat transcript."""
    asyncio.run(_show_chat(chat_id))


async def _show_chat(chat_id: str) -> None:
    """Load a chat and print every message."""
    from chatstream.client import ChatAPIClient
    from chatstream.exceptions import TransportError

    async with ChatAPIClient() as client:
        try:
            chat_data = await client.get_chat(chat_id)
        except TransportError as e:
            console.print(f"[red]Failed to load chat. Please try again. ({e})[/red]")
            raise typer.Exit(1) from e

    console.print(
        f"[bold]{chat_data.title or chat_data.id}[/bold] "
        f"[dim]({len(chat_data.messages)} messages)[/dim]\n"
    )
    for message in chat_data.messages:
        print_message(message)
