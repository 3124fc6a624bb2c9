"""Feedback commands."""

import asyncio
from typing import Annotated

import typer
from pydantic import ValidationError

from chatstream.cli.utils import console
from chatstream.schema.chat import FeedbackRequest


def feedback(
    message_id: Annotated[str, typer.Argument(help="Message to rate")],
    rating: Annotated[
        str,
        typer.Option("--rating", "-r", help="like or dislike"),
    ],
    comment: Annotated[
        str | None,
        typer.Option("--comment", "-c", help="Optional free-text comment"),
    ] = None,
    category: Annotated[
        str | None,
        typer.Option("--category", help="Optional feedback category"),
    ] = None,
) -> None:
    """Rate an assistant message.

    Examples:
        chatstream feedback msg-123 --rating like
        chatstream feedback msg-123 -r dislike -c "Cited the wrong page"
    """
    try:
        request = FeedbackRequest(
            message_id=message_id,
            rating=rating.lower(),  # type: ignore[arg-type]
            comment=comment,
            category=category,
        )
    except ValidationError as e:
        console.print("[red]Invalid feedback: rating must be 'like' or 'dislike'[/red]")
        raise typer.Exit(2) from e

    asyncio.run(_submit_feedback(request))


async def _submit_feedback(request: FeedbackRequest) -> None:
    """Post the feedback and report the result."""
    from chatstream.client import ChatAPIClient
    from chatstream.exceptions import TransportError

    async with ChatAPIClient() as client:
        try:
            await client.submit_feedback(request)
        except TransportError as e:
            console.print("[red]Failed to submit feedback. Please try again.[/red]")
            raise typer.Exit(1) from e

    console.print("[green]Thanks for your feedback![/green]")
