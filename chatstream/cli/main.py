"""CLI entry point and base commands.

Provides the main CLI application with commands for:
- show: Print a chat transcript
- chat: Interactive chat with streamed replies
- feedback: Rate an assistant message
"""

from typing import Annotated

import typer
from rich.panel import Panel

from chatstream import __version__
from chatstream.cli.commands.chat import chat
from chatstream.cli.commands.feedback import feedback
from chatstream.cli.commands.show import show
from chatstream.cli.utils import console
from chatstream.logging_config import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="chatstream",
    help="Streaming client for the document chat backend",
    add_completion=False,
    no_args_is_help=True,
)

app.command()(show)
app.command()(chat)
app.command()(feedback)


@app.callback()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)"),
    ] = None,
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level.upper() if log_level else None)  # type: ignore[arg-type]
    logger.debug("Logging configured")


@app.command()
def version() -> None:
    """Show chatstream version information."""
    console.print(
        Panel(
            f"[bold]chatstream[/bold] v{__version__}\n"
            "Streaming client for the document chat backend",
            title="💬 Version",
            border_style="blue",
        )
    )


# Entry point for: python -m chatstream.cli.main
if __name__ == "__main__":
    app()
