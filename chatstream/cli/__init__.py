"""CLI application setup using Typer.

Provides the command-line interface for chatstream.
"""

from chatstream.cli.main import app

__all__ = ["app"]
