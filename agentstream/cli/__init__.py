"""CLI application setup using Typer.

Provides developer tooling for the decision loop.
"""

from agentstream.cli.main import app

__all__ = ["app"]
