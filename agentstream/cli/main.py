"""CLI entry point.

Provides:
- replay: Run a recorded provider stream through the decision loop
"""

import asyncio
import json
import mimetypes
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from agentstream.exceptions import AgentStreamError
from agentstream.logging_config import configure_logging
from agentstream.streaming.consumer import stream_to_sink
from agentstream.streaming.decisions import MessageDecision
from agentstream.streaming.events import ResourceFetchResult
from agentstream.streaming.loop import run_agent_loop
from agentstream.streaming.replay import ReplayProvider, load_json, load_stream_items

app = typer.Typer(
    name="agentstream",
    help="Streaming decision loop developer tools",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    ] = None,
) -> None:
    """Configure logging before any command runs."""
    level = log_level.upper() if log_level else None
    if level is not None and level not in LOG_LEVELS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level")
    configure_logging(level)


async def fetch_local_file(uri: str) -> ResourceFetchResult:
    """Resource fetcher for ``file:<path>`` URIs."""
    path = Path(uri.split(":", 1)[1])
    mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
    return ResourceFetchResult.model_validate(
        {"contents": [{"uri": uri, "mimeType": mime_type, "text": path.read_text(encoding="utf-8")}]}
    )


@app.command()
def replay(
    events: Annotated[
        Path,
        typer.Argument(help="JSON Lines recording of provider stream items", exists=True, dir_okay=False),
    ],
    messages: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--messages", "-m", help="JSON array of input messages", exists=True, dir_okay=False),
    ] = None,
    tools: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--tools", "-t", help="JSON array of tool specs", exists=True, dir_okay=False),
    ] = None,
    throttle: Annotated[
        Optional[float],  # noqa: UP007
        typer.Option("--throttle", help="Throttle decisions per key with this window (seconds)"),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print decisions as JSON lines"),
    ] = False,
) -> None:
    """Replay a recorded stream through the decision loop.

    Input messages may reference ``file:`` resources, which are read from
    the local filesystem before the replay starts.
    """
    try:
        decisions = asyncio.run(_replay(events, messages, tools, throttle))
    except AgentStreamError as e:
        console.print(f"[red]Replay failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    if as_json:
        for decision in decisions:
            typer.echo(json.dumps(decision.to_wire()))
        return

    table = Table(title=f"Decisions ({len(decisions)})", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Role")
    table.add_column("Message")
    table.add_column("Tool Call")

    for decision in decisions:
        tool_call = ""
        if decision.tool_call_request is not None:
            tool_call = f"{decision.tool_call_request.tool_name}({decision.tool_call_request.as_dict()})"
        elif decision.tool_call_id:
            tool_call = f"[dim]{decision.tool_call_id}[/dim]"
        table.add_row(decision.id, decision.role.value, decision.message[:80], tool_call)

    console.print(table)


async def _replay(
    events: Path,
    messages: Path | None,
    tools: Path | None,
    throttle: float | None,
) -> list[MessageDecision]:
    provider = ReplayProvider(load_stream_items(events))
    input_messages: list[Any] = load_json(messages) if messages else []
    tool_specs: list[Any] = load_json(tools) if tools else []

    stream = run_agent_loop(provider, input_messages, tool_specs, {"file": fetch_local_file})
    collected: list[MessageDecision] = []
    if throttle is None:
        async for decision in stream:
            collected.append(decision)
    else:
        await stream_to_sink(stream, collected.append, delay=throttle)
    return collected


if __name__ == "__main__":
    app()
