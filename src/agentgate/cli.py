"""
agentgate CLI

Command-line interface for the gateway.

Commands:
    agentgate serve                         - Start the API server
    agentgate status                        - Show version and configuration
    agentgate tools                         - List registered tools
    agentgate invoke NAME --args JSON       - Invoke a tool against a directory
    agentgate bash "COMMAND"                - Run a shell command
    agentgate python FILE                   - Run a Python file ("-" reads stdin)
    agentgate chat "MESSAGE" --model ID     - Send one chat message
    agentgate models                        - List available models

Usage:
    pip install agentgate
    agentgate invoke tree_simple --args '{"dir": "/"}' --root ./workspace
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click
from rich.console import Console
from rich.table import Table

from agentgate import __version__
from agentgate.config import GatewaySettings
from agentgate.core.models import GatewayResult
from agentgate.gateway import AgentGateway, create_gateway


def _console() -> Console:
    return Console()


def _gateway() -> AgentGateway:
    return create_gateway(GatewaySettings.from_env())


def _finish(result: GatewayResult, *, json_output: bool = False) -> None:
    """Print an envelope and exit non-zero on failure."""
    if json_output:
        click.echo(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2))
    elif result.success:
        payload = result.content if result.content is not None else result.output
        if isinstance(payload, (dict, list)):
            click.echo(json.dumps(payload, indent=2))
        elif payload:
            click.echo(payload)
    else:
        click.echo(f"Error ({result.error_type}): {result.error}", err=True)
    if not result.success:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="agentgate")
def cli() -> None:
    """agentgate - Tool and Command Execution Gateway"""


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address")
@click.option("--port", default=8000, type=int, help="Port number")
def serve(host: str, port: int) -> None:
    """Start the agentgate API server."""
    import uvicorn

    from agentgate.api.server import create_app

    console = _console()
    console.print(f"\n[bold green]agentgate API Server[/] {__version__}")
    console.print(f"  Binding: {host}:{port}\n")

    uvicorn.run(create_app(_gateway()), host=host, port=port)


@cli.command()
def status() -> None:
    """Show agentgate version and configuration."""
    settings = GatewaySettings.from_env()
    console = _console()
    console.print("\n[bold]agentgate Status[/]\n")
    console.print(f"  Version: {__version__}")
    console.print(f"  Python: {sys.version.split()[0]}")
    console.print(f"  Default model: {settings.default_model}")
    console.print(f"  Ollama: {settings.ollama_url}")
    console.print(f"  Data dir: {settings.data_dir}")
    console.print(f"  Scripts dir: {settings.scripts_dir}")

    console.print("\n  Environment:")
    for var in ("GEMINI_API_KEY", "OPENROUTER_API_KEY", "OTEL_EXPORTER_OTLP_ENDPOINT"):
        value = os.environ.get(var)
        if value:
            masked = value[:4] + "..." + value[-4:] if len(value) > 10 else "***"
            console.print(f"    {var:30s} {masked}")
        else:
            console.print(f"    {var:30s} NOT SET")


@cli.command()
@click.option("--json-output", is_flag=True, help="Output as JSON")
def tools(json_output: bool) -> None:
    """List registered tools."""
    descriptors = _gateway().list_tools()
    if json_output:
        click.echo(json.dumps([d.model_dump(mode="json") for d in descriptors], indent=2))
        return

    table = Table(title="Registered tools")
    table.add_column("Name", style="bold")
    table.add_column("Enabled")
    table.add_column("Tags")
    table.add_column("Description")
    for d in descriptors:
        table.add_row(
            d.name,
            "[green]yes[/]" if d.enabled else "[red]no[/]",
            ", ".join(d.tags),
            d.description,
        )
    _console().print(table)


@cli.command()
@click.argument("name")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Workspace root the tool runs against",
)
@click.option("--json-output", is_flag=True, help="Output the full envelope as JSON")
def invoke(name: str, args_json: str, root: str, json_output: bool) -> None:
    """Invoke a registered tool."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args") from e
    result = asyncio.run(_gateway().invoke_tool(name, args, os.path.abspath(root)))
    _finish(result, json_output=json_output)


@cli.command()
@click.argument("command")
@click.option("--cwd", type=click.Path(exists=True, file_okay=False), default=None, help="Working directory")
@click.option("--json-output", is_flag=True, help="Output the full envelope as JSON")
def bash(command: str, cwd: str | None, json_output: bool) -> None:
    """Run a shell command under the configured limits."""
    result = asyncio.run(_gateway().execute_bash(command, os.path.abspath(cwd) if cwd else None))
    _finish(result, json_output=json_output)


@cli.command()
@click.argument("source", type=click.File("r"))
@click.option("--json-output", is_flag=True, help="Output the full envelope as JSON")
def python(source, json_output: bool) -> None:
    """Run a Python file ("-" reads from stdin)."""
    result = asyncio.run(_gateway().execute_python(source.read()))
    _finish(result, json_output=json_output)


@cli.command()
@click.argument("message")
@click.option("--model", default=None, help="Model id (default: AGENTGATE_DEFAULT_MODEL)")
@click.option("--json-output", is_flag=True, help="Output the full envelope as JSON")
def chat(message: str, model: str | None, json_output: bool) -> None:
    """Send a single chat message."""
    result = asyncio.run(_gateway().chat(message, model=model))
    _finish(result, json_output=json_output)


@cli.command()
def models() -> None:
    """List available models per provider."""
    result = asyncio.run(_gateway().available_models())
    if not result.success:
        _finish(result)
        return
    console = _console()
    for family, names in result.output.items():
        console.print(f"[bold]{family}[/] ({len(names)})")
        for name in names:
            console.print(f"  {name}")


if __name__ == "__main__":
    cli()
