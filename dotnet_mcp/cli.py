"""CLI interface for dotnet-mcp.

Provides commands for running the MCP server and for using the error
classifier and redactor on saved build logs.
"""

import json
import sys

import click
from dotenv import load_dotenv

# Load .env before importing other dotnet_mcp modules
# This ensures env vars are set before module-level code reads them
load_dotenv()

from dotnet_mcp import __version__  # noqa: E402
from dotnet_mcp.logging import set_log_level  # noqa: E402


@click.group()
@click.version_option(version=__version__, prog_name="dotnet-mcp")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override DOTNET_MCP_LOG_LEVEL",
)
def cli(log_level: str | None) -> None:
    """dotnet-mcp - MCP server for the .NET SDK."""
    if log_level:
        set_log_level(log_level)


@cli.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse"]),
    default="stdio",
    help="Transport protocol (default: stdio)",
)
def serve(transport: str) -> None:
    """Start the MCP server.

    Runs the dotnet-mcp MCP server using the specified transport.
    Default is stdio for use with MCP clients such as Claude Desktop.
    """
    if transport == "sse":
        click.echo("SSE transport not yet implemented", err=True)
        sys.exit(1)

    # Import here to avoid slow startup for the other commands
    from dotnet_mcp import run_server

    run_server()


@cli.command()
@click.argument("log_file", type=click.File("r", encoding="utf-8", errors="replace"))
@click.option(
    "--exit-code",
    type=int,
    default=1,
    help="Exit code of the command that produced the log (default: 1)",
)
@click.option("--command", "command_line", default=None, help="Command line to record in the result")
@click.option("--json", "as_json", is_flag=True, help="Print the JSON result envelope")
def classify(log_file, exit_code: int, command_line: str | None, as_json: bool) -> None:
    """Classify a saved build or restore log.

    LOG_FILE: Path to the captured output, or '-' for stdin.
    """
    from dotnet_mcp.diagnostics.factory import create_result, to_json, to_plain_text

    text = log_file.read()
    if exit_code == 0:
        envelope = create_result(text, None, 0, command=command_line)
    else:
        envelope = create_result(None, text, exit_code, command=command_line)
    click.echo(to_json(envelope) if as_json else to_plain_text(envelope))


@cli.command()
@click.argument("input_file", type=click.File("r", encoding="utf-8", errors="replace"))
@click.option("--check", is_flag=True, help="Only report whether secrets were found (exit 1 if so)")
def redact(input_file, check: bool) -> None:
    """Mask secrets (passwords, tokens, keys, connection strings) in text.

    INPUT_FILE: Path to the text, or '-' for stdin.
    """
    from dotnet_mcp.diagnostics.redactor import contains_secret
    from dotnet_mcp.diagnostics.redactor import redact as redact_text

    text = input_file.read()
    if check:
        found = contains_secret(text)
        click.echo("secrets found" if found else "no secrets found")
        sys.exit(1 if found else 0)
    click.echo(redact_text(text) or "", nl=False)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print tool metadata as JSON")
def tools(as_json: bool) -> None:
    """List the MCP tools and their actions."""
    from dotnet_mcp.mcp.tools.registry import TOOL_REGISTRY

    specs = sorted(TOOL_REGISTRY.values(), key=lambda s: s.priority)
    if as_json:
        data = [
            {
                "name": spec.name,
                "category": spec.category,
                "actions": list(spec.actions),
                "tags": list(spec.tags),
                "longRunning": spec.long_running,
                "commonlyUsed": spec.commonly_used,
            }
            for spec in specs
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for spec in specs:
        click.echo(f"{spec.name} [{spec.category}]")
        click.echo(f"  actions: {', '.join(spec.actions)}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
