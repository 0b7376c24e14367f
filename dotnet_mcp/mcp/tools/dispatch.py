"""Tool registration and dispatch.

Wires the tool registry into the MCP server: ``list_tools`` serves the
registered schemas, ``call_tool`` routes each call to its handler and turns
any exception into an error text so the server keeps running.
"""

from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from dotnet_mcp.execution.validation import ParameterValidationError
from dotnet_mcp.logging import log_operation, logger
from dotnet_mcp.mcp.context import ToolContext, get_default_context
from dotnet_mcp.mcp.tools.handlers.common import is_machine_readable, render_validation_error
from dotnet_mcp.mcp.tools.registry import get_tool_spec, list_tool_definitions


def register_dotnet_tools(server: Server, context: ToolContext | None = None) -> None:
    """Register the dotnet tools with the MCP server.

    Args:
        server: The MCP server instance.
        context: Shared tool context. Defaults to the process-wide one.
    """

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available dotnet tools."""
        return list_tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls."""
        try:
            result = await dispatch_tool(name, arguments, context)
            return [TextContent(type="text", text=result)]
        except Exception as e:
            logger.error("Tool %s failed: %s: %s", name, type(e).__name__, e)
            return [
                TextContent(
                    type="text",
                    text=f"Error: {type(e).__name__}: {e}",
                )
            ]


async def dispatch_tool(
    name: str,
    arguments: dict[str, Any] | None,
    context: ToolContext | None = None,
) -> str:
    """Run one tool call through its registered handler.

    Parameter validation failures are answered with an INVALID_PARAMS
    result rather than raised.

    Args:
        name: Tool name.
        arguments: Tool arguments.
        context: Tool context. Defaults to the process-wide one.

    Returns:
        Plain text or JSON result envelope.

    Raises:
        ValueError: If tool name is unknown.
    """
    spec = get_tool_spec(name)
    if spec is None:
        raise ValueError(f"Unknown tool: {name}")

    arguments = dict(arguments or {})
    context = context or get_default_context()

    log_details: dict[str, Any] = {"action": arguments.get("action", "N/A")}
    if "working_directory" in arguments:
        log_details["cwd"] = arguments["working_directory"]

    with log_operation(f"tool:{name}", log_details):
        try:
            return await spec.handler(arguments, context)
        except ParameterValidationError as e:
            logger.info("Invalid parameters for %s: %s", name, e.message)
            return render_validation_error(e, is_machine_readable(arguments))
