"""dotnet-mcp tools: schemas, registry, handlers, and server registration."""

from mcp.server import Server

from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.definitions import (
    ALL_TOOLS,
    DOTNET_DEV_CERTS_TOOL,
    DOTNET_EF_TOOL,
    DOTNET_PACKAGE_TOOL,
    DOTNET_PROJECT_TOOL,
    DOTNET_SDK_TOOL,
    DOTNET_SECRETS_TOOL,
    DOTNET_SESSION_TOOL,
    DOTNET_WORKLOAD_TOOL,
)
from dotnet_mcp.mcp.tools.dispatch import dispatch_tool, register_dotnet_tools
from dotnet_mcp.mcp.tools.registry import TOOL_REGISTRY, ToolSpec, get_tool_spec


def register_tools(server: Server, context: ToolContext | None = None) -> None:
    """Register all MCP tools with the server.

    Args:
        server: The MCP server instance.
        context: Shared tool context. Defaults to the process-wide one.
    """
    register_dotnet_tools(server, context)


__all__ = [
    # Registration
    "register_tools",
    "register_dotnet_tools",
    "TOOL_REGISTRY",
    "ToolSpec",
    "get_tool_spec",
    # Dispatch
    "dispatch_tool",
    # Tool definitions
    "ALL_TOOLS",
    "DOTNET_PROJECT_TOOL",
    "DOTNET_PACKAGE_TOOL",
    "DOTNET_EF_TOOL",
    "DOTNET_DEV_CERTS_TOOL",
    "DOTNET_SECRETS_TOOL",
    "DOTNET_WORKLOAD_TOOL",
    "DOTNET_SDK_TOOL",
    "DOTNET_SESSION_TOOL",
]
