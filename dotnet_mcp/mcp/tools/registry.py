"""Tool registry.

One ToolSpec per MCP tool, tying the schema to its handler together with the
metadata the server reports through ``dotnet_sdk capabilities``. The registry
is built once at import time; there is no discovery.
"""

from dataclasses import dataclass

from mcp.types import Tool

from dotnet_mcp.mcp.tools import definitions
from dotnet_mcp.mcp.tools.handlers import (
    DEV_CERTS_ACTIONS,
    EF_ACTIONS,
    PACKAGE_ACTIONS,
    PROJECT_ACTIONS,
    SDK_ACTIONS,
    SECRETS_ACTIONS,
    SESSION_ACTIONS,
    WORKLOAD_ACTIONS,
    handle_dotnet_dev_certs,
    handle_dotnet_ef,
    handle_dotnet_package,
    handle_dotnet_project,
    handle_dotnet_sdk,
    handle_dotnet_secrets,
    handle_dotnet_session,
    handle_dotnet_workload,
)
from dotnet_mcp.mcp.tools.handlers.common import ActionHandler


@dataclass(frozen=True)
class ToolSpec:
    """Registration record for one tool.

    Attributes:
        name: MCP tool name.
        handler: Coroutine taking (arguments, context).
        definition: MCP Tool schema.
        category: Grouping shown in capabilities.
        tags: Free-form search tags.
        priority: Lower sorts first in listings.
        long_running: Whether calls may take minutes.
        commonly_used: Whether the tool is part of the everyday workflow.
        actions: Valid values of the ``action`` parameter.
    """

    name: str
    handler: ActionHandler
    definition: Tool
    category: str
    tags: tuple[str, ...]
    priority: int
    long_running: bool
    commonly_used: bool
    actions: tuple[str, ...]


_SPECS = [
    ToolSpec(
        name="dotnet_project",
        handler=handle_dotnet_project,
        definition=definitions.DOTNET_PROJECT_TOOL,
        category="project",
        tags=("build", "run", "test", "publish"),
        priority=10,
        long_running=True,
        commonly_used=True,
        actions=PROJECT_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_package",
        handler=handle_dotnet_package,
        definition=definitions.DOTNET_PACKAGE_TOOL,
        category="package",
        tags=("nuget", "dependencies"),
        priority=20,
        long_running=False,
        commonly_used=True,
        actions=PACKAGE_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_ef",
        handler=handle_dotnet_ef,
        definition=definitions.DOTNET_EF_TOOL,
        category="data",
        tags=("ef", "migrations", "database"),
        priority=30,
        long_running=True,
        commonly_used=False,
        actions=EF_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_dev_certs",
        handler=handle_dotnet_dev_certs,
        definition=definitions.DOTNET_DEV_CERTS_TOOL,
        category="security",
        tags=("https", "certificates"),
        priority=40,
        long_running=False,
        commonly_used=False,
        actions=DEV_CERTS_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_secrets",
        handler=handle_dotnet_secrets,
        definition=definitions.DOTNET_SECRETS_TOOL,
        category="security",
        tags=("user-secrets", "configuration"),
        priority=41,
        long_running=False,
        commonly_used=False,
        actions=SECRETS_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_workload",
        handler=handle_dotnet_workload,
        definition=definitions.DOTNET_WORKLOAD_TOOL,
        category="sdk",
        tags=("workloads", "maui", "wasm"),
        priority=50,
        long_running=True,
        commonly_used=False,
        actions=WORKLOAD_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_sdk",
        handler=handle_dotnet_sdk,
        definition=definitions.DOTNET_SDK_TOOL,
        category="sdk",
        tags=("info", "version", "runtimes"),
        priority=51,
        long_running=False,
        commonly_used=True,
        actions=SDK_ACTIONS,
    ),
    ToolSpec(
        name="dotnet_session",
        handler=handle_dotnet_session,
        definition=definitions.DOTNET_SESSION_TOOL,
        category="session",
        tags=("background", "logs"),
        priority=60,
        long_running=False,
        commonly_used=True,
        actions=SESSION_ACTIONS,
    ),
]

TOOL_REGISTRY: dict[str, ToolSpec] = {spec.name: spec for spec in _SPECS}


def get_tool_spec(name: str) -> ToolSpec | None:
    return TOOL_REGISTRY.get(name)


def list_tool_definitions() -> list[Tool]:
    """Tool schemas in priority order."""
    return [spec.definition for spec in sorted(_SPECS, key=lambda s: s.priority)]
