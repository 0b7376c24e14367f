"""MCP Tool schema definitions.

Contains all Tool objects that define the MCP interface for dotnet-mcp.
Each Tool specifies its name, description, and JSON schema for inputs.
Every tool takes an ``action`` from a fixed set plus the common
``working_directory`` and ``machine_readable`` parameters.
"""

from collections.abc import Sequence
from typing import Any

from mcp.types import Tool

from dotnet_mcp.mcp.tools.handlers import (
    DEV_CERTS_ACTIONS,
    EF_ACTIONS,
    PACKAGE_ACTIONS,
    PROJECT_ACTIONS,
    SDK_ACTIONS,
    SECRETS_ACTIONS,
    SESSION_ACTIONS,
    WORKLOAD_ACTIONS,
)

_WORKING_DIRECTORY = {
    "type": "string",
    "description": "Directory to run the command in. Defaults to the server's working directory.",
}
_MACHINE_READABLE = {
    "type": "boolean",
    "description": "Return a JSON result envelope instead of plain text",
    "default": False,
}
_PROJECT = {
    "type": "string",
    "description": "Path to a .csproj, .fsproj, .vbproj, .sln, or .slnx file",
}
_FRAMEWORK = {
    "type": "string",
    "description": "Target framework moniker (e.g., net8.0)",
}
_CONFIGURATION = {
    "type": "string",
    "enum": ["Debug", "Release"],
    "description": "Build configuration",
}
_ADDITIONAL_OPTIONS = {
    "type": "string",
    "description": (
        "Extra CLI options. Only letters, digits, '-', '_', '.', spaces, and '=' are allowed."
    ),
}


def _schema(
    actions: Sequence[str],
    properties: dict[str, Any],
    required: Sequence[str] = (),
) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "action": {
                "type": "string",
                "enum": list(actions),
                "description": "Operation to perform",
            },
            **properties,
            "working_directory": _WORKING_DIRECTORY,
            "machine_readable": _MACHINE_READABLE,
        },
        "required": ["action", *required],
    }


# =============================================================================
# PROJECT AND PACKAGES
# =============================================================================

DOTNET_PROJECT_TOOL = Tool(
    name="dotnet_project",
    description=(
        "Create, restore, build, run, test, publish, and clean .NET projects. "
        "Use start_mode='background' with action='run' to get a sessionId for long-running apps; "
        "stop it with action='stop' or dotnet_session. "
        "Concurrent mutating operations on the same project are rejected with CONCURRENCY_CONFLICT."
    ),
    inputSchema=_schema(
        PROJECT_ACTIONS,
        {
            "project": _PROJECT,
            "template": {
                "type": "string",
                "description": "Template short name for action='new' (e.g., console, webapi, classlib)",
            },
            "name": {"type": "string", "description": "Project name for action='new'"},
            "output": {"type": "string", "description": "Output directory"},
            "framework": _FRAMEWORK,
            "configuration": _CONFIGURATION,
            "runtime": {
                "type": "string",
                "description": "Runtime identifier (e.g., linux-x64, win-x64, osx-arm64)",
            },
            "verbosity": {
                "type": "string",
                "description": "MSBuild verbosity: q[uiet], m[inimal], n[ormal], d[etailed], diag[nostic]",
            },
            "source": {"type": "string", "description": "NuGet source for restore"},
            "filter": {"type": "string", "description": "Test filter expression"},
            "logger": {"type": "string", "description": "Test logger (e.g., trx)"},
            "no_build": {"type": "boolean", "description": "Skip the build step"},
            "no_restore": {"type": "boolean", "description": "Skip the implicit restore"},
            "self_contained": {"type": "boolean", "description": "Publish self-contained"},
            "start_mode": {
                "type": "string",
                "enum": ["foreground", "background"],
                "description": "For action='run': wait for exit (foreground) or return a session (background)",
                "default": "foreground",
            },
            "app_args": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Arguments passed to the application after '--'",
            },
            "session_id": {"type": "string", "description": "Session to stop for action='stop'"},
            "additional_options": _ADDITIONAL_OPTIONS,
        },
    ),
)

DOTNET_PACKAGE_TOOL = Tool(
    name="dotnet_package",
    description=(
        "Add, remove, list, and search NuGet packages. "
        "Use action='list' with outdated=true to find packages with newer versions."
    ),
    inputSchema=_schema(
        PACKAGE_ACTIONS,
        {
            "project": _PROJECT,
            "package_id": {"type": "string", "description": "NuGet package id (add/remove)"},
            "version": {"type": "string", "description": "Package version for action='add'"},
            "source": {"type": "string", "description": "Package source URL or name"},
            "prerelease": {"type": "boolean", "description": "Allow prerelease versions"},
            "no_restore": {"type": "boolean", "description": "Add the reference without restoring"},
            "outdated": {"type": "boolean", "description": "List only outdated packages"},
            "include_transitive": {"type": "boolean", "description": "Include transitive packages"},
            "search_term": {"type": "string", "description": "Search text for action='search'"},
            "take": {"type": "integer", "description": "Maximum number of search results"},
            "exact_match": {"type": "boolean", "description": "Match the package id exactly"},
        },
    ),
)

DOTNET_EF_TOOL = Tool(
    name="dotnet_ef",
    description=(
        "Entity Framework Core migrations and database updates via the dotnet-ef tool. "
        "Requires dotnet-ef to be installed (dotnet tool install --global dotnet-ef)."
    ),
    inputSchema=_schema(
        EF_ACTIONS,
        {
            "project": _PROJECT,
            "startup_project": _PROJECT,
            "db_context": {"type": "string", "description": "DbContext class to use"},
            "framework": _FRAMEWORK,
            "name": {"type": "string", "description": "Migration name for action='migrations_add'"},
            "output_dir": {"type": "string", "description": "Directory for new migration files"},
            "migration": {
                "type": "string",
                "description": "Target migration for action='database_update'",
            },
            "connection": {
                "type": "string",
                "description": "Connection string override (never echoed back)",
            },
            "no_connect": {"type": "boolean", "description": "Do not connect to the database"},
            "force": {"type": "boolean", "description": "Revert the migration if already applied"},
        },
    ),
)

# =============================================================================
# SECURITY
# =============================================================================

DOTNET_DEV_CERTS_TOOL = Tool(
    name="dotnet_dev_certs",
    description=(
        "Manage the ASP.NET Core HTTPS development certificate: check, trust, clean, export. "
        "Trust and clean may prompt for elevation on some platforms."
    ),
    inputSchema=_schema(
        DEV_CERTS_ACTIONS,
        {
            "trust": {"type": "boolean", "description": "For action='check': also check trust"},
            "path": {"type": "string", "description": "Export file path for action='export'"},
            "password": {
                "type": "string",
                "description": "Export password (never echoed back)",
            },
            "format": {
                "type": "string",
                "enum": ["Pfx", "Pem"],
                "description": "Export format",
            },
            "no_password": {"type": "boolean", "description": "Export a PEM key without a password"},
        },
    ),
)

DOTNET_SECRETS_TOOL = Tool(
    name="dotnet_secrets",
    description=(
        "Manage user secrets for a project: init, set, list, remove, clear. "
        "Secret values are redacted from logs and error output."
    ),
    inputSchema=_schema(
        SECRETS_ACTIONS,
        {
            "project": _PROJECT,
            "key": {"type": "string", "description": "Secret key (set/remove)"},
            "value": {"type": "string", "description": "Secret value for action='set'"},
        },
    ),
)

# =============================================================================
# SDK AND SESSIONS
# =============================================================================

DOTNET_WORKLOAD_TOOL = Tool(
    name="dotnet_workload",
    description="List, search, install, update, and uninstall .NET SDK workloads (e.g., maui, wasm-tools).",
    inputSchema=_schema(
        WORKLOAD_ACTIONS,
        {
            "workload_ids": {
                "type": "string",
                "description": "Comma-separated workload ids for install/uninstall",
            },
            "search_term": {"type": "string", "description": "Search text for action='search'"},
            "source": {"type": "string", "description": "NuGet source for workload manifests"},
            "skip_manifest_update": {"type": "boolean", "description": "Do not update manifests"},
            "include_previews": {"type": "boolean", "description": "Allow preview workloads"},
        },
    ),
)

DOTNET_SDK_TOOL = Tool(
    name="dotnet_sdk",
    description=(
        "Inspect the installed .NET SDK: info, version, list_sdks, list_runtimes. "
        "action='capabilities' describes this server's tools, held locks, and active sessions."
    ),
    inputSchema=_schema(SDK_ACTIONS, {}),
)

DOTNET_SESSION_TOOL = Tool(
    name="dotnet_session",
    description=(
        "Inspect and control background sessions started by dotnet_project run "
        "(start_mode='background'): list, get, logs, stop, cleanup."
    ),
    inputSchema=_schema(
        SESSION_ACTIONS,
        {
            "session_id": {"type": "string", "description": "Session id (get/logs/stop)"},
            "active_only": {"type": "boolean", "description": "For action='list': running sessions only"},
            "tail_lines": {
                "type": "integer",
                "description": "For action='logs': most recent N lines across stdout and stderr",
            },
            "since": {
                "type": "string",
                "description": "For action='logs': ISO 8601 timestamp; only lines captured at or after it",
            },
        },
    ),
)


# =============================================================================
# ALL TOOLS LIST
# =============================================================================

ALL_TOOLS = [
    DOTNET_PROJECT_TOOL,
    DOTNET_PACKAGE_TOOL,
    DOTNET_EF_TOOL,
    DOTNET_DEV_CERTS_TOOL,
    DOTNET_SECRETS_TOOL,
    DOTNET_WORKLOAD_TOOL,
    DOTNET_SDK_TOOL,
    DOTNET_SESSION_TOOL,
]

__all__ = [
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
