"""MCP tool handlers.

Each handler validates its arguments, runs the dotnet CLI (or reads local
state), and returns plain text or a JSON envelope.
Handlers are organized by domain:
- project: dotnet_project (new, restore, build, run, test, publish, clean, stop)
- package: dotnet_package (add, remove, list, search)
- ef: dotnet_ef (migrations and database update)
- security: dotnet_dev_certs, dotnet_secrets
- sdk: dotnet_workload, dotnet_sdk
- sessions: dotnet_session (list, get, logs, stop, cleanup)
"""

from dotnet_mcp.mcp.tools.handlers.ef import EF_ACTIONS, handle_dotnet_ef
from dotnet_mcp.mcp.tools.handlers.package import PACKAGE_ACTIONS, handle_dotnet_package
from dotnet_mcp.mcp.tools.handlers.project import PROJECT_ACTIONS, handle_dotnet_project
from dotnet_mcp.mcp.tools.handlers.sdk import (
    SDK_ACTIONS,
    WORKLOAD_ACTIONS,
    handle_dotnet_sdk,
    handle_dotnet_workload,
)
from dotnet_mcp.mcp.tools.handlers.security import (
    DEV_CERTS_ACTIONS,
    SECRETS_ACTIONS,
    handle_dotnet_dev_certs,
    handle_dotnet_secrets,
)
from dotnet_mcp.mcp.tools.handlers.sessions import SESSION_ACTIONS, handle_dotnet_session

__all__ = [
    # Handlers
    "handle_dotnet_project",
    "handle_dotnet_package",
    "handle_dotnet_ef",
    "handle_dotnet_dev_certs",
    "handle_dotnet_secrets",
    "handle_dotnet_workload",
    "handle_dotnet_sdk",
    "handle_dotnet_session",
    # Action sets
    "PROJECT_ACTIONS",
    "PACKAGE_ACTIONS",
    "EF_ACTIONS",
    "DEV_CERTS_ACTIONS",
    "SECRETS_ACTIONS",
    "WORKLOAD_ACTIONS",
    "SDK_ACTIONS",
    "SESSION_ACTIONS",
]
