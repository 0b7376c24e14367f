"""SDK and workload handlers.

- dotnet_workload: list, search, install, update, uninstall. Workloads are
  installed machine-wide, so mutations lock one logical target.
- dotnet_sdk: info, version, list_sdks, list_runtimes, and capabilities,
  which describes this server without starting a process.
"""

from typing import Any

from dotnet_mcp import __version__
from dotnet_mcp.execution.concurrency import logical_target
from dotnet_mcp.execution.validation import optional_str, validate_workload_ids
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import (
    dispatch_action,
    flag,
    is_machine_readable,
    option,
    render_data,
    run_dotnet,
)

WORKLOADS_TARGET = logical_target("workloads")


# =============================================================================
# dotnet_workload
# =============================================================================


async def _workload_list(arguments: dict[str, Any], context: ToolContext) -> str:
    return await run_dotnet(context, arguments, ["workload", "list"])


async def _workload_search(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["workload", "search"]
    search_term = optional_str(arguments, "search_term")
    if search_term:
        args.append(search_term)
    return await run_dotnet(context, arguments, args)


async def _workload_install(arguments: dict[str, Any], context: ToolContext) -> str:
    ids = validate_workload_ids(optional_str(arguments, "workload_ids"))
    args = ["workload", "install", *ids]
    option(args, "--source", optional_str(arguments, "source"))
    flag(args, "--skip-manifest-update", arguments.get("skip_manifest_update"))
    flag(args, "--include-previews", arguments.get("include_previews"))
    return await run_dotnet(context, arguments, args, "workload_install", WORKLOADS_TARGET)


async def _workload_update(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["workload", "update"]
    option(args, "--source", optional_str(arguments, "source"))
    flag(args, "--include-previews", arguments.get("include_previews"))
    return await run_dotnet(context, arguments, args, "workload_update", WORKLOADS_TARGET)


async def _workload_uninstall(arguments: dict[str, Any], context: ToolContext) -> str:
    ids = validate_workload_ids(optional_str(arguments, "workload_ids"))
    args = ["workload", "uninstall", *ids]
    return await run_dotnet(context, arguments, args, "workload_uninstall", WORKLOADS_TARGET)


_WORKLOAD_ACTIONS = {
    "list": _workload_list,
    "search": _workload_search,
    "install": _workload_install,
    "update": _workload_update,
    "uninstall": _workload_uninstall,
}

WORKLOAD_ACTIONS = tuple(_WORKLOAD_ACTIONS)


async def handle_dotnet_workload(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_workload tool call."""
    return await dispatch_action("dotnet_workload", _WORKLOAD_ACTIONS, arguments, context)


# =============================================================================
# dotnet_sdk
# =============================================================================


async def _info(arguments: dict[str, Any], context: ToolContext) -> str:
    return await run_dotnet(context, arguments, ["--info"])


async def _version(arguments: dict[str, Any], context: ToolContext) -> str:
    return await run_dotnet(context, arguments, ["--version"])


async def _list_sdks(arguments: dict[str, Any], context: ToolContext) -> str:
    return await run_dotnet(context, arguments, ["--list-sdks"])


async def _list_runtimes(arguments: dict[str, Any], context: ToolContext) -> str:
    return await run_dotnet(context, arguments, ["--list-runtimes"])


def describe_capabilities(context: ToolContext) -> dict[str, Any]:
    """Describe the server: tools, their actions, held locks, and sessions."""
    # Imported here because the registry imports this module
    from dotnet_mcp.mcp.tools.registry import TOOL_REGISTRY

    return {
        "server": "dotnet-mcp",
        "version": __version__,
        "dotnetPath": context.settings.dotnet_path,
        "tools": [
            {
                "name": spec.name,
                "category": spec.category,
                "actions": list(spec.actions),
                "longRunning": spec.long_running,
            }
            for spec in sorted(TOOL_REGISTRY.values(), key=lambda s: s.priority)
        ],
        "activeOperations": [
            {
                "operationType": lock.operation_type,
                "target": lock.target,
                "label": lock.label,
            }
            for lock in context.guard.active_operations()
        ],
        "activeSessions": context.sessions.active_session_count,
    }


async def _capabilities(arguments: dict[str, Any], context: ToolContext) -> str:
    return render_data(describe_capabilities(context), is_machine_readable(arguments))


_SDK_ACTIONS = {
    "info": _info,
    "version": _version,
    "list_sdks": _list_sdks,
    "list_runtimes": _list_runtimes,
    "capabilities": _capabilities,
}

SDK_ACTIONS = tuple(_SDK_ACTIONS)


async def handle_dotnet_sdk(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_sdk tool call."""
    return await dispatch_action("dotnet_sdk", _SDK_ACTIONS, arguments, context)
