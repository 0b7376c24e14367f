"""NuGet package handler (dotnet_package).

Actions:
- add / remove: change a project's package references (guarded per project)
- list: list package references, optionally outdated or transitive
- search: search configured package sources
"""

from typing import Any

from dotnet_mcp.execution.validation import (
    optional_int,
    optional_str,
    require,
    validate_package_id,
    validate_project_path,
)
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import dispatch_action, flag, option, run_dotnet


def _project_args(arguments: dict[str, Any], verb: str) -> tuple[list[str], str | None]:
    project = optional_str(arguments, "project")
    validate_project_path(project)
    args = [verb]
    if project:
        args.append(project)
    args.append("package")
    return args, project


async def _add(arguments: dict[str, Any], context: ToolContext) -> str:
    package_id = require(arguments, "package_id")
    validate_package_id(package_id)
    args, project = _project_args(arguments, "add")
    args.append(package_id)
    option(args, "--version", optional_str(arguments, "version"))
    option(args, "--source", optional_str(arguments, "source"))
    flag(args, "--prerelease", arguments.get("prerelease"))
    flag(args, "--no-restore", arguments.get("no_restore"))
    return await run_dotnet(context, arguments, args, "package_add", project)


async def _remove(arguments: dict[str, Any], context: ToolContext) -> str:
    package_id = require(arguments, "package_id")
    validate_package_id(package_id)
    args, project = _project_args(arguments, "remove")
    args.append(package_id)
    return await run_dotnet(context, arguments, args, "package_remove", project)


async def _list(arguments: dict[str, Any], context: ToolContext) -> str:
    args, _ = _project_args(arguments, "list")
    flag(args, "--outdated", arguments.get("outdated"))
    flag(args, "--include-transitive", arguments.get("include_transitive"))
    flag(args, "--include-prerelease", arguments.get("prerelease"))
    return await run_dotnet(context, arguments, args)


async def _search(arguments: dict[str, Any], context: ToolContext) -> str:
    search_term = require(arguments, "search_term")
    take = optional_int(arguments, "take", minimum=1)
    args = ["package", "search", search_term]
    if take is not None:
        args.extend(["--take", str(take)])
    option(args, "--source", optional_str(arguments, "source"))
    flag(args, "--prerelease", arguments.get("prerelease"))
    flag(args, "--exact-match", arguments.get("exact_match"))
    return await run_dotnet(context, arguments, args)


_ACTIONS = {
    "add": _add,
    "remove": _remove,
    "list": _list,
    "search": _search,
}

PACKAGE_ACTIONS = tuple(_ACTIONS)


async def handle_dotnet_package(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_package tool call."""
    return await dispatch_action("dotnet_package", _ACTIONS, arguments, context)
