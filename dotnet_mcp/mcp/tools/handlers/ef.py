"""Entity Framework Core handler (dotnet_ef).

Wraps the ``dotnet ef`` global tool. Migration changes and database updates
are guarded per project; listing is not.
"""

from typing import Any

from dotnet_mcp.execution.validation import (
    optional_str,
    require,
    validate_framework,
    validate_migration_name,
    validate_project_path,
)
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import dispatch_action, flag, option, run_dotnet


def _common_options(arguments: dict[str, Any], args: list[str]) -> str | None:
    project = optional_str(arguments, "project")
    startup_project = optional_str(arguments, "startup_project")
    framework = optional_str(arguments, "framework")
    validate_project_path(project)
    validate_project_path(startup_project)
    validate_framework(framework)

    option(args, "--project", project)
    option(args, "--startup-project", startup_project)
    option(args, "--context", optional_str(arguments, "db_context"))
    option(args, "--framework", framework)
    return project


async def _migrations_add(arguments: dict[str, Any], context: ToolContext) -> str:
    name = require(arguments, "name", "The 'name' parameter is required for 'migrations_add'.")
    validate_migration_name(name)
    args = ["ef", "migrations", "add", name]
    project = _common_options(arguments, args)
    option(args, "--output-dir", optional_str(arguments, "output_dir"))
    return await run_dotnet(context, arguments, args, "ef_migrations_add", project)


async def _migrations_list(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["ef", "migrations", "list"]
    _common_options(arguments, args)
    flag(args, "--no-connect", arguments.get("no_connect"))
    return await run_dotnet(context, arguments, args)


async def _migrations_remove(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["ef", "migrations", "remove"]
    project = _common_options(arguments, args)
    flag(args, "--force", arguments.get("force"))
    return await run_dotnet(context, arguments, args, "ef_migrations_remove", project)


async def _database_update(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["ef", "database", "update"]
    migration = optional_str(arguments, "migration")
    if migration:
        validate_migration_name(migration)
        args.append(migration)
    project = _common_options(arguments, args)
    option(args, "--connection", optional_str(arguments, "connection"))
    return await run_dotnet(context, arguments, args, "ef_database_update", project)


_ACTIONS = {
    "migrations_add": _migrations_add,
    "migrations_list": _migrations_list,
    "migrations_remove": _migrations_remove,
    "database_update": _database_update,
}

EF_ACTIONS = tuple(_ACTIONS)


async def handle_dotnet_ef(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_ef tool call."""
    return await dispatch_action("dotnet_ef", _ACTIONS, arguments, context)
