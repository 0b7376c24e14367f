"""Security handlers: HTTPS developer certificates and user secrets.

- dotnet_dev_certs: check, trust, clean, export. Mutations share the
  machine-wide certificate store, so they lock a logical target.
- dotnet_secrets: init, set, list, remove, clear. Mutations lock the project.
  Secret values never appear in logs or error payloads.
"""

from typing import Any

from dotnet_mcp.execution.concurrency import logical_target
from dotnet_mcp.execution.validation import (
    ParameterValidationError,
    optional_str,
    require,
    validate_project_path,
)
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import dispatch_action, flag, option, run_dotnet

CERT_STORE_TARGET = logical_target("dev-certs")
CERT_FORMATS = ("pfx", "pem")


# =============================================================================
# dotnet_dev_certs
# =============================================================================


async def _check(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["dev-certs", "https", "--check"]
    flag(args, "--trust", arguments.get("trust"))
    return await run_dotnet(context, arguments, args)


async def _trust(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["dev-certs", "https", "--trust"]
    return await run_dotnet(context, arguments, args, "certificate_trust", CERT_STORE_TARGET)


async def _clean(arguments: dict[str, Any], context: ToolContext) -> str:
    args = ["dev-certs", "https", "--clean"]
    return await run_dotnet(context, arguments, args, "certificate_clean", CERT_STORE_TARGET)


async def _export(arguments: dict[str, Any], context: ToolContext) -> str:
    path = require(arguments, "path", "The 'path' parameter is required for 'export'.")
    password = optional_str(arguments, "password")
    cert_format = optional_str(arguments, "format")
    if cert_format and cert_format.lower() not in CERT_FORMATS:
        raise ParameterValidationError(
            f"Invalid format '{cert_format}'. Valid values: Pfx, Pem.", "format", "invalid value"
        )

    args = ["dev-certs", "https", "--export-path", path]
    option(args, "--password", password)
    option(args, "--format", cert_format.capitalize() if cert_format else None)
    flag(args, "--no-password", arguments.get("no_password"))
    return await run_dotnet(
        context,
        arguments,
        args,
        "certificate_export",
        CERT_STORE_TARGET,
        secret_values=(password,) if password else (),
    )


_CERT_ACTIONS = {
    "check": _check,
    "trust": _trust,
    "clean": _clean,
    "export": _export,
}

DEV_CERTS_ACTIONS = tuple(_CERT_ACTIONS)


async def handle_dotnet_dev_certs(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_dev_certs tool call."""
    return await dispatch_action("dotnet_dev_certs", _CERT_ACTIONS, arguments, context)


# =============================================================================
# dotnet_secrets
# =============================================================================


def _secrets_args(arguments: dict[str, Any], *verb: str) -> tuple[list[str], str | None]:
    project = optional_str(arguments, "project")
    validate_project_path(project)
    args = ["user-secrets", *verb]
    return args, project


def _with_project(args: list[str], project: str | None) -> list[str]:
    option(args, "--project", project)
    return args


async def _init(arguments: dict[str, Any], context: ToolContext) -> str:
    args, project = _secrets_args(arguments, "init")
    _with_project(args, project)
    return await run_dotnet(context, arguments, args, "secrets_init", project)


async def _set(arguments: dict[str, Any], context: ToolContext) -> str:
    key = require(arguments, "key")
    value = arguments.get("value")
    if value is None or not isinstance(value, str):
        raise ParameterValidationError(
            "The 'value' parameter is required for 'set'.", "value", "required"
        )
    args, project = _secrets_args(arguments, "set", key, value)
    _with_project(args, project)
    return await run_dotnet(
        context, arguments, args, "secrets_set", project, secret_values=(value,) if value else ()
    )


async def _list(arguments: dict[str, Any], context: ToolContext) -> str:
    args, project = _secrets_args(arguments, "list")
    _with_project(args, project)
    return await run_dotnet(context, arguments, args)


async def _remove(arguments: dict[str, Any], context: ToolContext) -> str:
    key = require(arguments, "key")
    args, project = _secrets_args(arguments, "remove", key)
    _with_project(args, project)
    return await run_dotnet(context, arguments, args, "secrets_remove", project)


async def _clear(arguments: dict[str, Any], context: ToolContext) -> str:
    args, project = _secrets_args(arguments, "clear")
    _with_project(args, project)
    return await run_dotnet(context, arguments, args, "secrets_clear", project)


_SECRETS_ACTIONS = {
    "init": _init,
    "set": _set,
    "list": _list,
    "remove": _remove,
    "clear": _clear,
}

SECRETS_ACTIONS = tuple(_SECRETS_ACTIONS)


async def handle_dotnet_secrets(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_secrets tool call."""
    return await dispatch_action("dotnet_secrets", _SECRETS_ACTIONS, arguments, context)
