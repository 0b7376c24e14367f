"""Helpers shared by the tool handlers.

Handlers validate their arguments (raising ParameterValidationError), build a
dotnet argument list, and hand it to ``run_dotnet``, which takes the
concurrency lock when an operation type is given, executes, and renders the
envelope as plain text or JSON.
"""

import json
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from dotnet_mcp.diagnostics.factory import (
    create_action_validation_error,
    create_concurrency_conflict,
    create_validation_error,
    to_json,
    to_plain_text,
)
from dotnet_mcp.execution.concurrency import OperationConflictError, is_logical_target
from dotnet_mcp.execution.validation import (
    ParameterValidationError,
    optional_str,
    validate_directory,
)
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.models.results import ResultEnvelope, SuccessResult

ActionHandler = Callable[[dict[str, Any], ToolContext], Awaitable[str]]


def is_machine_readable(arguments: dict[str, Any]) -> bool:
    return bool(arguments.get("machine_readable", False))


def render(envelope: ResultEnvelope, machine_readable: bool) -> str:
    """Render an envelope as JSON or plain text."""
    return to_json(envelope) if machine_readable else to_plain_text(envelope)


def render_validation_error(error: ParameterValidationError, machine_readable: bool) -> str:
    envelope = create_validation_error(error.message, error.parameter, error.reason)
    return render(envelope, machine_readable)


def render_data(data: Any, machine_readable: bool) -> str:
    """Render locally computed data (no process) as a success envelope."""
    text = json.dumps(data, indent=2)
    return render(SuccessResult(output=text, exit_code=0), machine_readable)


def working_directory(arguments: dict[str, Any]) -> str | None:
    """Get and check the optional working_directory argument."""
    directory = optional_str(arguments, "working_directory")
    validate_directory(directory, "working_directory")
    return str(Path(directory).expanduser()) if directory else None


def operation_target(path: str | None, cwd: str | None) -> str | None:
    """Resolve the lock target for a project path relative to the working directory."""
    if path and is_logical_target(path):
        return path
    if path and cwd and not Path(path).expanduser().is_absolute():
        return str(Path(cwd) / path)
    return path or cwd


def flag(args: list[str], name: str, enabled: Any) -> None:
    if enabled:
        args.append(name)


def option(args: list[str], name: str, value: str | None) -> None:
    if value:
        args.extend([name, value])


async def dispatch_action(
    tool_name: str,
    actions: Mapping[str, ActionHandler],
    arguments: dict[str, Any],
    context: ToolContext,
) -> str:
    """Route a consolidated tool call to its action handler.

    Unknown or missing actions are answered with a validation error that
    lists the valid actions.
    """
    action = arguments.get("action")
    handler = actions.get(action) if isinstance(action, str) else None
    if handler is None:
        envelope = create_action_validation_error(
            action if isinstance(action, str) else None, list(actions), tool_name
        )
        return render(envelope, is_machine_readable(arguments))
    return await handler(arguments, context)


async def run_dotnet(
    context: ToolContext,
    arguments: dict[str, Any],
    args: Sequence[str],
    operation_type: str | None = None,
    target: str | None = None,
    secret_values: Sequence[str] = (),
) -> str:
    """Execute a dotnet command and render its envelope.

    Args:
        context: Tool context.
        arguments: Raw tool arguments (working_directory, machine_readable).
        args: dotnet arguments.
        operation_type: When set, the command runs under the concurrency
            lock for ``(operation_type, target)``.
        target: Lock target; defaults to the working directory.
        secret_values: Argument values to mask in logs and error payloads.
    """
    machine_readable = is_machine_readable(arguments)
    cwd = working_directory(arguments)

    if operation_type is None:
        envelope = await context.executor.execute(args, cwd, secret_values=secret_values)
        return render(envelope, machine_readable)

    lock_target = operation_target(target, cwd)
    try:
        with context.guard.hold(operation_type, lock_target):
            envelope = await context.executor.execute(args, cwd, secret_values=secret_values)
    except OperationConflictError as e:
        envelope = create_concurrency_conflict(
            e.operation_type, e.target, e.conflicting_operation
        )
    return render(envelope, machine_readable)
