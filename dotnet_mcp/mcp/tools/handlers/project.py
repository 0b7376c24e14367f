"""Project lifecycle handler (dotnet_project).

Actions:
- new: create a project from a template
- restore / build / test / publish / clean: guarded per project
- run: foreground (guarded) or background (returns a session id)
- stop: stop a background session
"""

import uuid
from typing import Any

from dotnet_mcp.diagnostics.factory import (
    create_capability_not_available,
    create_concurrency_conflict,
    create_validation_error,
)
from dotnet_mcp.execution.concurrency import OperationConflictError, normalize_target
from dotnet_mcp.execution.executor import SDK_INSTALL_ALTERNATIVES
from dotnet_mcp.execution.validation import (
    ParameterValidationError,
    optional_str,
    parse_additional_options,
    require,
    validate_configuration,
    validate_framework,
    validate_project_path,
    validate_runtime_identifier,
    validate_verbosity,
)
from dotnet_mcp.logging import logger
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import (
    dispatch_action,
    flag,
    is_machine_readable,
    operation_target,
    option,
    render,
    run_dotnet,
    working_directory,
)
from dotnet_mcp.models.results import SuccessResult

START_MODES = ("foreground", "background")


def _project(arguments: dict[str, Any]) -> str | None:
    project = optional_str(arguments, "project")
    validate_project_path(project)
    return project


def _build_options(arguments: dict[str, Any], args: list[str]) -> None:
    configuration = optional_str(arguments, "configuration")
    framework = optional_str(arguments, "framework")
    validate_configuration(configuration)
    validate_framework(framework)
    option(args, "--configuration", configuration)
    option(args, "--framework", framework)


async def _new(arguments: dict[str, Any], context: ToolContext) -> str:
    template = require(arguments, "template", "The 'template' parameter is required for 'new'.")
    name = optional_str(arguments, "name")
    output = optional_str(arguments, "output")
    framework = optional_str(arguments, "framework")
    validate_framework(framework)

    args = ["new", template]
    option(args, "--name", name)
    option(args, "--output", output)
    option(args, "--framework", framework)
    args.extend(parse_additional_options(arguments.get("additional_options")))
    return await run_dotnet(context, arguments, args)


async def _restore(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    args = ["restore"]
    if project:
        args.append(project)
    option(args, "--source", optional_str(arguments, "source"))
    return await run_dotnet(context, arguments, args, "restore", project)


async def _build(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    runtime = optional_str(arguments, "runtime")
    verbosity = optional_str(arguments, "verbosity")
    validate_runtime_identifier(runtime)
    validate_verbosity(verbosity)

    args = ["build"]
    if project:
        args.append(project)
    _build_options(arguments, args)
    option(args, "--runtime", runtime)
    option(args, "--verbosity", verbosity)
    flag(args, "--no-restore", arguments.get("no_restore"))
    args.extend(parse_additional_options(arguments.get("additional_options")))
    return await run_dotnet(context, arguments, args, "build", project)


async def _test(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    verbosity = optional_str(arguments, "verbosity")
    validate_verbosity(verbosity)

    args = ["test"]
    if project:
        args.append(project)
    _build_options(arguments, args)
    option(args, "--filter", optional_str(arguments, "filter"))
    option(args, "--logger", optional_str(arguments, "logger"))
    option(args, "--verbosity", verbosity)
    flag(args, "--no-build", arguments.get("no_build"))
    flag(args, "--no-restore", arguments.get("no_restore"))
    args.extend(parse_additional_options(arguments.get("additional_options")))
    return await run_dotnet(context, arguments, args, "test", project)


async def _publish(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    runtime = optional_str(arguments, "runtime")
    validate_runtime_identifier(runtime)

    args = ["publish"]
    if project:
        args.append(project)
    _build_options(arguments, args)
    option(args, "--runtime", runtime)
    option(args, "--output", optional_str(arguments, "output"))
    self_contained = arguments.get("self_contained")
    if self_contained is not None:
        args.append("--self-contained" if self_contained else "--no-self-contained")
    args.extend(parse_additional_options(arguments.get("additional_options")))
    return await run_dotnet(context, arguments, args, "publish", project)


async def _clean(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    args = ["clean"]
    if project:
        args.append(project)
    _build_options(arguments, args)
    return await run_dotnet(context, arguments, args, "clean", project)


async def _run(arguments: dict[str, Any], context: ToolContext) -> str:
    project = _project(arguments)
    start_mode = (optional_str(arguments, "start_mode") or "foreground").lower()
    if start_mode not in START_MODES:
        raise ParameterValidationError(
            f"Invalid start_mode '{start_mode}'. Valid values: foreground, background.",
            "start_mode",
            "invalid value",
        )

    args = ["run"]
    if project:
        args.extend(["--project", project])
    _build_options(arguments, args)
    flag(args, "--no-build", arguments.get("no_build"))
    app_args = arguments.get("app_args") or []
    if not isinstance(app_args, list) or not all(isinstance(a, str) for a in app_args):
        raise ParameterValidationError(
            "The 'app_args' parameter must be a list of strings.", "app_args", "invalid type"
        )
    if app_args:
        args.append("--")
        args.extend(app_args)

    if start_mode == "foreground":
        return await run_dotnet(context, arguments, args, "run", project)
    return await _run_background(arguments, context, args, project)


async def _run_background(
    arguments: dict[str, Any],
    context: ToolContext,
    args: list[str],
    project: str | None,
) -> str:
    machine_readable = is_machine_readable(arguments)
    cwd = working_directory(arguments)
    target = normalize_target(operation_target(project, cwd))

    # The lock covers process start only; the session tracks the rest
    try:
        with context.guard.hold("run", target):
            try:
                handle = await context.executor.start_background(args, cwd)
            except OSError as e:
                logger.error("Failed to start background run: %s", e)
                return render(
                    create_capability_not_available(
                        "dotnet CLI",
                        alternatives=SDK_INSTALL_ALTERNATIVES,
                        command=context.executor.command_line(args),
                        details=str(e),
                    ),
                    machine_readable,
                )
            session_id = uuid.uuid4().hex
            if not context.sessions.register_session(session_id, handle, "run", target):
                handle.kill(entire_tree=True)
                handle.dispose()
                raise RuntimeError(f"Session id collision: {session_id}")
    except OperationConflictError as e:
        return render(
            create_concurrency_conflict(e.operation_type, e.target, e.conflicting_operation),
            machine_readable,
        )

    envelope = SuccessResult(
        output=f"Started background run (session {session_id}, pid {handle.pid}).",
        exit_code=0,
        metadata={
            "sessionId": session_id,
            "pid": str(handle.pid),
            "operationType": "run",
            "target": target,
            "startMode": "background",
        },
    )
    return render(envelope, machine_readable)


async def stop_session(arguments: dict[str, Any], context: ToolContext) -> str:
    """Stop a background session (shared with dotnet_session)."""
    session_id = require(arguments, "session_id")
    machine_readable = is_machine_readable(arguments)
    stopped, error = await context.sessions.try_stop_session(session_id)
    if not stopped:
        return render(
            create_validation_error(error or "Session could not be stopped.", "session_id", "not running"),
            machine_readable,
        )
    envelope = SuccessResult(
        output=f"Session '{session_id}' stopped.",
        exit_code=0,
        metadata={"sessionId": session_id},
    )
    return render(envelope, machine_readable)


_ACTIONS = {
    "new": _new,
    "restore": _restore,
    "build": _build,
    "run": _run,
    "test": _test,
    "publish": _publish,
    "clean": _clean,
    "stop": stop_session,
}

PROJECT_ACTIONS = tuple(_ACTIONS)


async def handle_dotnet_project(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_project tool call.

    Args:
        arguments: Tool arguments with action and action-specific parameters.
        context: Shared tool context.

    Returns:
        Plain text or JSON envelope.

    Raises:
        ParameterValidationError: If an argument is invalid.
    """
    return await dispatch_action("dotnet_project", _ACTIONS, arguments, context)
