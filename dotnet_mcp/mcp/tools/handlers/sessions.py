"""Background session handler (dotnet_session).

Inspects and controls processes started with ``dotnet_project run`` in
background mode. Nothing here starts a process.
"""

from datetime import datetime
from typing import Any

from dotnet_mcp.diagnostics.factory import create_validation_error
from dotnet_mcp.execution.validation import (
    ParameterValidationError,
    optional_int,
    optional_str,
    require,
)
from dotnet_mcp.mcp.context import ToolContext
from dotnet_mcp.mcp.tools.handlers.common import (
    dispatch_action,
    is_machine_readable,
    render,
    render_data,
)
from dotnet_mcp.mcp.tools.handlers.project import stop_session


def _not_found(session_id: str, machine_readable: bool) -> str:
    envelope = create_validation_error(
        f"Session '{session_id}' not found. It may have already completed or been stopped.",
        "session_id",
        "not found",
    )
    return render(envelope, machine_readable)


def _parse_since(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ParameterValidationError(
            f"Invalid 'since' value '{value}'. Use an ISO 8601 timestamp, "
            "e.g. 2025-01-01T12:00:00Z.",
            "since",
            "invalid format",
        ) from None


async def _list(arguments: dict[str, Any], context: ToolContext) -> str:
    sessions = context.sessions.list_sessions(active_only=bool(arguments.get("active_only")))
    data = {
        "count": len(sessions),
        "sessions": [info.to_dict() for info in sessions],
    }
    return render_data(data, is_machine_readable(arguments))


async def _get(arguments: dict[str, Any], context: ToolContext) -> str:
    session_id = require(arguments, "session_id")
    machine_readable = is_machine_readable(arguments)
    info = context.sessions.get_session(session_id)
    if info is None:
        return _not_found(session_id, machine_readable)
    return render_data(info.to_dict(), machine_readable)


async def _logs(arguments: dict[str, Any], context: ToolContext) -> str:
    session_id = require(arguments, "session_id")
    tail_lines = optional_int(arguments, "tail_lines", minimum=1)
    since = _parse_since(optional_str(arguments, "since"))
    machine_readable = is_machine_readable(arguments)

    logs = context.sessions.get_session_logs(session_id, tail_lines=tail_lines, since=since)
    if logs is None:
        return _not_found(session_id, machine_readable)
    return render_data(logs.to_dict(), machine_readable)


async def _cleanup(arguments: dict[str, Any], context: ToolContext) -> str:
    removed = context.sessions.cleanup_completed_sessions()
    return render_data({"removed": removed}, is_machine_readable(arguments))


_ACTIONS = {
    "list": _list,
    "get": _get,
    "logs": _logs,
    "stop": stop_session,
    "cleanup": _cleanup,
}

SESSION_ACTIONS = tuple(_ACTIONS)


async def handle_dotnet_session(arguments: dict[str, Any], context: ToolContext) -> str:
    """Handle dotnet_session tool call."""
    return await dispatch_action("dotnet_session", _ACTIONS, arguments, context)
