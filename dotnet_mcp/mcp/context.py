"""Shared state handed to every tool handler.

The concurrency guard and the session manager are process-wide; one
ToolContext is created per server and passed explicitly to each handler,
together with the executor that talks to the dotnet CLI.
"""

from dotnet_mcp.config import Settings, get_settings
from dotnet_mcp.execution.concurrency import ConcurrencyGuard
from dotnet_mcp.execution.executor import DotnetExecutor
from dotnet_mcp.execution.sessions import ProcessSessionManager


class ToolContext:
    """Collaborators available to tool handlers.

    Args:
        settings: Resolved settings. Defaults to the current environment.
        guard: Concurrency guard shared by all mutating operations.
        sessions: Background session registry.
        executor: dotnet CLI executor.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        guard: ConcurrencyGuard | None = None,
        sessions: ProcessSessionManager | None = None,
        executor: DotnetExecutor | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.guard = guard or ConcurrencyGuard()
        self.sessions = sessions or ProcessSessionManager(self.settings.session_retention_seconds)
        self.executor = executor or DotnetExecutor(self.settings)


_default_context: ToolContext | None = None


def get_default_context() -> ToolContext:
    """Get the process-wide context, creating it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = ToolContext()
    return _default_context


def reset_default_context() -> None:
    """Forget the process-wide context (tests)."""
    global _default_context
    if _default_context is not None:
        _default_context.sessions.clear()
    _default_context = None
