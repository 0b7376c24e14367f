"""Command execution: process handles, the dotnet executor, the concurrency
guard, background sessions, and parameter validation.
"""

from dotnet_mcp.execution.concurrency import (
    ConcurrencyGuard,
    OperationConflictError,
    normalize_target,
)
from dotnet_mcp.execution.executor import CommandOutput, DotnetExecutor
from dotnet_mcp.execution.process import ProcessHandle, ProcessStateError
from dotnet_mcp.execution.sessions import ProcessSessionManager, SessionInfo
from dotnet_mcp.execution.validation import ParameterValidationError

__all__ = [
    "CommandOutput",
    "ConcurrencyGuard",
    "DotnetExecutor",
    "OperationConflictError",
    "ParameterValidationError",
    "ProcessHandle",
    "ProcessSessionManager",
    "ProcessStateError",
    "SessionInfo",
    "normalize_target",
]
