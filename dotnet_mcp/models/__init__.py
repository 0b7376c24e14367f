"""Data models for dotnet-mcp responses."""

from dotnet_mcp.models.results import (
    NOT_EXECUTED_EXIT_CODE,
    ClassifiedError,
    ErrorData,
    ErrorResult,
    ResultEnvelope,
    SuccessResult,
)

__all__ = [
    "NOT_EXECUTED_EXIT_CODE",
    "ClassifiedError",
    "ErrorData",
    "ErrorResult",
    "ResultEnvelope",
    "SuccessResult",
]
