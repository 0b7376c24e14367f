"""Result envelope models.

Every tool answers with one envelope: ``SuccessResult`` or ``ErrorResult``.
Field names on the wire are camelCase and unset optional fields are omitted,
so always serialize through ``dotnet_mcp.diagnostics.factory.to_json``.
"""

from typing import Literal

from pydantic import BaseModel, Field

# Exit code for errors raised before any process was started
NOT_EXECUTED_EXIT_CODE = -1


class ErrorData(BaseModel):
    """Structured context attached to a classified error."""

    command: str | None = Field(default=None, description="Redacted command line")
    exit_code: int = Field(alias="exitCode", description="Process exit code, -1 if never run")
    stderr: str | None = Field(
        default=None, description="Redacted stderr, truncated to 1000 characters"
    )
    additional_data: dict[str, str] | None = Field(
        default=None, alias="additionalData", description="Free-form key/value context"
    )

    model_config = {"populate_by_name": True, "frozen": True}


class ClassifiedError(BaseModel):
    """One diagnostic extracted from process output, or a synthesized error."""

    code: str = Field(description="Diagnostic code, e.g. 'CS0103', 'NU1101', 'EXIT_1'")
    category: str = Field(description="Compilation, Build, Package, SDK, Unknown, ...")
    message: str = Field(description="Human-readable message")
    hint: str | None = Field(default=None, description="Short remediation hint")
    mcp_error_code: int | None = Field(
        default=None, alias="mcpErrorCode", description="JSON-RPC / MCP error code"
    )
    explanation: str | None = Field(default=None, description="What the code means")
    documentation_url: str | None = Field(default=None, alias="documentationUrl")
    suggested_fixes: list[str] | None = Field(default=None, alias="suggestedFixes")
    alternatives: list[str] | None = Field(
        default=None, description="Alternative ways to proceed"
    )
    data: ErrorData | None = Field(default=None, description="Structured context")

    model_config = {"populate_by_name": True, "frozen": True}


class SuccessResult(BaseModel):
    """Envelope for a command that completed with exit code 0."""

    success: Literal[True] = True
    output: str = Field(default="", description="Redacted standard output")
    exit_code: int = Field(default=0, alias="exitCode")
    metadata: dict[str, str] | None = Field(
        default=None, description="Extra facts such as a background session id"
    )

    model_config = {"populate_by_name": True}


class ErrorResult(BaseModel):
    """Envelope for a failed, rejected, or cancelled operation."""

    success: Literal[False] = False
    exit_code: int = Field(alias="exitCode")
    errors: list[ClassifiedError] = Field(min_length=1)

    model_config = {"populate_by_name": True}


ResultEnvelope = SuccessResult | ErrorResult
