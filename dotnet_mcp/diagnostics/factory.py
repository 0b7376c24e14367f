"""Envelope builders and renderers.

Every tool response is built here: successful runs, classified failures, and
the sentinel errors raised before a process ever starts (validation,
concurrency conflicts, unavailable capabilities, cancellation). Text leaving
this module has been through the secret redactor.
"""

from collections.abc import Iterable, Mapping

from dotnet_mcp.diagnostics import mcp_codes
from dotnet_mcp.diagnostics.classifier import classify
from dotnet_mcp.diagnostics.redactor import redact
from dotnet_mcp.models.results import (
    NOT_EXECUTED_EXIT_CODE,
    ClassifiedError,
    ErrorData,
    ErrorResult,
    ResultEnvelope,
    SuccessResult,
)

MAX_STDERR_LENGTH = 1000
TRUNCATION_SUFFIX = "... (truncated)"

INVALID_PARAMS_CODE = "INVALID_PARAMS"
CONCURRENCY_CONFLICT_CODE = "CONCURRENCY_CONFLICT"
CAPABILITY_NOT_AVAILABLE_CODE = "CAPABILITY_NOT_AVAILABLE"
OPERATION_CANCELLED_CODE = "OPERATION_CANCELLED"


def _sanitize(text: str | None) -> str | None:
    if text is None or not text.strip():
        return None
    return redact(text)


def truncate_stderr(stderr: str) -> str:
    """Cut stderr to MAX_STDERR_LENGTH characters including the suffix."""
    if len(stderr) <= MAX_STDERR_LENGTH:
        return stderr
    return stderr[: MAX_STDERR_LENGTH - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def create_error_data(
    command: str | None,
    exit_code: int,
    stderr: str | None,
    additional_data: Mapping[str, str] | None = None,
) -> ErrorData:
    """Build the structured ``data`` payload of an error entry.

    Command and stderr are redacted; stderr is truncated. Blank values are
    dropped so they are omitted on the wire.
    """
    sanitized_stderr = _sanitize(stderr)
    extras = None
    if additional_data:
        extras = {key: redact(value) or "" for key, value in additional_data.items()}
    return ErrorData(
        command=_sanitize(command),
        exit_code=exit_code,
        stderr=truncate_stderr(sanitized_stderr) if sanitized_stderr else None,
        additional_data=extras,
    )


def create_result(
    output: str | None,
    error: str | None,
    exit_code: int,
    command: str | None = None,
    additional_data: Mapping[str, str] | None = None,
    metadata: Mapping[str, str] | None = None,
) -> ResultEnvelope:
    """Turn a finished process invocation into an envelope.

    Args:
        output: Captured standard output.
        error: Captured standard error.
        exit_code: Process exit code.
        command: Command line that was run, for the error payload.
        additional_data: Extra key/value context for every error entry.
        metadata: Extra facts for a success envelope.

    Returns:
        SuccessResult when ``exit_code`` is 0, otherwise an ErrorResult with
        one entry per classified diagnostic.
    """
    safe_output = redact(output or "") or ""
    if exit_code == 0:
        return SuccessResult(
            output=safe_output,
            exit_code=0,
            metadata=dict(metadata) if metadata else None,
        )

    safe_error = redact(error or "") or ""
    combined = f"{safe_output}\n{safe_error}"
    data = create_error_data(command, exit_code, safe_error, additional_data)
    errors = [
        entry.model_copy(update={"data": data})
        for entry in classify(combined, exit_code, stderr=safe_error)
    ]
    return ErrorResult(exit_code=exit_code, errors=errors)


def create_validation_error(
    message: str,
    parameter_name: str | None = None,
    reason: str | None = None,
) -> ErrorResult:
    """Build the envelope for a rejected parameter.

    Args:
        message: Human-readable description of the problem.
        parameter_name: Name of the offending parameter.
        reason: Short machine-friendly reason (e.g. "required", "invalid format").

    Returns:
        ErrorResult with exit code -1 and a single INVALID_PARAMS entry.
    """
    additional: dict[str, str] = {}
    if parameter_name:
        additional["parameter"] = parameter_name
    if reason:
        additional["reason"] = reason
    return _validation_error(message, additional)


def _validation_error(message: str, additional: dict[str, str]) -> ErrorResult:
    error = ClassifiedError(
        code=INVALID_PARAMS_CODE,
        category="Validation",
        message=redact(message) or message,
        hint="Verify the parameter values and try again.",
        mcp_error_code=mcp_codes.INVALID_PARAMS,
        data=ErrorData(
            exit_code=NOT_EXECUTED_EXIT_CODE,
            additional_data=additional or None,
        ),
    )
    return ErrorResult(exit_code=NOT_EXECUTED_EXIT_CODE, errors=[error])


def create_action_validation_error(
    action: str | None,
    valid_actions: Iterable[str],
    tool_name: str | None = None,
) -> ErrorResult:
    """Build the validation envelope for an unknown or missing action."""
    choices = ", ".join(valid_actions)
    scope = f" for {tool_name}" if tool_name else ""
    if action:
        message = f"Invalid action '{action}'{scope}. Valid actions: {choices}"
    else:
        message = f"The 'action' parameter is required{scope}. Valid actions: {choices}"

    return _validation_error(
        message,
        {
            "parameter": "action",
            "reason": "invalid value" if action else "required",
            "validActions": choices,
        },
    )


def create_concurrency_conflict(
    operation_type: str,
    target: str,
    conflicting_operation: str,
) -> ErrorResult:
    """Build the envelope for an operation rejected by the concurrency guard."""
    code = CONCURRENCY_CONFLICT_CODE
    category = "Concurrency"
    error = ClassifiedError(
        code=code,
        category=category,
        message=redact(
            f"Cannot execute '{operation_type}' on '{target}' because a conflicting "
            f"operation is already in progress: {conflicting_operation}"
        )
        or "",
        hint=(
            "Wait for the conflicting operation to complete, or cancel it before "
            "retrying this operation."
        ),
        mcp_error_code=mcp_codes.get_mcp_error_code(code, category, NOT_EXECUTED_EXIT_CODE),
        data=ErrorData(
            exit_code=NOT_EXECUTED_EXIT_CODE,
            additional_data={
                "operationType": redact(operation_type) or "",
                "target": redact(target) or "",
                "conflictingOperation": redact(conflicting_operation) or "",
            },
        ),
    )
    return ErrorResult(exit_code=NOT_EXECUTED_EXIT_CODE, errors=[error])


def create_capability_not_available(
    feature: str,
    alternatives: Iterable[str] | None = None,
    command: str | None = None,
    details: str | None = None,
) -> ErrorResult:
    """Build the envelope for a feature the current environment cannot provide.

    Args:
        feature: Capability name (e.g. "dotnet CLI").
        alternatives: Suggestions for how to proceed. Blank entries are
            dropped and duplicates removed ignoring case.
        command: Command that was being attempted.
        details: Extra detail such as the underlying exception message.

    Returns:
        ErrorResult with exit code -1 and a single CAPABILITY_NOT_AVAILABLE entry.
    """
    safe_feature = feature.strip() if feature and feature.strip() else "capability"

    unique: list[str] = []
    seen: set[str] = set()
    for alternative in alternatives or ():
        if not alternative or not alternative.strip():
            continue
        cleaned = alternative.strip()
        if cleaned.casefold() in seen:
            continue
        seen.add(cleaned.casefold())
        unique.append(cleaned)

    message = f"Capability '{safe_feature}' is not available in the current environment."
    if details and details.strip():
        message += f" Details: {details.strip()}"

    if unique:
        hint = "Try one of the alternatives or adjust the environment to enable this capability."
    else:
        hint = "Adjust the environment to enable this capability."

    error = ClassifiedError(
        code=CAPABILITY_NOT_AVAILABLE_CODE,
        category="Capability",
        message=redact(message) or message,
        hint=hint,
        mcp_error_code=mcp_codes.CAPABILITY_NOT_AVAILABLE,
        alternatives=unique or None,
        data=create_error_data(command, NOT_EXECUTED_EXIT_CODE, details),
    )
    return ErrorResult(exit_code=NOT_EXECUTED_EXIT_CODE, errors=[error])


def create_cancelled_result(command: str | None, partial_output: str | None = None) -> ErrorResult:
    """Build the envelope for a foreground command cancelled by the caller."""
    code = OPERATION_CANCELLED_CODE
    category = "Cancellation"
    error = ClassifiedError(
        code=code,
        category=category,
        message="The operation was cancelled by the user",
        hint="The command was terminated before completion",
        mcp_error_code=mcp_codes.get_mcp_error_code(code, category, NOT_EXECUTED_EXIT_CODE),
        data=create_error_data(command, NOT_EXECUTED_EXIT_CODE, partial_output),
    )
    return ErrorResult(exit_code=NOT_EXECUTED_EXIT_CODE, errors=[error])


def to_json(envelope: ResultEnvelope) -> str:
    """Serialize an envelope to its wire form (camelCase, nulls omitted)."""
    return envelope.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def to_plain_text(envelope: ResultEnvelope) -> str:
    """Render an envelope for clients that did not ask for JSON.

    Success renders the output followed by the exit code. Sentinel errors
    render as ``Error: <message>``, with a ``Hint:`` line for conflicts.
    Classified failures keep the process output and list each diagnostic.
    """
    if isinstance(envelope, SuccessResult):
        lines = []
        if envelope.output:
            lines.append(envelope.output.rstrip("\n"))
        if envelope.metadata:
            lines.extend(f"{key}: {value}" for key, value in envelope.metadata.items())
        lines.append(f"Exit Code: {envelope.exit_code}")
        return "\n".join(lines)

    first = envelope.errors[0]
    if envelope.exit_code == NOT_EXECUTED_EXIT_CODE:
        text = f"Error: {first.message}"
        if first.code == CONCURRENCY_CONFLICT_CODE and first.hint:
            text += f"\nHint: {first.hint}"
        if first.alternatives:
            text += "\nAlternatives:\n" + "\n".join(f"  - {a}" for a in first.alternatives)
        return text

    lines = []
    for error in envelope.errors:
        lines.append(f"Error: {error.code}: {error.message}")
        if error.hint:
            lines.append(f"  Hint: {error.hint}")
    if first.data is not None and first.data.stderr:
        lines.append("")
        lines.append("Errors:")
        lines.append(first.data.stderr.rstrip("\n"))
    lines.append(f"Exit Code: {envelope.exit_code}")
    return "\n".join(lines)
