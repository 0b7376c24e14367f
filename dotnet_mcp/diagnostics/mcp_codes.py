"""JSON-RPC 2.0 / MCP numeric error codes.

Classified errors carry an optional ``mcpErrorCode`` so that clients can
react to broad failure classes (missing resource, bad parameters, internal
failure) without understanding SDK diagnostic codes.
"""

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# MCP-specific codes in the implementation-defined server range
RESOURCE_NOT_FOUND = -32002
CAPABILITY_NOT_AVAILABLE = -32001

SERVER_ERROR_RANGE_START = -32000
SERVER_ERROR_RANGE_END = -32099

# Package, project file, assets file, or SDK could not be found
_RESOURCE_NOT_FOUND_CODES = frozenset({"NU1101", "NU1102", "MSB1003", "NETSDK1004", "MSB4236"})

# Unsupported framework or malformed source the caller handed over
_INVALID_PARAMS_CODES = frozenset({"NETSDK1045", "CS1001", "CS1513"})

_INTERNAL_ERROR_CODES = frozenset(
    {"OPERATION_CANCELLED", "CONCURRENCY_CONFLICT", "CAPABILITY_NOT_AVAILABLE"}
)


def get_mcp_error_code(error_code: str, category: str, exit_code: int) -> int | None:
    """Map a classified error to an MCP error code.

    Args:
        error_code: Diagnostic or sentinel code (e.g. "CS0103", "NU1101", "EXIT_1").
        category: Error category (e.g. "Compilation", "Package", "Unknown").
        exit_code: Process exit code.

    Returns:
        The MCP error code, or None when no protocol-level code applies
        (ordinary compiler errors, for instance).
    """
    normalized = (error_code or "").strip().upper()

    if normalized in _RESOURCE_NOT_FOUND_CODES:
        return RESOURCE_NOT_FOUND

    if normalized in _INVALID_PARAMS_CODES:
        return INVALID_PARAMS

    if normalized in _INTERNAL_ERROR_CODES:
        return INTERNAL_ERROR

    if exit_code != 0 and category == "Unknown":
        return INTERNAL_ERROR

    return None
