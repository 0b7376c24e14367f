"""Bundled lookup table of SDK diagnostic codes.

Maps a diagnostic code (``CS0103``, ``MSB3644``, ``NU1101``, ...) to a short
title, an explanation, common causes, suggested fixes, and a documentation
link. The table ships as ``error_codes.json`` inside the package and is
parsed once on first use.
"""

import json
from functools import lru_cache
from importlib import resources

from pydantic import BaseModel, Field, ValidationError

from dotnet_mcp.logging import logger

_TABLE_RESOURCE = "error_codes.json"


class ErrorCodeInfo(BaseModel):
    """Detailed information about one diagnostic code."""

    title: str = Field(default="", description="Short summary of the error")
    explanation: str = Field(default="", description="What causes this error")
    category: str = Field(default="", description="Compilation, Build, Package, SDK, ...")
    common_causes: list[str] = Field(default_factory=list, alias="commonCauses")
    suggested_fixes: list[str] = Field(default_factory=list, alias="suggestedFixes")
    documentation_url: str | None = Field(default=None, alias="documentationUrl")

    model_config = {"populate_by_name": True}


def _normalize(code: str | None) -> str:
    return (code or "").strip().upper()


def parse_error_codes(content: str) -> dict[str, ErrorCodeInfo]:
    """Parse the JSON code table.

    Args:
        content: JSON text with a top-level ``errorCodes`` object.

    Returns:
        Dict keyed by upper-cased code. Empty when the document has no table.

    Raises:
        ValueError: If the document is not valid JSON or an entry is malformed.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid error code table: {e}") from e

    entries = data.get("errorCodes") if isinstance(data, dict) else None
    if not isinstance(entries, dict):
        return {}

    table: dict[str, ErrorCodeInfo] = {}
    for code, raw in entries.items():
        try:
            table[_normalize(code)] = ErrorCodeInfo.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Invalid entry for {code}: {e}") from e
    return table


@lru_cache(maxsize=1)
def _load_table() -> dict[str, ErrorCodeInfo]:
    try:
        content = (
            resources.files("dotnet_mcp.diagnostics")
            .joinpath(_TABLE_RESOURCE)
            .read_text(encoding="utf-8")
        )
        table = parse_error_codes(content)
    except (OSError, ValueError) as e:
        # Classification works without the table
        logger.warning("Failed to load error code table: %s", e)
        return {}

    logger.debug("Loaded %d error code entries", len(table))
    return table


def get_error_info(code: str | None) -> ErrorCodeInfo | None:
    """Look up information for a diagnostic code.

    The match is exact after trimming whitespace and ignoring case.

    Args:
        code: The code to look up (e.g. "CS0103", " nu1101 ").

    Returns:
        ErrorCodeInfo if the code is in the table, None otherwise.
    """
    normalized = _normalize(code)
    if not normalized:
        return None
    return _load_table().get(normalized)


def has_error_info(code: str | None) -> bool:
    """Check whether detailed information exists for a code."""
    return get_error_info(code) is not None


def error_code_count() -> int:
    """Get the number of codes in the bundled table."""
    return len(_load_table())
